from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

import pytest

from adapters.live_bridge import DaemonPaths, LiveBridge
from core import codec
from core.config import AppConfig
from core.errors import BridgeError, CodecError
from core.models import ModuleRules, MountMode
from core.ports import ExecResult

PATHS = DaemonPaths(
    binary="/data/adb/modules/meta-hybrid/meta-hybrid",
    state_file="/data/adb/meta-hybrid/run/daemon_state.json",
    log_file="/data/adb/meta-hybrid/daemon.log",
)


class FakeExecutor:
    """Answers commands by prefix; anything unmatched fails with status 1."""

    def __init__(self, replies: Optional[dict[str, ExecResult]] = None) -> None:
        self.replies = replies or {}
        self.commands: list[str] = []

    def reply(self, prefix: str, stdout: str = "", status: int = 0, stderr: str = "") -> None:
        self.replies[prefix] = ExecResult(status, stdout, stderr)

    async def execute(self, command: str) -> ExecResult:
        self.commands.append(command)
        for prefix, result in self.replies.items():
            if command.startswith(prefix):
                return result
        return ExecResult(1, "", "not found")


def _bridge(executor: FakeExecutor) -> LiveBridge:
    return LiveBridge(executor, PATHS, "v1.0.0")


def test_load_config_parses_show_config_output() -> None:
    executor = FakeExecutor()
    executor.reply(f"{PATHS.binary} show-config", json.dumps({"moduledir": "/x", "partitions": "system"}))

    config = asyncio.run(_bridge(executor).load_config())

    assert executor.commands == [f"{PATHS.binary} show-config"]
    assert config.moduledir == "/x"
    assert config.partitions == ("system",)


def test_save_config_sends_hex_payload() -> None:
    executor = FakeExecutor()
    executor.reply(f"{PATHS.binary} save-config")
    config = AppConfig(partitions=("system",), disable_umount=True)

    asyncio.run(_bridge(executor).save_config(config))

    command = executor.commands[0]
    token = command.split("--payload ", 1)[1]
    assert codec.decode(token) == config.to_dict()


def test_non_zero_status_raises_bridge_error() -> None:
    executor = FakeExecutor()
    executor.reply(f"{PATHS.binary} save-config", status=2, stderr="permission denied")

    with pytest.raises(BridgeError) as excinfo:
        asyncio.run(_bridge(executor).save_config(AppConfig()))

    assert "permission denied" in str(excinfo.value)
    assert excinfo.value.operation == "save config"


def test_reset_config_runs_gen_config() -> None:
    executor = FakeExecutor()
    executor.reply(f"{PATHS.binary} gen-config")

    asyncio.run(_bridge(executor).reset_config())

    assert executor.commands == [f"{PATHS.binary} gen-config"]


def test_scan_modules_maps_modes() -> None:
    executor = FakeExecutor()
    executor.reply(
        f"{PATHS.binary} modules",
        json.dumps(
            [
                {"id": "a", "name": "A", "mode": "magic", "is_mounted": True},
                {"id": "b", "mode": "weird"},
            ]
        ),
    )

    modules = asyncio.run(_bridge(executor).scan_modules())

    assert [m.mode for m in modules] == [MountMode.MAGIC, MountMode.AUTO]
    assert modules[1].name == "b"


def test_scan_modules_rejects_malformed_reply() -> None:
    executor = FakeExecutor()
    executor.reply(f"{PATHS.binary} modules", "oops")

    with pytest.raises(CodecError):
        asyncio.run(_bridge(executor).scan_modules())


def test_save_module_rules_quotes_module_id() -> None:
    executor = FakeExecutor()
    executor.reply(f"{PATHS.binary} save-module-rules")
    rules = ModuleRules(default_mode=MountMode.MAGIC, paths={"system/fonts": MountMode.OVERLAY})

    asyncio.run(_bridge(executor).save_module_rules("my.module", rules))

    command = executor.commands[0]
    assert "--module my.module --payload " in command
    assert codec.decode(command.rsplit(" ", 1)[1]) == rules.to_dict()


def test_read_logs_returns_raw_text() -> None:
    executor = FakeExecutor()
    executor.reply(f"cat {PATHS.log_file}", "[I] one\n[E] two")

    assert asyncio.run(_bridge(executor).read_logs()) == "[I] one\n[E] two"


def test_device_status_tolerates_each_probe() -> None:
    executor = FakeExecutor()
    executor.reply("getprop ro.build.version.release", "14\n")
    executor.reply("getprop ro.build.version.sdk", "34\n")
    executor.reply("getenforce", "Enforcing\n")

    device = asyncio.run(_bridge(executor).get_device_status())

    assert device.model == "-"
    assert device.kernel == "-"
    assert device.android == "14 (API 34)"
    assert device.selinux == "Enforcing"


def test_system_info_without_state_file_keeps_kernel() -> None:
    executor = FakeExecutor()
    executor.reply('echo "KERNEL', "KERNEL:5.15.0\nSELINUX:Permissive\n")

    info = asyncio.run(_bridge(executor).get_system_info())

    assert info.kernel == "5.15.0"
    assert info.selinux == "Permissive"
    assert info.mount_base == "-"
    assert info.active_mounts == ()
    assert info.enforcement_active is False


def test_system_info_reads_daemon_state() -> None:
    executor = FakeExecutor()
    executor.reply('echo "KERNEL', status=1)
    executor.reply(
        f"cat {PATHS.state_file}",
        json.dumps({"active_mounts": ["system", "vendor"], "zygisksu_enforce": True, "tmpfs_xattr_supported": False}),
    )

    info = asyncio.run(_bridge(executor).get_system_info())

    assert info.kernel == "-"
    assert info.mount_base == "Unknown"
    assert info.active_mounts == ("system", "vendor")
    assert info.enforcement_active is True
    assert info.tmpfs_xattr_supported is False


def test_storage_probe_failure_yields_unknown_storage() -> None:
    storage = asyncio.run(_bridge(FakeExecutor()).get_storage_usage())

    assert storage.type is None
    assert storage.hymofs_available is False


def test_version_falls_back_to_app_version() -> None:
    executor = FakeExecutor()
    assert asyncio.run(_bridge(executor).get_version()) == "v1.0.0"

    executor.reply('grep "^version="', "version=v1.2.3\n")
    assert asyncio.run(_bridge(executor).get_version()) == "v1.2.3"
    assert executor.commands[-1].endswith("/data/adb/modules/meta-hybrid/module.prop")


def test_system_action_passes_value() -> None:
    executor = FakeExecutor()
    executor.reply(f"{PATHS.binary} system-action")

    asyncio.run(_bridge(executor).system_action("set-stealth", "on"))

    assert executor.commands == [f"{PATHS.binary} system-action --action set-stealth --value on"]


def test_open_link_quotes_url() -> None:
    executor = FakeExecutor()
    executor.reply("am start")

    asyncio.run(_bridge(executor).open_link("https://example.com/a b"))

    assert executor.commands[0].endswith("-d 'https://example.com/a b'")


@pytest.mark.parametrize(
    "reply",
    [
        [{"id": "a", "rules": {"paths": ["system"]}}],
        [{"id": "a", "rules": ["magic"]}],
    ],
)
def test_scan_modules_rejects_malformed_rules(reply: list) -> None:
    executor = FakeExecutor()
    executor.reply(f"{PATHS.binary} modules", json.dumps(reply))

    with pytest.raises(CodecError):
        asyncio.run(_bridge(executor).scan_modules())


def test_conflicts_reject_null_module_list() -> None:
    executor = FakeExecutor()
    executor.reply(
        f"{PATHS.binary} conflicts",
        json.dumps([{"partition": "system", "contending_modules": None}]),
    )

    with pytest.raises(CodecError):
        asyncio.run(_bridge(executor).get_conflicts())


def test_conflicts_default_missing_module_list() -> None:
    executor = FakeExecutor()
    executor.reply(f"{PATHS.binary} conflicts", json.dumps([{"partition": "system", "relative_path": "bin/sh"}]))

    conflicts = asyncio.run(_bridge(executor).get_conflicts())

    assert conflicts[0].contending_modules == ()
    assert conflicts[0].relative_path == "bin/sh"


def test_failed_command_leaves_warning_to_the_caller(caplog: pytest.LogCaptureFixture) -> None:
    executor = FakeExecutor()

    with caplog.at_level(logging.DEBUG, logger="adapters.live_bridge"):
        with pytest.raises(BridgeError):
            asyncio.run(_bridge(executor).reset_config())

    assert [r.levelno for r in caplog.records if r.name == "adapters.live_bridge"] == [logging.DEBUG]
