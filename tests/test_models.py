from __future__ import annotations

import pytest

from core.errors import CodecError
from core.models import ModuleRules, MountMode


def test_mount_mode_parse_uses_default_for_unknown_values() -> None:
    assert MountMode.parse("MAGIC") == MountMode.MAGIC
    assert MountMode.parse("bind") == MountMode.AUTO
    assert MountMode.parse(None, MountMode.OVERLAY) == MountMode.OVERLAY


def test_module_rules_accept_missing_rules() -> None:
    rules = ModuleRules.from_dict(None)

    assert rules.default_mode == MountMode.OVERLAY
    assert rules.paths == {}


def test_module_rules_reject_non_object_paths() -> None:
    with pytest.raises(CodecError):
        ModuleRules.from_dict({"default_mode": "magic", "paths": ["system"]})
