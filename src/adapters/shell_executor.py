"""Privileged shell executor.

Every bridge operation becomes one ``su -c <command>`` invocation. The
executor holds no session state between calls; each command gets its own
process and its own captured streams.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil

from dotenv import load_dotenv

from core.ports import ExecResult

LOGGER = logging.getLogger(__name__)

# Mirrors the shell convention for "command not found".
SPAWN_FAILED_STATUS = 127
TIMEOUT_STATUS = 124


class ShellExecutor:
    """Runs command lines through the root shell binary."""

    def __init__(self, su_binary: str = "su", timeout: float = 30.0) -> None:
        self._su_binary = su_binary
        self._timeout = timeout

    @property
    def su_binary(self) -> str:
        return self._su_binary

    def is_available(self) -> bool:
        """Return True when the root shell binary can be found."""

        return shutil.which(self._su_binary) is not None

    async def execute(self, command: str) -> ExecResult:
        LOGGER.debug("exec: %s", command)
        try:
            process = await asyncio.create_subprocess_exec(
                self._su_binary,
                "-c",
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return ExecResult(SPAWN_FAILED_STATUS, "", f"cannot start {self._su_binary}: {exc}")

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return ExecResult(TIMEOUT_STATUS, "", f"command timed out after {self._timeout:g}s")

        return ExecResult(
            status=process.returncode if process.returncode is not None else SPAWN_FAILED_STATUS,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )


def build_executor(timeout: float = 30.0) -> ShellExecutor:
    """Create a shell executor from environment variables.

    ``HYBRID_SU_BINARY`` overrides the root shell (some managers install it
    under a different name); it is read via python-dotenv so a local ``.env``
    works during development.
    """

    load_dotenv()

    su_binary = os.getenv("HYBRID_SU_BINARY", "su")
    LOGGER.info("Initializing privileged executor (%s)", su_binary)

    return ShellExecutor(su_binary=su_binary, timeout=timeout)
