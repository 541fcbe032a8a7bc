"""Console error types."""

from __future__ import annotations


class ConsoleError(Exception):
    """Base error for the hybrid mount console."""


class CodecError(ConsoleError):
    """Raised when a hex token or a command reply cannot be decoded."""


class BridgeError(ConsoleError):
    """Raised when the privileged executor reports a non-zero status."""

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation
        self.detail = detail


class ProbeError(ConsoleError):
    """Raised by a single system probe; callers tolerate it."""
