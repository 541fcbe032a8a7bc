"""Command codec.

Payloads travel to the daemon inside a single command line, so they are
serialized to compact JSON and then hex encoded byte by byte. The result only
contains ``[0-9a-f]`` and never needs quoting. Replies come back as plain JSON
on stdout.
"""

from __future__ import annotations

import json
import string
from typing import Any

from core.errors import CodecError

_HEX_DIGITS = frozenset(string.hexdigits)


def _canonical_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), sort_keys=True)


def encode(payload: Any) -> str:
    """Return the hex token for a JSON-representable payload."""

    try:
        text = _canonical_json(payload)
    except (TypeError, ValueError) as exc:
        raise CodecError(f"payload is not serializable: {exc}") from exc
    return text.encode("utf-8").hex()


def decode(token: str) -> Any:
    """Inverse of :func:`encode`.

    Rejects odd-length tokens and non-hex characters explicitly, because
    ``bytes.fromhex`` silently accepts whitespace.
    """

    if len(token) % 2:
        raise CodecError("hex token has odd length")
    if any(ch not in _HEX_DIGITS for ch in token):
        raise CodecError("hex token contains non-hex characters")
    try:
        text = bytes.fromhex(token).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CodecError("hex token is not valid UTF-8") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise CodecError(f"decoded payload is not JSON: {exc.msg}") from exc


def parse_reply(stdout: str, expected: type | None = None) -> Any:
    """Parse a JSON reply printed by the daemon.

    When ``expected`` is given the top-level value must be an instance of it.
    """

    text = stdout.strip()
    if not text:
        raise CodecError("empty reply")
    try:
        value = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CodecError(f"reply is not JSON: {exc.msg}") from exc
    if expected is not None and not isinstance(value, expected):
        raise CodecError(f"reply must be a JSON {expected.__name__}")
    return value


def parse_object_list(stdout: str) -> list[dict[str, Any]]:
    """Parse a JSON array reply whose items must all be objects."""

    items = parse_reply(stdout, list)
    if not all(isinstance(item, dict) for item in items):
        raise CodecError("reply items must be JSON objects")
    return items
