from __future__ import annotations

import logging

from app import _RedactingFormatter


def test_formatter_masks_hex_payloads() -> None:
    formatter = _RedactingFormatter("%(message)s")
    record = logging.LogRecord(
        "adapters.shell_executor",
        logging.DEBUG,
        __file__,
        1,
        "exec: %s",
        ("/bin/hm save-config --payload 7b2261223a317d",),
        None,
    )

    assert formatter.format(record) == "exec: /bin/hm save-config --payload ***"
