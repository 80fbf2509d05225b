from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("services.batch", logging.WARNING, __file__, 1, "Skipping row %d", (3,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    line = formatter.format(_record(batch_id="b-1", row_number=3, secret="ignored"))

    assert line == "WARNING Skipping row 3 | batch_id=b-1 row_number=3"


def test_formatter_without_context_leaves_message_untouched() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", context_keys=["reason"])

    assert formatter.format(_record(batch_id="b-1")) == "Skipping row 3"
