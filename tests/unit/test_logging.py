from __future__ import annotations

import json
import logging

from soulbench.utils.logging import _json_formatter, configure_logging

EXPECTED_ITERATION = 10
EXPECTED_ERRORS = 2


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.iteration = EXPECTED_ITERATION
    record.scenario = "user_profile"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["iteration"] == EXPECTED_ITERATION
    assert payload["scenario"] == "user_profile"
    assert "pathname" not in payload
    assert "lineno" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"errors": EXPECTED_ERRORS}

    payload = json.loads(_json_formatter(record))

    assert payload["errors"] == EXPECTED_ERRORS


def test_json_formatter_stringifies_unserializable_values() -> None:
    record = _record()
    record.backends = ("dynamodb", "dsql")
    record.when = object()

    payload = json.loads(_json_formatter(record))

    assert payload["backends"] == ["dynamodb", "dsql"]
    assert isinstance(payload["when"], str)


def test_configure_logging_sets_root_level() -> None:
    configure_logging(level="warning")

    assert logging.getLogger().level == logging.WARNING
