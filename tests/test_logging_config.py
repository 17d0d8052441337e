"""
Tests for logging configuration and token redaction.
"""

import logging

from padlink.logging_config import REDACTED, TokenRedactionFilter, get_logging_config

TOKEN = "0f3c2a8e-6b1d-4c5e-9a7f-2d4b6c8e0a1f"


def _record(msg, args=()):
    return logging.LogRecord("padlink.test", logging.INFO, __file__, 1, msg, args, None)


def test_token_in_message_is_masked():
    record = _record(f"client presented {TOKEN}")

    assert TokenRedactionFilter().filter(record) is True
    assert record.getMessage() == f"client presented {REDACTED}"


def test_token_in_args_is_masked():
    record = _record("client presented %s from %s", (TOKEN, "10.0.0.5"))

    TokenRedactionFilter().filter(record)

    assert record.getMessage() == f"client presented {REDACTED} from 10.0.0.5"


def test_message_without_token_is_untouched():
    record = _record("Loaded %d tokens", (3,))

    TokenRedactionFilter().filter(record)

    assert record.msg == "Loaded %d tokens"
    assert record.args == (3,)


def test_mismatched_format_args_pass_through():
    record = _record("%d items", ("x",))

    assert TokenRedactionFilter().filter(record) is True
    assert record.msg == "%d items"
    assert record.args == ("x",)


def test_logging_config_structure():
    config = get_logging_config("debug")

    assert config["loggers"]["padlink"]["level"] == "DEBUG"
    assert config["handlers"]["default"]["filters"] == ["token_redaction"]
    assert config["filters"]["token_redaction"]["()"] is TokenRedactionFilter
