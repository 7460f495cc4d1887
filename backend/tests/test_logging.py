"""Tests for JSON structured logging."""
import json
import logging
import sys


def _record(name: str, level: int, msg: str, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


def test_json_formatter_outputs_valid_json() -> None:
    """JSONFormatter should produce valid JSON output."""
    from studio.core.logging import JSONFormatter
    output = JSONFormatter().format(_record("test-service", logging.INFO, "test message"))
    assert isinstance(json.loads(output), dict)


def test_json_formatter_has_required_fields() -> None:
    """Log output must contain timestamp, level, service, message fields."""
    from studio.core.logging import JSONFormatter
    parsed = json.loads(
        JSONFormatter().format(_record("my-service", logging.WARNING, "something happened"))
    )

    assert "timestamp" in parsed
    assert parsed["level"] == "WARNING"
    assert parsed["service"] == "my-service"
    assert parsed["message"] == "something happened"


def test_json_formatter_includes_extra_fields() -> None:
    """Fields passed through ``extra`` appear in the JSON output."""
    from studio.core.logging import JSONFormatter
    record = _record("dispatcher", logging.ERROR, "failed")
    record.error_type = "GenerationError"
    record.request_files = 3
    parsed = json.loads(JSONFormatter().format(record))
    assert parsed["error_type"] == "GenerationError"
    assert parsed["request_files"] == 3


def test_json_formatter_includes_error_type_on_exception() -> None:
    """Log output should include error_type field when an exception is attached."""
    from studio.core.logging import JSONFormatter
    try:
        raise ValueError("test error")
    except ValueError:
        exc_info = sys.exc_info()

    parsed = json.loads(
        JSONFormatter().format(_record("error-service", logging.ERROR, "an error occurred", exc_info))
    )
    assert parsed["error_type"] == "ValueError"
    assert "error_detail" in parsed


def test_setup_logging_returns_logger() -> None:
    """setup_logging() should return a configured Logger instance."""
    from studio.core.logging import setup_logging
    logger = setup_logging("test-app")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "test-app"


def test_setup_logging_does_not_duplicate_handlers() -> None:
    """Calling setup_logging twice must not add a second handler."""
    from studio.core.logging import setup_logging
    first = setup_logging("test-dup")
    count = len(first.handlers)
    second = setup_logging("test-dup")
    assert second is first
    assert len(second.handlers) == count


def test_json_formatter_extra_service_replaces_logger_name() -> None:
    """extra={"service": ...} names the component in the output."""
    from studio.core.logging import JSONFormatter
    record = _record("dispatcher", logging.ERROR, "failed")
    record.service = "GenerationDispatcher"
    parsed = json.loads(JSONFormatter().format(record))
    assert parsed["service"] == "GenerationDispatcher"


def test_json_formatter_keeps_fixed_fields() -> None:
    """extra cannot overwrite level or message."""
    from studio.core.logging import JSONFormatter
    record = _record("svc", logging.INFO, "real message")
    record.level = "bogus"
    parsed = json.loads(JSONFormatter().format(record))
    assert parsed["level"] == "INFO"
    assert parsed["message"] == "real message"
