"""
Unit tests for logger setup and JSON formatting.
"""
import json
import logging
import sys

from core.logger import StructuredFormatter, setup_logger


def _record(msg="Callback posted", exc_info=None):
    return logging.LogRecord(
        name="services.notifier",
        level=logging.INFO,
        pathname="/srv/services/notifier.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
        func="post",
    )


def test_structured_formatter_fields():
    """JSON lines carry the caller location."""
    data = json.loads(StructuredFormatter().format(_record()))
    assert data["level"] == "INFO"
    assert data["logger"] == "services.notifier"
    assert data["message"] == "Callback posted"
    assert data["caller"] == "notifier:42"
    assert data["function"] == "post"
    assert "timestamp" in data
    assert "exception" not in data


def test_structured_formatter_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record("failed", exc_info=sys.exc_info())
    data = json.loads(StructuredFormatter().format(record))
    assert "ValueError: boom" in data["exception"]


def test_setup_logger_json(monkeypatch):
    monkeypatch.setenv("LOG_JSON", "true")
    logger = setup_logger("tests.json_logger")
    assert isinstance(logger.handlers[0].formatter, StructuredFormatter)


def test_setup_logger_plain(monkeypatch):
    monkeypatch.delenv("LOG_JSON", raising=False)
    logger = setup_logger("tests.plain_logger")
    assert not isinstance(logger.handlers[0].formatter, StructuredFormatter)
    assert logger.handlers[0].formatter._fmt == "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
