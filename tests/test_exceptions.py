"""
Unit tests for custom exceptions.
"""
from core.exceptions import (
    ConfigurationError,
    DeliveryError,
    ExtractionError,
    MissingRequiredField,
    PatternCompileError,
    PatternTimeout,
    PersistenceError,
    TemplateLoadError,
    TransactRelayException,
    TransportConfigError,
)


def test_base_exception():
    """Test base exception class."""
    exc = TransactRelayException("Test error", details={"key": "value"})
    assert str(exc) == "Test error"
    assert exc.message == "Test error"
    assert exc.details == {"key": "value"}


def test_exception_hierarchy():
    """Test exception inheritance."""
    for cls in (ConfigurationError, ExtractionError, PersistenceError, DeliveryError):
        assert issubclass(cls, TransactRelayException)
    for cls in (PatternCompileError, PatternTimeout, MissingRequiredField):
        assert issubclass(cls, ExtractionError)
    assert issubclass(TemplateLoadError, ConfigurationError)
    assert issubclass(TransportConfigError, ConfigurationError)


def test_exception_with_details():
    """Test exception with details dictionary."""
    details = {"field": "amount", "template": "National Bank"}
    exc = MissingRequiredField("missing required field amount", details=details)
    assert exc.message == "missing required field amount"
    assert exc.details["field"] == "amount"
    assert exc.details["template"] == "National Bank"


def test_exception_without_details():
    """Test exception without details."""
    exc = DeliveryError("server returned 500")
    assert exc.message == "server returned 500"
    assert exc.details == {}
