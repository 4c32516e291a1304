"""
Custom exceptions for better error handling.
"""
from typing import Any, Dict, Optional


class TransactRelayException(Exception):
    """Base exception for all transaction relay errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize exception.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(TransactRelayException):
    """Raised when configuration is invalid."""
    pass


class TemplateLoadError(ConfigurationError):
    """Raised when the template file cannot be loaded."""
    pass


class TransportConfigError(ConfigurationError):
    """Raised when TLS certificate or key material is unusable."""
    pass


class ExtractionError(TransactRelayException):
    """Base class for field extraction failures."""
    pass


class PatternCompileError(ExtractionError):
    """Raised when a template pattern does not compile."""
    pass


class PatternTimeout(ExtractionError):
    """Raised when a pattern match exceeds its time budget."""
    pass


class MissingRequiredField(ExtractionError):
    """Raised when a required field is absent or empty."""
    pass


class PersistenceError(TransactRelayException):
    """Raised when a record cannot be written to storage."""
    pass


class DeliveryError(TransactRelayException):
    """Raised when a callback POST fails or is not answered with 200."""
    pass
