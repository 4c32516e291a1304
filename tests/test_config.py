"""
Unit tests for configuration module.
"""
import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings, reset_settings
from core.exceptions import TransportConfigError


@pytest.fixture(autouse=True)
def callback_env(monkeypatch, tmp_path):
    """Minimal required environment, isolated per test."""
    monkeypatch.setenv("CALLBACK_URL", "http://localhost:8080/transaction_callback")
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "transactions.db"))
    reset_settings()
    yield
    reset_settings()


def test_settings_defaults():
    """Test default configuration values."""
    settings = get_settings()
    assert settings.app_name == "Transaction Relay Service"
    assert settings.host == "0.0.0.0"
    assert settings.port == 8025
    assert settings.log_level == "INFO"
    assert settings.log_json is False
    assert settings.callback_token == ""
    assert settings.max_concurrent_messages == 10
    assert settings.pattern_timeout_seconds == 5.0
    assert settings.use_tls is False
    assert settings.mailbox_names == ()


def test_settings_missing_callback_url(monkeypatch):
    """Callback URL is required."""
    monkeypatch.delenv("CALLBACK_URL")
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_validation_callback_url(monkeypatch):
    """Callback URL must be http(s)."""
    monkeypatch.setenv("CALLBACK_URL", "ftp://example.com/cb")
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_validation_port(monkeypatch):
    """Test port validation."""
    monkeypatch.setenv("PORT", "99999")
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_validation_log_level(monkeypatch):
    """Test log level validation."""
    monkeypatch.setenv("LOG_LEVEL", "INVALID")
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_log_level_normalized(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert get_settings().log_level == "DEBUG"


def test_settings_log_json(monkeypatch):
    monkeypatch.setenv("LOG_JSON", "true")
    assert get_settings().log_json is True


def test_settings_validation_concurrency(monkeypatch):
    monkeypatch.setenv("MAX_CONCURRENT_MESSAGES", "0")
    with pytest.raises(ValidationError):
        get_settings()


def test_mailbox_names_parsed(monkeypatch):
    """Mailboxes are a comma-separated list."""
    monkeypatch.setenv("MAILBOXES", "transactions, Alerts,,")
    assert get_settings().mailbox_names == ("transactions", "Alerts")


def test_settings_singleton():
    """Test settings singleton behavior."""
    settings1 = get_settings()
    settings2 = get_settings()
    assert settings1 is settings2


def test_settings_are_immutable():
    settings = get_settings()
    with pytest.raises(ValidationError):
        settings.callback_url = "http://elsewhere"


def test_validate_tls_disabled_is_noop():
    get_settings().validate_tls()


def test_validate_tls_missing_files(monkeypatch):
    """TLS enabled without cert/key is a startup error."""
    monkeypatch.setenv("USE_TLS", "true")
    with pytest.raises(TransportConfigError):
        get_settings().validate_tls()


def test_validate_tls_nonexistent_cert(monkeypatch, tmp_path):
    key = tmp_path / "key.pem"
    key.write_text("key")
    monkeypatch.setenv("USE_TLS", "true")
    monkeypatch.setenv("TLS_CERT_FILE", str(tmp_path / "missing.pem"))
    monkeypatch.setenv("TLS_KEY_FILE", str(key))
    with pytest.raises(TransportConfigError) as exc_info:
        get_settings().validate_tls()
    assert "cert file" in exc_info.value.message


def test_validate_tls_with_files(monkeypatch, tmp_path):
    cert = tmp_path / "cert.pem"
    key = tmp_path / "key.pem"
    cert.write_text("cert")
    key.write_text("key")
    monkeypatch.setenv("USE_TLS", "true")
    monkeypatch.setenv("TLS_CERT_FILE", str(cert))
    monkeypatch.setenv("TLS_KEY_FILE", str(key))
    get_settings().validate_tls()


def test_settings_constructed_directly():
    """Settings can be built by field name for wiring in tests."""
    settings = Settings(callback_url="https://cb.example/notify", mailboxes="tx")
    assert settings.callback_url == "https://cb.example/notify"
    assert settings.mailbox_names == ("tx",)
