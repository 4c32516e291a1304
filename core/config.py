"""
Centralized configuration management.
All environment variables and settings are defined here.
"""
from pathlib import Path
from typing import Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from core.exceptions import TransportConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="Transaction Relay Service", alias="APP_NAME")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8025)
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    # Callback
    callback_url: str = Field(..., alias="CALLBACK_URL")
    callback_token: str = Field(default="", alias="CALLBACK_TOKEN")

    # Inbound
    mailboxes: str = Field(default="", alias="MAILBOXES")
    inbound_secret: Optional[str] = Field(default=None, alias="INBOUND_SECRET")
    templates_file: str = Field(default="templates.yaml", alias="TEMPLATES_FILE")

    # Processing
    max_concurrent_messages: int = Field(default=10, alias="MAX_CONCURRENT_MESSAGES")
    pattern_timeout_seconds: float = Field(default=5.0, alias="PATTERN_TIMEOUT_SECONDS")
    drain_on_shutdown: bool = Field(default=True, alias="DRAIN_ON_SHUTDOWN")
    shutdown_drain_timeout: float = Field(default=30.0, alias="SHUTDOWN_DRAIN_TIMEOUT")

    # Storage
    database_path: str = Field(default="transactions.db", alias="DATABASE_PATH")

    # TLS for the inbound listener
    use_tls: bool = Field(default=False, alias="USE_TLS")
    tls_cert_file: Optional[str] = Field(default=None, alias="TLS_CERT_FILE")
    tls_key_file: Optional[str] = Field(default=None, alias="TLS_KEY_FILE")
    tls_key_passphrase: Optional[str] = Field(default=None, alias="TLS_KEY_PASSPHRASE")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v_upper

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        """Validate port is in valid range."""
        if not (1 <= v <= 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("callback_url")
    @classmethod
    def validate_callback_url(cls, v):
        """Callback must be an absolute http(s) URL."""
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("Callback URL must start with http:// or https://")
        return v

    @field_validator("max_concurrent_messages")
    @classmethod
    def validate_concurrency(cls, v):
        """Validate concurrency setting."""
        if v < 1:
            raise ValueError("Max concurrent messages must be at least 1")
        if v > 100:
            raise ValueError("Max concurrent messages should not exceed 100")
        return v

    @field_validator("pattern_timeout_seconds", "shutdown_drain_timeout")
    @classmethod
    def validate_positive_timeout(cls, v):
        if v <= 0:
            raise ValueError("Timeouts must be greater than zero")
        return v

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True
        frozen = True

    @property
    def mailbox_names(self) -> Tuple[str, ...]:
        """Mailbox local parts accepted by the inbound listener."""
        return tuple(name.strip() for name in self.mailboxes.split(",") if name.strip())

    def ensure_directories(self) -> None:
        """Ensure the database directory exists."""
        Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)

    def validate_tls(self) -> None:
        """
        Check TLS material before the listener starts.

        Raises:
            TransportConfigError: If TLS is enabled and the cert or key is unusable
        """
        if not self.use_tls:
            return

        if not self.tls_cert_file or not self.tls_key_file:
            raise TransportConfigError(
                "certificate or key file missing",
                details={"cert_file": self.tls_cert_file, "key_file": self.tls_key_file},
            )

        for label, path in (("cert_file", self.tls_cert_file), ("key_file", self.tls_key_file)):
            if not Path(path).is_file():
                raise TransportConfigError(
                    f"TLS {label.replace('_', ' ')} not found: {path}",
                    details={label: path},
                )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.ensure_directories()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
