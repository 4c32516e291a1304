"""
Main entry point for the transaction relay service.

This module loads configuration, validates templates and TLS material,
and starts the inbound FastAPI server.
"""
import sys
from pathlib import Path

# Add project root to Python path for module imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

from core.config import get_settings
from core.exceptions import ConfigurationError
from core.logger import setup_logger

# Load environment variables from .env file
_env_file = PROJECT_ROOT / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    print("Warning: .env file not found. Using environment variables or defaults.")

logger = setup_logger(__name__)


def main():
    """Main application entry point."""
    try:
        # Load and validate configuration
        settings = get_settings()
        settings.validate_tls()

        import uvicorn
        from app.api import create_app
        from core.templates import TemplateRegistry

        # Fail fast on a bad template file before the listener starts
        registry = TemplateRegistry.from_file(settings.templates_file)

        logger.info("Starting Transaction Relay Service")
        logger.info(f"Templates: {len(registry)} from {settings.templates_file}")
        logger.info(f"Mailboxes: {', '.join(settings.mailbox_names) or '(none)'}")
        logger.info(f"Callback URL: {settings.callback_url}")
        logger.info(f"Log Level: {settings.log_level}")
        logger.info(f"JSON Logs: {settings.log_json}")
        logger.info(f"Max Concurrent Messages: {settings.max_concurrent_messages}")
        logger.info(f"Database: {settings.database_path}")

        if not settings.mailbox_names:
            logger.warning("No mailboxes configured; every inbound message will be rejected")

        app = create_app(settings, registry=registry)

        logger.info(f"Starting server on {settings.host}:{settings.port} (TLS: {settings.use_tls})")

        uvicorn.run(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
            ssl_certfile=settings.tls_cert_file if settings.use_tls else None,
            ssl_keyfile=settings.tls_key_file if settings.use_tls else None,
            ssl_keyfile_password=settings.tls_key_passphrase if settings.use_tls else None,
        )

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        if e.details:
            logger.error(f"Details: {e.details}")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Failed to start application: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
