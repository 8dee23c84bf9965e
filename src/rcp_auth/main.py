"""RCP Auth bootstrap

Configures logging and owns the process-wide AuthManager. The daemon calls
configure_logging() once at startup and get_auth_manager() wherever it needs
to authenticate.
"""

import asyncio
import logging
import sys
from typing import Optional

import structlog

from rcp_auth.config.settings import Settings, get_settings
from rcp_auth.core.auth import AuthManager

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Global manager instance (built on first call)
_manager_instance: Optional[AuthManager] = None
_manager_lock = asyncio.Lock()


def json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering stdlib records as one JSON object per line"""
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ],
    )


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure logging for the auth layer.

    Root stays at INFO; the ``rcp_auth`` loggers follow settings.log_level.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    if settings.log_format.lower() == "json":
        handler.setFormatter(json_formatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.INFO)
    root.addHandler(handler)

    logging.getLogger("rcp_auth").setLevel(level)


async def get_auth_manager() -> AuthManager:
    """Get the initialized AuthManager for this process.

    Built from get_settings() and the TOML file it points at.

    Raises:
        AuthError: If the configured provider cannot be created
    """
    global _manager_instance

    # Return cached instance
    if _manager_instance is not None:
        return _manager_instance

    async with _manager_lock:
        if _manager_instance is None:
            settings = get_settings()
            logger.info(f"Starting {settings.service_name} v{settings.service_version}")
            logger.info(f"Environment: {settings.environment}")

            manager = AuthManager(settings.load_auth_config(), settings=settings)
            await manager.initialize()
            _manager_instance = manager

    return _manager_instance


def reset_auth_manager() -> None:
    """Reset the global manager instance (for testing)."""
    global _manager_instance, _manager_lock
    _manager_instance = None
    _manager_lock = asyncio.Lock()
