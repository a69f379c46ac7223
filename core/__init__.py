"""
Core utilities and configuration for the catalog enumeration system.

Modules:
    config: Application configuration and environment variable management
    database: Async engine and session factory helpers
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.database import create_engine, create_session_factory
    from core.exceptions import PlatformCommunicationError, SinkWriteError
    from core.logging import setup_logging

Example:
    setup_logging()

    engine = create_engine()
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        ...
"""

__all__ = [
    "config",
    "database",
    "exceptions",
    "logging",
]
