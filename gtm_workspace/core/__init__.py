"""Core utilities and configuration."""

from gtm_workspace.core.config import Settings, get_settings
from gtm_workspace.core.database import Base, db_manager, get_session
from gtm_workspace.core.logging import db_logger, generation_logger, get_logger, setup_logging

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "Base",
    "db_manager",
    "get_session",
    # Logging
    "db_logger",
    "generation_logger",
    "get_logger",
    "setup_logging",
]
