"""
Savor AI Core Module
Central configuration and database utilities
"""

from .config import settings, get_settings
from .database import Base, get_db, get_db_session, init_db, close_db, create_tables

__all__ = [
    "settings",
    "get_settings",
    "Base",
    "get_db",
    "get_db_session",
    "init_db",
    "close_db",
    "create_tables",
]
