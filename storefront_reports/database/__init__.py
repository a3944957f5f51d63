"""
Database Module
"""
from .connection import (
    check_database_health,
    close_database,
    create_tables,
    get_db,
    init_database,
    read_session,
)
from .models import Base, TABLE_MODELS

__all__ = [
    "init_database",
    "close_database",
    "create_tables",
    "get_db",
    "read_session",
    "check_database_health",
    "Base",
    "TABLE_MODELS",
]
