"""
Data Sources
"""
from .base import TABLES, DataSource
from .memory import MemoryDataSource
from .sql import SqlDataSource

__all__ = ["TABLES", "DataSource", "MemoryDataSource", "SqlDataSource"]
