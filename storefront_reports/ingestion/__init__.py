"""
Data Ingestion Module
"""
from .seed_db import prepare_records, seed_tables

__all__ = [
    "prepare_records",
    "seed_tables",
]
