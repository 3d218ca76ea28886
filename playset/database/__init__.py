"""Persistence layer — adapter interface and the SQLite implementation."""

from playset.database.adapter import PersistenceAdapter
from playset.database.db_manager import DatabaseManager
from playset.database.design_repository import DesignRepository

__all__ = [
    "DatabaseManager",
    "DesignRepository",
    "PersistenceAdapter",
]
