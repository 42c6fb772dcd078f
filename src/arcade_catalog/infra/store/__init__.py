from __future__ import annotations

from .base import RecordStore
from .sqlite_store import SQLiteRecordStore, is_supported_table

__all__ = [
    "RecordStore",
    "SQLiteRecordStore",
    "is_supported_table",
]
