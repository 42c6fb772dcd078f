from __future__ import annotations

"""
SQLite Record Store.

Provides a thread-safe, SQLite-backed implementation of the record store
boundary. Each supported entry type lives in its own ``(id, value)`` table
holding the encoded record bytes. Storage errors are logged and converted to
failure return values (Fail-Safe) so batch maintenance keeps running.
"""

import logging
import os
import sqlite3
import threading
from typing import Iterator, List, Optional, Tuple

from arcade_catalog.domain.constants import SUPPORTED_ENTRY_TYPES
from arcade_catalog.domain.maintenance_models import CompactionResult, DatabaseStats
from arcade_catalog.infra.store.base import Record, RecordStore

logger = logging.getLogger(__name__)

_STREAM_BATCH_SIZE = 500


def is_supported_table(table: str) -> bool:
    """Check a table name against the catalog entry types."""
    return table in SUPPORTED_ENTRY_TYPES


class SQLiteRecordStore(RecordStore):
    """
    Persists catalog records in a local SQLite database.

    Table names are only ever interpolated into SQL after validation against
    the supported entry types.
    """

    def __init__(self, db_path: str, *, create_tables: bool = True) -> None:
        """
        Open the database and optionally create the entry type tables.

        Args:
            db_path: Filesystem path of the database (or ':memory:').
            create_tables: Create any missing entry type table.
        """
        self._db_path = db_path
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
            logger.debug(f"SQLiteRecordStore: Opened database at {db_path}")
        except sqlite3.Error as e:
            logger.error(f"SQLiteRecordStore: Failed to open '{db_path}': {e}")
            return

        if create_tables:
            for table in SUPPORTED_ENTRY_TYPES:
                self.ensure_table(table)

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> SQLiteRecordStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    def ensure_table(self, table: str) -> bool:
        """Create the (id, value) table for ``table`` if it does not exist."""
        if not self._check(table):
            return False
        try:
            with self._lock:
                self._conn.execute(
                    f'CREATE TABLE IF NOT EXISTS "{table}" (id TEXT PRIMARY KEY, value BLOB)'
                )
                self._conn.commit()
            return True
        except sqlite3.Error as e:
            logger.warning(f"SQLiteRecordStore: Could not create table '{table}': {e}")
            return False

    def has_table(self, table: str) -> bool:
        if not self._check(table):
            return False
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (table,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"SQLiteRecordStore: Table lookup failed for {table}: {e}")
            return False
        return row is not None

    # -------------------------------------------------------------------------
    # Record access
    # -------------------------------------------------------------------------

    def get(self, table: str, record_id: str) -> Optional[bytes]:
        if not self._check(table):
            return None
        try:
            with self._lock:
                row = self._conn.execute(
                    f'SELECT value FROM "{table}" WHERE id = ?', (record_id,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"SQLiteRecordStore: Read error for {table}/{record_id}: {e}")
            return None

        if row is None or row[0] is None:
            return None
        return _as_bytes(row[0])

    def put(self, table: str, record_id: str, value: bytes) -> bool:
        if not self._check(table):
            return False
        try:
            with self._lock:
                self._conn.execute(
                    f'INSERT OR REPLACE INTO "{table}" (id, value) VALUES (?, ?)',
                    (record_id, sqlite3.Binary(value)),
                )
                self._conn.commit()
            return True
        except sqlite3.Error as e:
            logger.warning(f"SQLiteRecordStore: Write error for {table}/{record_id}: {e}")
            return False

    def delete(self, table: str, record_id: str) -> bool:
        if not self._check(table):
            return False
        try:
            with self._lock:
                cursor = self._conn.execute(
                    f'DELETE FROM "{table}" WHERE id = ?', (record_id,)
                )
                self._conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            logger.warning(f"SQLiteRecordStore: Delete error for {table}/{record_id}: {e}")
            return False

    def list(self, table: str, limit: int) -> List[Record]:
        if not self._check(table) or limit <= 0:
            return []
        try:
            with self._lock:
                rows = self._conn.execute(
                    f'SELECT id, value FROM "{table}" ORDER BY id LIMIT ?', (limit,)
                ).fetchall()
        except sqlite3.Error as e:
            logger.warning(f"SQLiteRecordStore: List error for {table}: {e}")
            return []
        return [(str(rid), _as_bytes(value)) for rid, value in rows if value is not None]

    def iter_records(self, table: str) -> Iterator[Record]:
        """
        Stream a table in id order using keyset pages.

        The lock is released between pages, so callers may use the store
        while iterating.
        """
        if not self._check(table):
            return

        last_id: Optional[str] = None
        while True:
            try:
                with self._lock:
                    if last_id is None:
                        rows = self._conn.execute(
                            f'SELECT id, value FROM "{table}" ORDER BY id LIMIT ?',
                            (_STREAM_BATCH_SIZE,),
                        ).fetchall()
                    else:
                        rows = self._conn.execute(
                            f'SELECT id, value FROM "{table}" WHERE id > ? ORDER BY id LIMIT ?',
                            (last_id, _STREAM_BATCH_SIZE),
                        ).fetchall()
            except sqlite3.Error as e:
                logger.warning(f"SQLiteRecordStore: Stream error for {table}: {e}")
                return

            if not rows:
                return

            for rid, value in rows:
                if value is not None:
                    yield str(rid), _as_bytes(value)

            last_id = str(rows[-1][0])
            if len(rows) < _STREAM_BATCH_SIZE:
                return

    def find_large(self, table: str, min_size_bytes: int, limit: int) -> List[Tuple[str, int]]:
        if not self._check(table):
            return []
        try:
            with self._lock:
                rows = self._conn.execute(
                    f'SELECT id, LENGTH(value) AS blob_size FROM "{table}" '
                    f'WHERE LENGTH(value) > ? ORDER BY blob_size DESC LIMIT ?',
                    (min_size_bytes, limit),
                ).fetchall()
        except sqlite3.Error as e:
            logger.warning(f"SQLiteRecordStore: Size query failed for {table}: {e}")
            return []
        return [(str(rid), int(size)) for rid, size in rows]

    # -------------------------------------------------------------------------
    # Database tooling
    # -------------------------------------------------------------------------

    def stats(self) -> DatabaseStats:
        """Collect file size and page statistics. Returns zeros when unavailable."""
        if self._conn is None:
            return DatabaseStats()

        try:
            with self._lock:
                page_count = self._pragma("page_count")
                page_size = self._pragma("page_size")
                free_pages = self._pragma("freelist_count")
                file_path = self._main_file_path()
        except sqlite3.Error as e:
            logger.warning(f"SQLiteRecordStore: Stats query failed: {e}")
            return DatabaseStats()

        file_size = 0
        if file_path and os.path.exists(file_path):
            file_size = os.path.getsize(file_path)

        fragmentation = (free_pages / page_count * 100.0) if page_count > 0 else 0.0
        return DatabaseStats(
            file_path=file_path,
            file_size_bytes=file_size,
            page_count=page_count,
            page_size=page_size,
            free_pages=free_pages,
            fragmentation_percent=fragmentation,
        )

    def compact(self) -> CompactionResult:
        """
        Rebuild the database file with VACUUM to reclaim free pages.
        """
        if self._conn is None:
            return CompactionResult(ok=False, error="No database connection available.")

        before = self.stats()
        try:
            with self._lock:
                self._conn.commit()
                # VACUUM must run outside of an active transaction
                self._conn.execute("VACUUM")
        except sqlite3.Error as e:
            logger.error(f"SQLiteRecordStore: VACUUM failed: {e}")
            return CompactionResult(ok=False, error=str(e), size_before=before.file_size_bytes)

        after = self.stats()
        return CompactionResult(
            ok=True,
            size_before=before.file_size_bytes,
            size_after=after.file_size_bytes,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check(self, table: str) -> bool:
        if self._conn is None:
            logger.warning("SQLiteRecordStore: No database connection available.")
            return False
        if not is_supported_table(table):
            logger.warning(f"SQLiteRecordStore: Unknown entry type '{table}' rejected.")
            return False
        return True

    def _pragma(self, name: str) -> int:
        row = self._conn.execute(f"PRAGMA {name}").fetchone()
        return int(row[0]) if row else 0

    def _main_file_path(self) -> str:
        for _, db_name, file_path in self._conn.execute("PRAGMA database_list").fetchall():
            if db_name == "main":
                return file_path or ""
        return ""


def _as_bytes(value: object) -> bytes:
    """Normalize a stored value to bytes; TEXT columns are read as UTF-8."""
    if isinstance(value, str):
        return value.encode("utf-8", "surrogateescape")
    return bytes(value)  # type: ignore[arg-type]
