from __future__ import annotations

"""
Record Store Boundary.

Declares the key/value contract the maintenance services consume: one
opaque encoded blob per (table, id). Implementations report failures through
their return values and never raise for storage problems.
"""

from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, Tuple

Record = Tuple[str, bytes]


class RecordStore(ABC):
    """
    Abstract base class for catalog record storage backends.
    """

    @abstractmethod
    def get(self, table: str, record_id: str) -> Optional[bytes]:
        """
        Fetch one record.

        Args:
            table: Entry type table name.
            record_id: Record identifier.

        Returns:
            Optional[bytes]: Raw encoded bytes, or None when absent.
        """

    @abstractmethod
    def put(self, table: str, record_id: str, value: bytes) -> bool:
        """Insert or replace one record. Returns False when the write is rejected."""

    @abstractmethod
    def delete(self, table: str, record_id: str) -> bool:
        """Remove one record. Returns False when nothing was deleted."""

    @abstractmethod
    def list(self, table: str, limit: int) -> List[Record]:
        """Return up to ``limit`` records of ``table`` in ascending id order."""

    @abstractmethod
    def iter_records(self, table: str) -> Iterator[Record]:
        """Stream every record of ``table`` in ascending id order."""

    @abstractmethod
    def find_large(self, table: str, min_size_bytes: int, limit: int) -> List[Tuple[str, int]]:
        """Return (id, byte length) for records larger than the threshold, biggest first."""

    @abstractmethod
    def has_table(self, table: str) -> bool:
        """True when ``table`` is a supported entry type present in the store."""
