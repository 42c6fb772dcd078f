from __future__ import annotations

"""
Maintenance Domain Data Models.

Defines the result objects exchanged between the maintenance services and
the interface layer. Every fallible operation reports through these models
instead of raising, so one bad record never aborts a batch.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# -----------------------------------------------------------------------------
# PER-RECORD OUTCOMES
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class RecordOutcome:
    """
    Result of one per-record mutation (trim, anomaly removal).

    Attributes:
        id: Record identifier.
        success: Whether the record ended in the requested state.
        error: Failure description, empty on success.
        message: Informational note (e.g. nothing needed changing).
        removed_keys: Keys deleted from the record, if any.
    """
    id: str
    success: bool
    error: str = ""
    message: str = ""
    removed_keys: List[str] = field(default_factory=list)


def create_failure(record_id: str, error: str) -> RecordOutcome:
    return RecordOutcome(id=record_id, success=False, error=error)


def create_success(record_id: str, message: str = "", removed_keys: Optional[List[str]] = None) -> RecordOutcome:
    return RecordOutcome(id=record_id, success=True, message=message, removed_keys=removed_keys or [])

# -----------------------------------------------------------------------------
# SCAN RESULTS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class AnomalyReport:
    """
    An instance record carrying keys outside the allow-list.

    Attributes:
        id: Record identifier.
        unexpected_keys: Offending top-level keys, in record order.
        key_count: Number of offending keys.
        generation: Value of 'generation', or -1 when absent.
        legacy: Value of 'legacy', or -1 when absent.
    """
    id: str
    unexpected_keys: List[str]
    key_count: int
    generation: int
    legacy: int


@dataclass(frozen=True)
class LargeEntry:
    """A record whose encoded size exceeds the requested threshold."""
    id: str
    title: str
    size_bytes: int

# -----------------------------------------------------------------------------
# MERGE RESULTS
# -----------------------------------------------------------------------------

MERGE_MERGED = "merged"
MERGE_SKIPPED = "skipped"
MERGE_OVERWRITTEN = "overwritten"
MERGE_FAILED = "failed"


@dataclass(frozen=True)
class MergeAction:
    """
    Decision taken for one source record during a merge.

    Attributes:
        id: Record identifier.
        action: One of merged/skipped/overwritten/failed.
        source_size: Byte length of the source record.
        target_size: Byte length of the existing target record (0 if absent).
        error: Write failure description, if any.
    """
    id: str
    action: str
    source_size: int
    target_size: int = 0
    error: str = ""


@dataclass
class MergeReport:
    """Running tally of a merge plus the per-record log."""
    table: str
    totals: Dict[str, int] = field(default_factory=lambda: {
        MERGE_MERGED: 0,
        MERGE_SKIPPED: 0,
        MERGE_OVERWRITTEN: 0,
        MERGE_FAILED: 0,
    })
    actions: List[MergeAction] = field(default_factory=list)
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error and self.totals.get(MERGE_FAILED, 0) == 0

    def record(self, action: MergeAction) -> None:
        self.totals[action.action] = self.totals.get(action.action, 0) + 1
        self.actions.append(action)

# -----------------------------------------------------------------------------
# DATABASE TOOLING
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class DatabaseStats:
    """
    Physical statistics of the backing database file.

    Attributes:
        file_path: Absolute database path (empty for in-memory stores).
        file_size_bytes: Size on disk.
        page_count: Total pages.
        page_size: Bytes per page.
        free_pages: Pages on the freelist.
        fragmentation_percent: free_pages / page_count * 100.
    """
    file_path: str = ""
    file_size_bytes: int = 0
    page_count: int = 0
    page_size: int = 0
    free_pages: int = 0
    fragmentation_percent: float = 0.0


@dataclass(frozen=True)
class CompactionResult:
    """Outcome of a VACUUM run with before/after file sizes."""
    ok: bool
    error: str = ""
    size_before: int = 0
    size_after: int = 0

    @property
    def bytes_saved(self) -> int:
        return self.size_before - self.size_after
