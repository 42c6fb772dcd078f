from __future__ import annotations

"""
Catalog Maintenance Tools.

Bulk trimming of oversized text fields, discovery of unusually large
records, and physical database upkeep (statistics and compaction).
"""

import logging
from typing import Iterable, List

from arcade_catalog.core.codec.keyvalues_codec import text_to_wire, wire_to_text
from arcade_catalog.core.services.records import (
    data_section,
    extract_title,
    load_tree,
    save_tree,
)
from arcade_catalog.domain.constants import DEFAULT_SCAN_LIMIT, TRIMMABLE_FIELDS
from arcade_catalog.domain.keyvalues import KeyValues, ValueType
from arcade_catalog.domain.maintenance_models import (
    CompactionResult,
    DatabaseStats,
    LargeEntry,
    RecordOutcome,
    create_failure,
    create_success,
)
from arcade_catalog.infra.store import RecordStore, SQLiteRecordStore, is_supported_table

logger = logging.getLogger(__name__)

NO_TRIM_NEEDED = "No trimming needed."

# -----------------------------------------------------------------------------
# TEXT TRIMMING
# -----------------------------------------------------------------------------

def trim_fields(
        store: RecordStore,
        table: str,
        ids: Iterable[str],
        max_length: int,
) -> List[RecordOutcome]:
    """
    Truncate the title and description of each record to ``max_length`` bytes.

    Records already within the limit are reported as successful with an
    informational note and are not rewritten.

    Args:
        store: Record store to read from and write to.
        table: Entry type table name.
        ids: Record identifiers to process.
        max_length: Maximum encoded length, in bytes, of each trimmed field.

    Returns:
        List[RecordOutcome]: One outcome per requested id.
    """
    id_list = list(ids)

    if not is_supported_table(table):
        return [create_failure(rid, f"Unknown entry type '{table}'.") for rid in id_list]
    if max_length < 1:
        return [create_failure(rid, f"Invalid maximum length: {max_length}.") for rid in id_list]

    outcomes: List[RecordOutcome] = []
    for record_id in id_list:
        outcomes.append(_trim_record(store, table, record_id, max_length))

    trimmed = sum(1 for o in outcomes if o.success and not o.message)
    logger.info(f"Trim pass on '{table}': {trimmed} of {len(outcomes)} records rewritten.")
    return outcomes


def trim_text(value: str, max_length: int) -> str:
    """Cut ``value`` to at most ``max_length`` encoded bytes, ignoring character boundaries."""
    raw = text_to_wire(value)
    if len(raw) <= max_length:
        return value
    return wire_to_text(raw[:max_length])

# -----------------------------------------------------------------------------
# LARGE RECORD DISCOVERY
# -----------------------------------------------------------------------------

def find_large(
        store: RecordStore,
        table: str,
        min_size_bytes: int,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
) -> List[LargeEntry]:
    """
    List records whose encoded size exceeds ``min_size_bytes``, largest first.

    Args:
        store: Record store to query.
        table: Entry type table name.
        min_size_bytes: Exclusive size threshold.
        scan_limit: Maximum number of records reported.

    Returns:
        List[LargeEntry]: Matching records with a display title.
    """
    if not is_supported_table(table):
        logger.error(f"Large record scan refused for unknown entry type '{table}'.")
        return []
    if min_size_bytes <= 0:
        logger.warning(f"Invalid minimum size: {min_size_bytes}.")
        return []

    entries: List[LargeEntry] = []
    for record_id, size in store.find_large(table, min_size_bytes, scan_limit):
        title = extract_title(store.get(table, record_id) or b"", fallback=record_id)
        entries.append(LargeEntry(id=record_id, title=title, size_bytes=size))

    logger.info(f"Found {len(entries)} records in '{table}' over {min_size_bytes} bytes.")
    return entries

# -----------------------------------------------------------------------------
# DATABASE UPKEEP
# -----------------------------------------------------------------------------

def database_stats(store: SQLiteRecordStore) -> DatabaseStats:
    stats = store.stats()
    logger.debug(
        f"Database stats: {stats.file_size_bytes} bytes, {stats.page_count} pages, "
        f"{stats.free_pages} free ({stats.fragmentation_percent:.2f}% fragmentation)"
    )
    return stats


def compact_database(store: SQLiteRecordStore) -> CompactionResult:
    """Run VACUUM and report how much space was reclaimed."""
    logger.info("Starting database compaction...")
    result = store.compact()
    if result.ok:
        logger.info(
            f"Compaction complete: {result.size_before} -> {result.size_after} bytes "
            f"({result.bytes_saved} saved)."
        )
    else:
        logger.error(f"Compaction failed: {result.error}")
    return result

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _trim_record(store: RecordStore, table: str, record_id: str, max_length: int) -> RecordOutcome:
    root = load_tree(store, table, record_id)
    if root is None:
        return create_failure(record_id, "Record not found.")

    section = data_section(root)
    if section is None:
        return create_failure(record_id, "Record has no data section.")

    modified = False
    for field_name in TRIMMABLE_FIELDS:
        modified = _trim_field(section, field_name, max_length) or modified

    if not modified:
        return create_success(record_id, message=NO_TRIM_NEEDED)

    if not save_tree(store, table, record_id, root):
        logger.warning(f"Trim: failed to write {table}/{record_id}.")
        return create_failure(record_id, "Failed to write the updated record.")

    return create_success(record_id)


def _trim_field(section: KeyValues, field_name: str, max_length: int) -> bool:
    node = section.find_child(field_name)
    if node is None or node.value_type != ValueType.STRING:
        return False

    value = node.get_string()
    trimmed = trim_text(value, max_length)
    if trimmed == value:
        return False

    node.set_string(None, trimmed)
    return True
