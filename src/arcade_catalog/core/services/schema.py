from __future__ import annotations

"""
Schema Inference Service.

Builds the set of dotted field paths observed across the records of one
table. For instance records, per-object and per-material identifiers are
collapsed into placeholder segments so heterogeneous records share a shape.
"""

import logging
from typing import List, Optional, Set

from arcade_catalog.core.codec.keyvalues_codec import decode
from arcade_catalog.core.services.records import data_section
from arcade_catalog.domain.constants import (
    DEFAULT_SCAN_LIMIT,
    INSTANCE_PLACEHOLDERS,
    INSTANCES_TABLE,
)
from arcade_catalog.domain.keyvalues import KeyValues
from arcade_catalog.infra.store import RecordStore, is_supported_table

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def infer_schema(
        store: RecordStore,
        table: str,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
) -> List[str]:
    """
    Infer the generalized field paths used by the records of ``table``.

    Only the first ``scan_limit`` records (ascending id) are examined.

    Args:
        store: Record store to read from.
        table: Entry type table name.
        scan_limit: Maximum number of records to examine.

    Returns:
        List[str]: Unique dotted paths, sorted lexicographically.
    """
    if not is_supported_table(table):
        logger.error(f"Schema inference refused for unknown entry type '{table}'.")
        return []

    records = store.list(table, scan_limit)
    logger.info(f"Inferring schema for '{table}' from {len(records)} records.")

    use_placeholders = table == INSTANCES_TABLE
    paths: Set[str] = set()

    for record_id, raw in records:
        section = data_section(decode(raw))
        if section is None:
            logger.debug(f"Record {table}/{record_id} has no data section; skipped.")
            continue
        collect_paths(section, paths, use_placeholders=use_placeholders)

    return sorted(paths)


def collect_paths(
        node: KeyValues,
        paths: Set[str],
        parent_path: str = "",
        use_placeholders: bool = False,
) -> None:
    """
    Recursively add the dotted path of every field below ``node`` to ``paths``.

    Args:
        node: Current container.
        paths: Accumulator set.
        parent_path: Dotted path of ``node`` ('' for the data section itself).
        use_placeholders: Apply the instance identifier placeholders.
    """
    for child in node.children():
        path = _join(parent_path, child.name)
        paths.add(path)

        placeholder = _placeholder_for(parent_path, child.name) if use_placeholders else None
        if placeholder is None:
            collect_paths(child, paths, path, use_placeholders)
            continue

        # Children here are per-record identifiers: record the shape, not the id
        generalized = _join(path, placeholder)
        for identified in child.children():
            paths.add(generalized)
            collect_paths(identified, paths, generalized, use_placeholders)

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _join(parent_path: str, name: str) -> str:
    return f"{parent_path}.{name}" if parent_path else name


def _placeholder_for(parent_path: str, name: str) -> Optional[str]:
    return INSTANCE_PLACEHOLDERS.get((parent_path, name))
