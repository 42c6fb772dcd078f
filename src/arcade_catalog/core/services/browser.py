from __future__ import annotations

"""
Catalog Browsing Service.

Read-only views over the catalog: supported entry types, single records as
plain dictionaries, instance sections for anomaly review, and case-insensitive
title search.
"""

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from arcade_catalog.core.codec.keyvalues_codec import decode
from arcade_catalog.core.services.records import data_section, load_tree
from arcade_catalog.domain.constants import (
    DEFAULT_SEARCH_LIMIT,
    INSTANCES_TABLE,
    SUPPORTED_ENTRY_TYPES,
)
from arcade_catalog.domain.keyvalues import KeyValues, ValueType
from arcade_catalog.infra.store import RecordStore, is_supported_table

logger = logging.getLogger(__name__)

_PROGRESS_EVERY = 5000

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def list_entry_types() -> List[str]:
    return list(SUPPORTED_ENTRY_TYPES)


def keyvalues_to_dict(node: KeyValues) -> Dict[str, Any]:
    """
    Convert the children of ``node`` into a nested plain dictionary.

    Containers become dicts and scalars their Python value. Empty strings and
    empty containers are left out, and the first of several same-named
    children wins.
    """
    out: Dict[str, Any] = {}
    seen: Set[str] = set()
    for child in node.children():
        if child.name in seen:
            continue
        seen.add(child.name)
        if child.child_count() > 0:
            nested = keyvalues_to_dict(child)
            if nested:
                out[child.name] = nested
        elif child.value_type == ValueType.STRING:
            if child.get_string():
                out[child.name] = child.get_string()
        elif child.value_type == ValueType.INT:
            out[child.name] = child.get_int()
        elif child.value_type == ValueType.FLOAT:
            out[child.name] = child.get_float()
    return out


def get_entry(store: RecordStore, table: str, record_id: str) -> Optional[Dict[str, Any]]:
    """
    Return the data section of one record as a dictionary.

    Returns:
        Optional[Dict[str, Any]]: The record fields, or None when the record
        is missing or carries no data section.
    """
    if not is_supported_table(table):
        logger.error(f"Unknown entry type '{table}'.")
        return None

    root = load_tree(store, table, record_id)
    if root is None:
        return None
    section = data_section(root)
    return keyvalues_to_dict(section) if section is not None else None


def get_instance_keyvalues(store: RecordStore, record_id: str) -> Optional[Dict[str, Any]]:
    """Return the full instance section of an instance record, unexpected keys included."""
    root = load_tree(store, INSTANCES_TABLE, record_id)
    if root is None:
        return None
    section = root.first_child()
    return keyvalues_to_dict(section) if section is not None else None


def search_by_title(
        store: RecordStore,
        table: str,
        term: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
) -> List[Tuple[str, str]]:
    """
    Find records whose title contains ``term``, ignoring case.

    The table is streamed in id order and the scan stops once ``limit``
    matches are found.

    Args:
        store: Record store to read from.
        table: Entry type table name.
        term: Substring to look for.
        limit: Maximum number of matches.

    Returns:
        List[Tuple[str, str]]: (id, title) pairs in id order.
    """
    if not is_supported_table(table) or limit <= 0:
        return []

    needle = term.lower()
    matches: List[Tuple[str, str]] = []
    checked = 0

    for record_id, raw in store.iter_records(table):
        checked += 1
        section = data_section(decode(raw))
        title = section.get_string("title") if section is not None else ""

        if title and needle in title.lower():
            matches.append((record_id, title))
            if len(matches) >= limit:
                break

        if checked % _PROGRESS_EVERY == 0:
            logger.debug(f"Search progress: checked {checked} records, found {len(matches)}.")

    logger.info(f"Search for '{term}' in '{table}': {len(matches)} matches ({checked} checked).")
    return matches
