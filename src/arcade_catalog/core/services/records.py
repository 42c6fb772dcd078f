from __future__ import annotations

"""
Record Loading Helpers.

Shared plumbing between the maintenance services: fetching and decoding a
record, locating its data section, and writing a mutated tree back.
"""

import logging
from typing import Optional

from arcade_catalog.core.codec.keyvalues_codec import decode, encode
from arcade_catalog.domain.constants import LOCAL_SECTION
from arcade_catalog.domain.keyvalues import KeyValues
from arcade_catalog.infra.store import RecordStore

logger = logging.getLogger(__name__)


def load_tree(store: RecordStore, table: str, record_id: str) -> Optional[KeyValues]:
    """
    Fetch and decode one record.

    Returns:
        Optional[KeyValues]: The decoded root, or None when the record is
        missing or empty.
    """
    raw = store.get(table, record_id)
    if not raw:
        return None
    return decode(raw)


def save_tree(store: RecordStore, table: str, record_id: str, root: KeyValues) -> bool:
    """Encode ``root`` and persist it in place of the stored record."""
    return store.put(table, record_id, encode(root))


def data_section(root: KeyValues) -> Optional[KeyValues]:
    """
    Locate the node carrying a record's content fields.

    The root's first child wraps the record; when that wrapper holds a
    'local' child (older item records), the fields live there instead.
    """
    section = root.first_child()
    if section is None:
        return None
    local = section.find_child(LOCAL_SECTION)
    return local if local is not None else section


def extract_title(raw: bytes, fallback: str = "") -> str:
    """Best-effort read of a record's title straight from its encoded bytes."""
    if not raw:
        return fallback
    section = data_section(decode(raw))
    if section is None:
        return fallback
    return section.get_string("title", fallback) or fallback
