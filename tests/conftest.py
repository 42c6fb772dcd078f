from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Shared fixtures for building encoded records and temporary catalog stores.
"""

import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Generator

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)

from arcade_catalog.core.codec.keyvalues_codec import encode  # noqa: E402
from arcade_catalog.domain.keyvalues import KeyValues, ValueType  # noqa: E402
from arcade_catalog.infra.store import SQLiteRecordStore  # noqa: E402


# -----------------------------------------------------------------------------
# Tree Builders
# -----------------------------------------------------------------------------
def fill_node(node: KeyValues, fields: Dict[str, Any]) -> KeyValues:
    """
    Populate ``node`` from a nested dictionary.

    str/int/float values become scalars, dicts become subsections.
    """
    for key, value in fields.items():
        if isinstance(value, dict):
            child = node.append_child(KeyValues(key, ValueType.SUBSECTION))
            fill_node(child, value)
        elif isinstance(value, bool):
            node.set_bool(key, value)
        elif isinstance(value, int):
            node.set_int(key, value)
        elif isinstance(value, float):
            node.set_float(key, value)
        else:
            node.set_string(key, value)
    return node


def build_record(wrapper: str, fields: Dict[str, Any]) -> bytes:
    """Encode a record whose data section ``wrapper`` holds ``fields``."""
    root = KeyValues("root", ValueType.SUBSECTION)
    section = root.append_child(KeyValues(wrapper, ValueType.SUBSECTION))
    fill_node(section, fields)
    return encode(root)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def record_factory() -> Callable[[str, Dict[str, Any]], bytes]:
    """Expose :func:`build_record` to tests."""
    return build_record


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "catalog.db"


@pytest.fixture
def store(db_path: Path) -> Generator[SQLiteRecordStore, None, None]:
    """
    Provide an empty on-disk catalog store in a temporary directory.

    Yields:
        SQLiteRecordStore: Store with every entry type table created.
    """
    s = SQLiteRecordStore(str(db_path))
    yield s
    s.close()
