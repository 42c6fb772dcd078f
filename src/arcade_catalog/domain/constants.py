from __future__ import annotations

"""
Domain Constants and Static Data Structures.

Provides centralized access to catalog-wide constants: the supported entry
types (one store table each), the instance key allow-list, scan caps and the
placeholder segments used when generalizing schemas.
"""

from typing import Dict, FrozenSet, Tuple

CURRENT_CONFIG_VERSION = "1.0.0"

# -----------------------------------------------------------------------------
# ENTRY TYPES
# -----------------------------------------------------------------------------

SUPPORTED_ENTRY_TYPES: Tuple[str, ...] = (
    "items",
    "apps",
    "instances",
    "maps",
    "models",
    "platforms",
    "types",
)

INSTANCES_TABLE = "instances"

# Back-compatibility wrapper some item records carry around their fields
LOCAL_SECTION = "local"

# -----------------------------------------------------------------------------
# SCAN LIMITS
# -----------------------------------------------------------------------------

# Batch scans examine at most this many records; the rest are not visited
DEFAULT_SCAN_LIMIT = 10000
DEFAULT_SEARCH_LIMIT = 50
DEFAULT_TRIM_MAX_LENGTH = 512
DEFAULT_LARGE_MIN_SIZE = 64 * 1024

# -----------------------------------------------------------------------------
# INSTANCE RULES
# -----------------------------------------------------------------------------

ALLOWED_INSTANCE_KEYS: FrozenSet[str] = frozenset(
    {"generation", "info", "objects", "overrides", "legacy"}
)

# Reported for generation/legacy when the field is absent
MISSING_FIELD_SENTINEL = -1

TRIMMABLE_FIELDS: Tuple[str, ...] = ("title", "description")

# -----------------------------------------------------------------------------
# SCHEMA PLACEHOLDERS
# -----------------------------------------------------------------------------

OBJECT_ID_PLACEHOLDER = "[object_id]"
MATERIAL_ID_PLACEHOLDER = "[material_id]"

# (parent path, field name) -> placeholder for the per-record identifiers below it
INSTANCE_PLACEHOLDERS: Dict[Tuple[str, str], str] = {
    ("", "objects"): OBJECT_ID_PLACEHOLDER,
    ("overrides", "materials"): MATERIAL_ID_PLACEHOLDER,
}
