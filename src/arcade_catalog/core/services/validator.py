from __future__ import annotations

"""
Configuration Validation Service.

Ensures that the configuration dictionary conforms to the expected schema
before it reaches the maintenance services. Handles type coercion and default
value injection, collecting warnings instead of failing unless asked to be
strict.
"""

import logging
from typing import Any, Dict, List, Tuple

from arcade_catalog.domain.config import get_default_config
from arcade_catalog.infra.logging.config import _LEVEL_MAP

logger = logging.getLogger(__name__)

_STRING_FIELDS = ["database_path", "log_level", "log_file"]
_POSITIVE_INT_FIELDS = ["scan_limit", "trim_max_length", "large_min_size_bytes", "search_limit"]

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize the provided configuration dictionary.

    Args:
        config: Raw configuration data (usually a dictionary).
        strict: If True, raises exceptions on invalid values instead of
                falling back to defaults.

    Returns:
        Tuple[Dict[str, Any], List[str]]: The normalized configuration and a
                                          list of warnings.
    """
    warnings: List[str] = []
    defaults = get_default_config()

    if not isinstance(config, dict):
        msg = f"Invalid config type: expected dict, received {type(config).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Using defaults.")
        logger.warning(msg)
        return defaults, warnings

    merged: Dict[str, Any] = dict(defaults)
    merged.update(config)

    for field in _STRING_FIELDS:
        merged[field] = _as_str(merged.get(field), defaults[field], field, warnings, strict)

    for field in _POSITIVE_INT_FIELDS:
        merged[field] = _as_positive_int(merged.get(field), defaults[field], field, warnings, strict)

    level = merged["log_level"].upper()
    if level not in _LEVEL_MAP:
        msg = f"Unknown log level '{merged['log_level']}'."
        if strict:
            raise ValueError(msg)
        warnings.append(f"{msg} Using {defaults['log_level']}.")
        level = defaults["log_level"]
    merged["log_level"] = level

    return merged, warnings

# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _as_str(value: Any, fallback: str, field: str, warnings: List[str], strict: bool) -> str:
    """Validate and sanitize string inputs. Empty strings are kept as-is."""
    if value is None:
        return fallback
    if isinstance(value, str):
        return value.strip()

    msg = f"Invalid field '{field}': expected str, received {type(value).__name__}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_positive_int(value: Any, fallback: int, field: str, warnings: List[str], strict: bool) -> int:
    """Coerce ints and numeric strings; reject booleans and non-positive values."""
    if value is None:
        return fallback

    parsed = None
    if isinstance(value, int) and not isinstance(value, bool):
        parsed = value
    elif isinstance(value, str) and not strict:
        try:
            parsed = int(value.strip())
            warnings.append(f"Field '{field}' converted from '{value}' to {parsed}.")
        except ValueError:
            parsed = None

    if parsed is not None and parsed > 0:
        return parsed

    msg = f"Invalid field '{field}': expected positive int, received {value!r}."
    if strict:
        raise ValueError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback
