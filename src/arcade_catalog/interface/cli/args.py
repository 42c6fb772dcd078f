from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line interface schema: global options plus one
sub-command per catalog operation. Provides logic to translate raw argparse
namespaces into configuration overrides.
"""

import argparse
from typing import Any, Dict

from arcade_catalog.domain.constants import SUPPORTED_ENTRY_TYPES

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the arcade-catalog CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="arcade-catalog",
        description="Inspect and maintain a catalog of binary KeyValues records.",
    )

    # --- Global Options ---
    p.add_argument(
        "--db",
        dest="database_path",
        default=None,
        help="Path to the SQLite catalog database (overrides the config file).",
    )
    p.add_argument(
        "--use-defaults",
        action="store_true",
        help="Ignore the persisted configuration file.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print machine-readable JSON instead of a human summary.",
    )

    sub = p.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    # --- Browsing ---
    sub.add_parser("types", help="List the supported entry types.")

    show = sub.add_parser("show", help="Print one record as a dictionary.")
    _add_table(show)
    show.add_argument("record_id", help="Record identifier.")

    dump = sub.add_parser("dump", help="Print the raw KeyValues tree of one record.")
    _add_table(dump)
    dump.add_argument("record_id", help="Record identifier.")

    search = sub.add_parser("search", help="Search records by title.")
    _add_table(search)
    search.add_argument("term", help="Case-insensitive title substring.")
    search.add_argument("--limit", type=_positive_int, default=None, help="Maximum number of matches.")

    # --- Analysis ---
    schema = sub.add_parser("schema", help="Infer the field paths used by a table.")
    _add_table(schema)

    sub.add_parser("anomalies", help="List instances with unexpected top-level keys.")

    remove = sub.add_parser("remove-anomalies", help="Strip unexpected keys from instances.")
    remove.add_argument("ids", nargs="+", help="Instance identifiers.")

    # --- Maintenance ---
    trim = sub.add_parser("trim", help="Truncate title and description fields.")
    _add_table(trim)
    trim.add_argument("ids", nargs="+", help="Record identifiers.")
    trim.add_argument("--max-length", type=_positive_int, default=None, help="Maximum field length in bytes.")

    large = sub.add_parser("large", help="List the largest records of a table.")
    _add_table(large)
    large.add_argument("--min-size", type=_positive_int, default=None, help="Size threshold in bytes.")

    merge = sub.add_parser("merge", help="Merge a table from another catalog database.")
    merge.add_argument("source_db", help="Path to the source database.")
    _add_table(merge)
    merge.add_argument(
        "--skip-existing",
        action="store_true",
        help="Keep records that already exist in the target.",
    )
    merge.add_argument(
        "--overwrite-if-larger",
        action="store_true",
        help="Replace existing records only when the source record is larger.",
    )

    sub.add_parser("stats", help="Show database file statistics.")
    sub.add_parser("compact", help="Reclaim free space (VACUUM).")

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into a configuration override dictionary.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset.
    """
    overrides: Dict[str, Any] = {}

    if args.database_path:
        overrides["database_path"] = args.database_path
    if args.debug:
        overrides["log_level"] = "DEBUG"

    if getattr(args, "limit", None) is not None:
        overrides["search_limit"] = args.limit
    if getattr(args, "max_length", None) is not None:
        overrides["trim_max_length"] = args.max_length
    if getattr(args, "min_size", None) is not None:
        overrides["large_min_size_bytes"] = args.min_size

    return overrides

# -----------------------------------------------------------------------------
# HELPERS
# -----------------------------------------------------------------------------

def _add_table(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("table", choices=SUPPORTED_ENTRY_TYPES, help="Entry type table.")


def _positive_int(raw: str) -> int:
    """argparse type for sizes and limits; rejects zero and negatives (exit 2)."""
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{raw}'")
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value
