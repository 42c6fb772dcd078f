from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: initialization of logging, loading and merging
of configuration sources (defaults, persistent storage, and CLI overrides),
opening the catalog database, dispatching the requested sub-command and
rendering its result as a human summary or as JSON.
"""

import json
import os
import sys
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional, Tuple

from arcade_catalog.core.analysis.tree_renderer import render_keyvalues
from arcade_catalog.core.services.anomalies import find_anomalous, remove_anomalous
from arcade_catalog.core.services.browser import get_entry, list_entry_types, search_by_title
from arcade_catalog.core.services.maintenance import (
    compact_database,
    database_stats,
    find_large,
    trim_fields,
)
from arcade_catalog.core.services.merge import merge_stores
from arcade_catalog.core.services.records import load_tree
from arcade_catalog.core.services.schema import infer_schema
from arcade_catalog.core.services.validator import validate_config
from arcade_catalog.domain.config import get_default_config, load_config
from arcade_catalog.domain.maintenance_models import RecordOutcome
from arcade_catalog.infra.fs import resolve_database_path
from arcade_catalog.infra.logging import LoggingConfig, configure_logging, get_logger
from arcade_catalog.infra.store import SQLiteRecordStore
from arcade_catalog.interface.cli import args as cli_args

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

# A command handler returns the JSON payload, the human-readable lines and the exit code.
CommandResult = Tuple[Any, List[str], int]

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the main CLI application workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code (0 success, 1 operation failure, 2 bad invocation).
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8")

    # 1. Argument parsing phase
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    # 2. Logging bootstrap (CLI-specific: Console stderr)
    log_level = "DEBUG" if args.debug else "INFO"
    configure_logging(LoggingConfig.for_cli(log_level))

    logger.debug("CLI execution initiated. Resolving configuration hierarchy...")

    # 3. Resolve base configuration (Default vs Persistent state)
    base_conf = get_default_config() if args.use_defaults else load_config()

    # 4. Map and merge command-line overrides
    overrides = cli_args.args_to_overrides(args)
    raw_conf = _merge_config(base_conf, overrides)

    # 5. Schema validation and normalization
    clean_conf, warnings = validate_config(raw_conf, strict=False)
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    # Persistent log file or a configured level replaces the bootstrap handlers
    if clean_conf["log_file"] or clean_conf["log_level"] != log_level:
        configure_logging(
            LoggingConfig.for_cli(clean_conf["log_level"], clean_conf["log_file"]),
            force=True,
        )

    # 6. Command dispatch
    try:
        if args.command == "types":
            payload, lines, code = list_entry_types(), list_entry_types(), EXIT_OK
        else:
            payload, lines, code = _run_with_store(args, clean_conf)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        print("Interrupted.", file=sys.stderr)
        return 130

    # 7. Output rendering phase
    if args.json_output:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        stream = sys.stderr if code == EXIT_USAGE else sys.stdout
        for line in lines:
            print(line, file=stream)

    return code

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Perform a shallow merge of override values into the base configuration.

    Only known keys are merged.

    Args:
        base: The primary configuration dictionary.
        overrides: New values to inject.

    Returns:
        Dict[str, Any]: The merged configuration state.
    """
    out = dict(base)
    keys_to_merge = [
        "database_path", "log_level", "log_file", "scan_limit",
        "trim_max_length", "large_min_size_bytes", "search_limit",
    ]
    for k in keys_to_merge:
        if k in overrides and overrides[k] is not None:
            out[k] = overrides[k]
    return out

# -----------------------------------------------------------------------------
# STORE-BACKED COMMANDS
# -----------------------------------------------------------------------------

def _run_with_store(args: Any, conf: Dict[str, Any]) -> CommandResult:
    db_path = resolve_database_path(conf["database_path"])
    if db_path != ":memory:" and not os.path.exists(db_path):
        return _usage_error(f"Database not found: {db_path}")

    store = SQLiteRecordStore(db_path)
    if not store.is_open:
        return _usage_error(f"Could not open database: {db_path}")

    logger.debug(f"Using catalog database {db_path}")
    with store:
        handler = _COMMANDS[args.command]
        return handler(store, args, conf)


def _cmd_show(store: SQLiteRecordStore, args: Any, conf: Dict[str, Any]) -> CommandResult:
    entry = get_entry(store, args.table, args.record_id)
    if entry is None:
        return _not_found(args.table, args.record_id)
    return entry, [json.dumps(entry, ensure_ascii=False, indent=2)], EXIT_OK


def _cmd_dump(store: SQLiteRecordStore, args: Any, conf: Dict[str, Any]) -> CommandResult:
    root = load_tree(store, args.table, args.record_id)
    if root is None:
        return _not_found(args.table, args.record_id)
    lines = [root.name] + render_keyvalues(root)
    return lines, lines, EXIT_OK


def _cmd_search(store: SQLiteRecordStore, args: Any, conf: Dict[str, Any]) -> CommandResult:
    matches = search_by_title(store, args.table, args.term, conf["search_limit"])
    payload = [{"id": rid, "title": title} for rid, title in matches]
    lines = [f"{rid}\t{title}" for rid, title in matches]
    lines.append(f"{len(matches)} match(es).")
    return payload, lines, EXIT_OK


def _cmd_schema(store: SQLiteRecordStore, args: Any, conf: Dict[str, Any]) -> CommandResult:
    paths = infer_schema(store, args.table, conf["scan_limit"])
    return paths, list(paths), EXIT_OK


def _cmd_anomalies(store: SQLiteRecordStore, args: Any, conf: Dict[str, Any]) -> CommandResult:
    reports = find_anomalous(store, conf["scan_limit"])
    lines = [
        f"{r.id}: {', '.join(r.unexpected_keys)} "
        f"(generation={r.generation}, legacy={r.legacy})"
        for r in reports
    ]
    lines.append(f"{len(reports)} anomalous instance(s).")
    return [asdict(r) for r in reports], lines, EXIT_OK


def _cmd_remove_anomalies(store: SQLiteRecordStore, args: Any, conf: Dict[str, Any]) -> CommandResult:
    return _outcomes_result(remove_anomalous(store, args.ids))


def _cmd_trim(store: SQLiteRecordStore, args: Any, conf: Dict[str, Any]) -> CommandResult:
    return _outcomes_result(trim_fields(store, args.table, args.ids, conf["trim_max_length"]))


def _cmd_large(store: SQLiteRecordStore, args: Any, conf: Dict[str, Any]) -> CommandResult:
    entries = find_large(store, args.table, conf["large_min_size_bytes"], conf["scan_limit"])
    lines = [f"{e.size_bytes:>10,}  {e.id}  {e.title}" for e in entries]
    lines.append(f"{len(entries)} record(s) over {conf['large_min_size_bytes']:,} bytes.")
    return [asdict(e) for e in entries], lines, EXIT_OK


def _cmd_merge(store: SQLiteRecordStore, args: Any, conf: Dict[str, Any]) -> CommandResult:
    source_path = resolve_database_path(args.source_db)
    if not os.path.exists(source_path):
        return _usage_error(f"Source database not found: {source_path}")

    with SQLiteRecordStore(source_path, create_tables=False) as source:
        report = merge_stores(
            source,
            store,
            args.table,
            skip_existing=args.skip_existing,
            overwrite_if_larger=args.overwrite_if_larger,
        )

    payload = asdict(report)
    if report.error:
        return payload, [f"ERROR: {report.error}"], EXIT_FAILURE

    lines = [f"Merge into '{report.table}' finished."]
    for action, count in report.totals.items():
        lines.append(f"  {action}: {count}")
    for failed in (a for a in report.actions if a.error):
        lines.append(f"  ! {failed.id}: {failed.error}")
    return payload, lines, EXIT_OK if report.ok else EXIT_FAILURE


def _cmd_stats(store: SQLiteRecordStore, args: Any, conf: Dict[str, Any]) -> CommandResult:
    stats = database_stats(store)
    lines = [
        f"File: {stats.file_path}",
        f"Size: {stats.file_size_bytes:,} bytes",
        f"Pages: {stats.page_count} x {stats.page_size} bytes",
        f"Free pages: {stats.free_pages} ({stats.fragmentation_percent:.2f}% fragmentation)",
    ]
    return asdict(stats), lines, EXIT_OK


def _cmd_compact(store: SQLiteRecordStore, args: Any, conf: Dict[str, Any]) -> CommandResult:
    result = compact_database(store)
    payload = asdict(result)
    payload["bytes_saved"] = result.bytes_saved
    if not result.ok:
        return payload, [f"ERROR: {result.error}"], EXIT_FAILURE
    lines = [
        f"Compacted: {result.size_before:,} -> {result.size_after:,} bytes "
        f"({result.bytes_saved:,} saved)"
    ]
    return payload, lines, EXIT_OK


_COMMANDS: Dict[str, Callable[[SQLiteRecordStore, Any, Dict[str, Any]], CommandResult]] = {
    "show": _cmd_show,
    "dump": _cmd_dump,
    "search": _cmd_search,
    "schema": _cmd_schema,
    "anomalies": _cmd_anomalies,
    "remove-anomalies": _cmd_remove_anomalies,
    "trim": _cmd_trim,
    "large": _cmd_large,
    "merge": _cmd_merge,
    "stats": _cmd_stats,
    "compact": _cmd_compact,
}

# -----------------------------------------------------------------------------
# VIEW RENDERING (HUMAN READABLE)
# -----------------------------------------------------------------------------

def _outcomes_result(outcomes: List[RecordOutcome]) -> CommandResult:
    """Render per-record outcomes; any failure turns the exit code to 1."""
    lines: List[str] = []
    for o in outcomes:
        if not o.success:
            lines.append(f"FAILED  {o.id}: {o.error}")
        elif o.message:
            lines.append(f"OK      {o.id}: {o.message}")
        elif o.removed_keys:
            lines.append(f"OK      {o.id}: removed {', '.join(o.removed_keys)}")
        else:
            lines.append(f"OK      {o.id}")

    failed = sum(1 for o in outcomes if not o.success)
    lines.append(f"{len(outcomes) - failed} succeeded, {failed} failed.")
    code = EXIT_FAILURE if failed else EXIT_OK
    return [asdict(o) for o in outcomes], lines, code


def _not_found(table: str, record_id: str) -> CommandResult:
    msg = f"Record '{record_id}' not found in '{table}'."
    logger.error(msg)
    return {"error": msg}, [f"ERROR: {msg}"], EXIT_FAILURE


def _usage_error(msg: str) -> CommandResult:
    logger.error(msg)
    return {"error": msg}, [f"ERROR: {msg}"], EXIT_USAGE

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
