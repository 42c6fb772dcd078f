from __future__ import annotations

"""
Cross-Store Merge Service.

Copies the records of one table from a source store into a target store,
deciding per record whether to insert, skip or overwrite. The scan covers
the whole source table and runs to completion; write failures are logged per
record and never stop the merge.
"""

import logging

from arcade_catalog.domain.maintenance_models import (
    MERGE_FAILED,
    MERGE_MERGED,
    MERGE_OVERWRITTEN,
    MERGE_SKIPPED,
    MergeAction,
    MergeReport,
)
from arcade_catalog.infra.store import RecordStore, is_supported_table

logger = logging.getLogger(__name__)


def merge_stores(
        source: RecordStore,
        target: RecordStore,
        table: str,
        *,
        skip_existing: bool = False,
        overwrite_if_larger: bool = False,
) -> MergeReport:
    """
    Merge every record of ``table`` from ``source`` into ``target``.

    Decision per source record:
    - absent in target: inserted ("merged");
    - present and ``skip_existing`` without ``overwrite_if_larger``: "skipped";
    - present and ``overwrite_if_larger``: overwritten only when the source
      bytes are strictly longer, otherwise "skipped";
    - present otherwise: overwritten unconditionally.

    Args:
        source: Store to read from.
        target: Store to write into.
        table: Entry type table name.
        skip_existing: Leave records already in the target untouched.
        overwrite_if_larger: Replace existing records only with larger ones.

    Returns:
        MergeReport: Totals per action and the per-record log.
    """
    report = MergeReport(table=table)

    if not is_supported_table(table):
        report.error = f"Unknown entry type '{table}'."
        logger.error(f"Merge aborted: {report.error}")
        return report

    if not source.has_table(table):
        report.error = f"Source store has no '{table}' table."
        logger.error(f"Merge aborted: {report.error}")
        return report

    logger.info(
        f"Merging '{table}' (skip_existing={skip_existing}, "
        f"overwrite_if_larger={overwrite_if_larger})..."
    )

    for record_id, value in source.iter_records(table):
        existing = target.get(table, record_id)
        source_size = len(value)

        if existing is None:
            report.record(_write(target, table, record_id, value, MERGE_MERGED, source_size, 0))
            continue

        target_size = len(existing)

        if overwrite_if_larger:
            if source_size > target_size:
                action = _write(target, table, record_id, value, MERGE_OVERWRITTEN, source_size, target_size)
            else:
                action = MergeAction(record_id, MERGE_SKIPPED, source_size, target_size)
        elif skip_existing:
            action = MergeAction(record_id, MERGE_SKIPPED, source_size, target_size)
        else:
            action = _write(target, table, record_id, value, MERGE_OVERWRITTEN, source_size, target_size)

        report.record(action)

    logger.info(
        f"Merge of '{table}' complete: "
        + ", ".join(f"{k}={v}" for k, v in report.totals.items())
    )
    return report


def _write(
        target: RecordStore,
        table: str,
        record_id: str,
        value: bytes,
        action: str,
        source_size: int,
        target_size: int,
) -> MergeAction:
    if target.put(table, record_id, value):
        return MergeAction(record_id, action, source_size, target_size)

    logger.warning(f"Merge: failed to write {table}/{record_id}.")
    return MergeAction(
        record_id, MERGE_FAILED, source_size, target_size,
        error=f"Failed to write record (intended action: {action}).",
    )
