from __future__ import annotations

"""
Instance Anomaly Detection and Repair.

Flags instance records whose top-level section carries keys outside the
allow-list, and removes those keys on request. After a removal the section
is pruned of structure left without data, without ever deleting the section
itself.
"""

import logging
from typing import Iterable, List

from arcade_catalog.core.codec.keyvalues_codec import decode
from arcade_catalog.core.services.records import load_tree, save_tree
from arcade_catalog.domain.constants import (
    ALLOWED_INSTANCE_KEYS,
    DEFAULT_SCAN_LIMIT,
    INSTANCES_TABLE,
    MISSING_FIELD_SENTINEL,
)
from arcade_catalog.domain.keyvalues import KeyValues, ValueType
from arcade_catalog.domain.maintenance_models import (
    AnomalyReport,
    RecordOutcome,
    create_failure,
    create_success,
)
from arcade_catalog.infra.store import RecordStore

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# DETECTION
# -----------------------------------------------------------------------------

def find_anomalous(store: RecordStore, scan_limit: int = DEFAULT_SCAN_LIMIT) -> List[AnomalyReport]:
    """
    Scan instance records for top-level keys outside the allow-list.

    Args:
        store: Record store to read from.
        scan_limit: Maximum number of instance records to examine.

    Returns:
        List[AnomalyReport]: One entry per offending record, in id order.
    """
    records = store.list(INSTANCES_TABLE, scan_limit)
    reports: List[AnomalyReport] = []

    for record_id, raw in records:
        section = decode(raw).first_child()
        if section is None:
            logger.debug(f"Instance {record_id} has no instance section; skipped.")
            continue

        unexpected = unexpected_keys(section)
        if not unexpected:
            continue

        reports.append(AnomalyReport(
            id=record_id,
            unexpected_keys=unexpected,
            key_count=len(unexpected),
            generation=section.get_int("generation", MISSING_FIELD_SENTINEL),
            legacy=section.get_int("legacy", MISSING_FIELD_SENTINEL),
        ))

    logger.info(f"Anomaly scan: {len(reports)} of {len(records)} instances carry unexpected keys.")
    return reports


def unexpected_keys(section: KeyValues) -> List[str]:
    """Names of the direct children of ``section`` not in the allow-list, in order."""
    return [name for name in section.child_names() if name not in ALLOWED_INSTANCE_KEYS]

# -----------------------------------------------------------------------------
# REPAIR
# -----------------------------------------------------------------------------

def remove_anomalous(store: RecordStore, ids: Iterable[str]) -> List[RecordOutcome]:
    """
    Strip unexpected top-level keys from the given instance records.

    Each record is handled independently: a failure on one id never blocks
    the next, and a record is only written when every removal succeeded.

    Args:
        store: Record store to read from and write to.
        ids: Instance identifiers to repair.

    Returns:
        List[RecordOutcome]: One outcome per requested id.
    """
    outcomes = [_repair_instance(store, record_id) for record_id in ids]
    failed = sum(1 for o in outcomes if not o.success)
    logger.info(f"Anomaly repair finished: {len(outcomes) - failed} succeeded, {failed} failed.")
    return outcomes


def prune_empty(node: KeyValues) -> bool:
    """
    Recursively delete descendants of ``node`` that carry no data.

    A descendant is removed when it is an empty string, or a non-numeric
    node left with no children once its own descendants are pruned. ``node``
    itself is never removed.

    Args:
        node: Root of the pruning pass.

    Returns:
        bool: True when ``node`` is now empty by the same rule, letting a
        caller one level up decide to remove it.
    """
    for child in node.iter_children():
        if _is_prunable(child):
            node.remove_node(child)
    return _is_empty_after_pruning(node)

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _repair_instance(store: RecordStore, record_id: str) -> RecordOutcome:
    root = load_tree(store, INSTANCES_TABLE, record_id)
    if root is None:
        logger.warning(f"Instance {record_id} not found.")
        return create_failure(record_id, "Instance not found.")

    section = root.first_child()
    if section is None:
        return create_failure(record_id, "Instance record has no instance section.")

    keys = unexpected_keys(section)
    if not keys:
        return create_success(record_id, message="No unexpected keys found.")

    for key in keys:
        if not section.remove_child(key):
            logger.warning(f"Instance {record_id}: failed to remove key '{key}'.")
            return create_failure(record_id, f"Failed to remove key '{key}'.")

    prune_empty(section)

    if not save_tree(store, INSTANCES_TABLE, record_id, root):
        return create_failure(record_id, "Failed to write the updated record.")

    logger.debug(f"Instance {record_id}: removed {keys}.")
    return create_success(record_id, removed_keys=keys)


def _is_prunable(node: KeyValues) -> bool:
    value_type = node.value_type
    if value_type in (ValueType.INT, ValueType.FLOAT):
        return False
    if value_type == ValueType.STRING and node.child_count() == 0:
        return node.get_string() == ""
    return prune_empty(node)


def _is_empty_after_pruning(node: KeyValues) -> bool:
    if node.child_count() > 0:
        return False
    if node.value_type in (ValueType.INT, ValueType.FLOAT):
        return False
    if node.value_type == ValueType.STRING:
        return node.get_string() == ""
    return True
