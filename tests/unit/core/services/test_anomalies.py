from __future__ import annotations

"""
Unit tests for the Anomaly Detection and Repair Service.

Verifies:
1. Keys outside the allow-list are reported with generation/legacy values.
2. Missing generation/legacy are reported with the -1 sentinel.
3. Repair removes the keys, prunes emptied structure and persists.
4. Pruning never removes the node it was invoked on.
5. Per-id failures do not stop the batch.
"""

from typing import Any, Callable, Dict
from unittest.mock import patch

from arcade_catalog.core.codec.keyvalues_codec import decode
from arcade_catalog.core.services.anomalies import (
    find_anomalous,
    prune_empty,
    remove_anomalous,
    unexpected_keys,
)
from arcade_catalog.domain.keyvalues import KeyValues, ValueType
from arcade_catalog.infra.store import SQLiteRecordStore

RecordFactory = Callable[[str, Dict[str, Any]], bytes]

_CLEAN = {
    "generation": 2,
    "info": {"title": "Cabinet"},
    "objects": {"obj-1": {"position": "0 0 0"}},
    "overrides": {"scale": 1.0},
    "legacy": 0,
}

# -----------------------------------------------------------------------------
# Detection
# -----------------------------------------------------------------------------

def test_allow_list_flags_only_unknown_keys(store: SQLiteRecordStore, record_factory: RecordFactory) -> None:
    fields = dict(_CLEAN, mystery="?")
    store.put("instances", "bad", record_factory("instance", fields))
    store.put("instances", "good", record_factory("instance", _CLEAN))

    reports = find_anomalous(store)

    assert len(reports) == 1
    report = reports[0]
    assert report.id == "bad"
    assert report.unexpected_keys == ["mystery"]
    assert report.key_count == 1
    assert report.generation == 2
    assert report.legacy == 0


def test_missing_fields_use_sentinel(store: SQLiteRecordStore, record_factory: RecordFactory) -> None:
    store.put("instances", "x", record_factory("instance", {"junk": 1}))

    report = find_anomalous(store)[0]

    assert report.generation == -1
    assert report.legacy == -1


def test_unexpected_keys_keeps_record_order() -> None:
    section = KeyValues("instance")
    section.set_int("zeta", 1)
    section.set_int("generation", 1)
    section.set_int("alpha", 1)

    assert unexpected_keys(section) == ["zeta", "alpha"]

# -----------------------------------------------------------------------------
# Pruning
# -----------------------------------------------------------------------------

def test_prune_removes_empty_strings_and_emptied_containers() -> None:
    section = KeyValues("instance", ValueType.SUBSECTION)
    section.set_int("generation", 0)
    section.set_string("blank", "")
    info = section.append_child(KeyValues("info", ValueType.SUBSECTION))
    nested = info.append_child(KeyValues("nested", ValueType.SUBSECTION))
    nested.set_string("also_blank", "")

    is_empty = prune_empty(section)

    assert is_empty is False
    assert section.child_names() == ["generation"]


def test_prune_keeps_numeric_zero() -> None:
    section = KeyValues("instance", ValueType.SUBSECTION)
    section.set_float("scale", 0.0)

    prune_empty(section)

    assert section.child_names() == ["scale"]


def test_prune_never_removes_call_root() -> None:
    root = KeyValues("root", ValueType.SUBSECTION)
    section = root.append_child(KeyValues("instance", ValueType.SUBSECTION))
    section.set_string("blank", "")

    is_empty = prune_empty(section)

    assert is_empty is True
    assert root.child_count() == 1
    assert section.child_count() == 0

# -----------------------------------------------------------------------------
# Repair
# -----------------------------------------------------------------------------

def test_remove_anomalous_persists_cleaned_record(
        store: SQLiteRecordStore,
        record_factory: RecordFactory,
) -> None:
    store.put("instances", "bad", record_factory("instance", dict(_CLEAN, mystery="?", extra={"k": 1})))

    outcomes = remove_anomalous(store, ["bad"])

    assert outcomes[0].success is True
    assert outcomes[0].removed_keys == ["mystery", "extra"]
    section = decode(store.get("instances", "bad")).first_child()
    assert section is not None
    assert unexpected_keys(section) == []
    assert section.get_int("generation") == 2


def test_emptied_section_vanishes_two_levels_up(
        store: SQLiteRecordStore,
        record_factory: RecordFactory,
) -> None:
    """The kept-but-empty instance section is dropped by the encoder."""
    store.put("instances", "only", record_factory("instance", {"mystery": "?"}))

    outcomes = remove_anomalous(store, ["only"])

    assert outcomes[0].success is True
    raw = store.get("instances", "only")
    assert raw == b"\x08"
    assert decode(raw).child_count() == 0


def test_no_unexpected_keys_is_success_without_write(
        store: SQLiteRecordStore,
        record_factory: RecordFactory,
) -> None:
    store.put("instances", "good", record_factory("instance", _CLEAN))

    with patch.object(store, "put") as mock_put:
        outcomes = remove_anomalous(store, ["good"])

    assert outcomes[0].success is True
    assert outcomes[0].message
    mock_put.assert_not_called()


def test_missing_record_fails_but_batch_continues(
        store: SQLiteRecordStore,
        record_factory: RecordFactory,
) -> None:
    store.put("instances", "bad", record_factory("instance", dict(_CLEAN, mystery="?")))

    outcomes = remove_anomalous(store, ["ghost", "bad"])

    assert [o.success for o in outcomes] == [False, True]
    assert outcomes[0].error == "Instance not found."


def test_record_without_section_fails(store: SQLiteRecordStore) -> None:
    store.put("instances", "hollow", b"\x08")

    outcomes = remove_anomalous(store, ["hollow"])

    assert outcomes[0].success is False


def test_write_failure_is_reported(store: SQLiteRecordStore, record_factory: RecordFactory) -> None:
    store.put("instances", "bad", record_factory("instance", dict(_CLEAN, mystery="?")))

    with patch.object(store, "put", return_value=False):
        outcomes = remove_anomalous(store, ["bad"])

    assert outcomes[0].success is False
    assert "write" in outcomes[0].error


def test_deeply_nested_record_does_not_stop_scan(
    store: SQLiteRecordStore, record_factory: RecordFactory
) -> None:
    store.put("instances", "deep", b"\x00a\x00" * 5000)
    store.put("instances", "zz-bad", record_factory("instance", dict(_CLEAN, mystery="?")))

    reports = {r.id: r for r in find_anomalous(store)}

    assert reports["zz-bad"].unexpected_keys == ["mystery"]
    assert reports["deep"].unexpected_keys == ["a"]
