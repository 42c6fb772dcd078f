from __future__ import annotations

"""
Unit tests for the binary KeyValues codec.

Verifies:
1. Exact wire layout of each field type.
2. Round trips of trees without lossy fields.
3. Lossy rules: empty strings and empty subsections vanish.
4. Silent truncation on unknown type bytes and short numeric payloads.
5. Hex transport form, including malformed input.
"""

import math
import struct

from arcade_catalog.core.codec.keyvalues_codec import (
    MAX_NESTING_DEPTH,
    bytes_to_hex,
    decode,
    decode_hex,
    encode,
    encode_hex,
    hex_to_bytes,
)
from arcade_catalog.domain.keyvalues import KeyValues, ValueType


def _sample_tree() -> KeyValues:
    root = KeyValues("root", ValueType.SUBSECTION)
    item = root.append_child(KeyValues("item", ValueType.SUBSECTION))
    item.set_string("title", "Pinball Wizard")
    item.set_int("players", 4)
    item.set_float("rating", 4.5)
    tags = item.append_child(KeyValues("tags", ValueType.SUBSECTION))
    tags.set_string("genre", "arcade")
    tags.set_int("year", -1982)
    return root

# -----------------------------------------------------------------------------
# Wire layout
# -----------------------------------------------------------------------------

def test_encode_wire_layout() -> None:
    root = KeyValues("root", ValueType.SUBSECTION)
    section = root.append_child(KeyValues("s", ValueType.SUBSECTION))
    section.set_string("a", "x")
    section.set_int("n", 1)
    section.set_float("f", 1.0)

    expected = (
        b"\x00s\x00"
        + b"\x01a\x00x\x00"
        + b"\x02n\x00" + struct.pack("<i", 1)
        + b"\x03f\x00" + struct.pack("<f", 1.0)
        + b"\x08"
        + b"\x08"
    )
    assert encode(root) == expected


def test_empty_tree_encodes_to_single_end_marker() -> None:
    assert encode(KeyValues("root")) == b"\x08"


def test_container_with_nominal_none_type_encodes_as_subsection() -> None:
    root = KeyValues("root")
    untyped = root.append_child(KeyValues("box", ValueType.NONE))
    untyped.set_int("n", 2)

    assert encode(root).startswith(b"\x00box\x00")

# -----------------------------------------------------------------------------
# Round trips
# -----------------------------------------------------------------------------

def test_round_trip_preserves_tree() -> None:
    tree = _sample_tree()

    assert decode(encode(tree)) == tree


def test_round_trip_preserves_duplicates_and_order() -> None:
    root = KeyValues("root")
    root.append_child(KeyValues("b")).set_string(None, "1")
    root.append_child(KeyValues("a")).set_string(None, "2")
    root.append_child(KeyValues("b")).set_string(None, "3")

    decoded = decode(encode(root))

    assert decoded.child_names() == ["b", "a", "b"]
    assert [c.get_string() for c in decoded.children()] == ["1", "2", "3"]


def test_non_ascii_and_raw_bytes_round_trip() -> None:
    raw = b"\x01title\x00caf\xc3\xa9 \xff\xfe\x00\x08"

    assert encode(decode(raw)) == raw


def test_decode_uses_caller_root_name() -> None:
    assert decode(b"\x08", root_name="record").name == "record"

# -----------------------------------------------------------------------------
# Lossy rules
# -----------------------------------------------------------------------------

def test_empty_string_and_empty_subsection_vanish() -> None:
    root = KeyValues("root")
    section = root.append_child(KeyValues("item", ValueType.SUBSECTION))
    section.set_string("title", "")
    section.append_child(KeyValues("empty", ValueType.SUBSECTION))
    section.set_int("keep", 1)

    decoded_section = decode(encode(root)).find_child("item")

    assert decoded_section is not None
    assert decoded_section.child_names() == ["keep"]


def test_subsection_empty_after_lossy_children_vanishes() -> None:
    root = KeyValues("root")
    outer = root.append_child(KeyValues("outer", ValueType.SUBSECTION))
    inner = outer.append_child(KeyValues("inner", ValueType.SUBSECTION))
    inner.set_string("blank", "")

    assert encode(root) == b"\x08"

# -----------------------------------------------------------------------------
# Malformed input
# -----------------------------------------------------------------------------

def test_unknown_type_byte_truncates_silently() -> None:
    root = decode(b"\x01a\x00x\x00\xff")

    assert root.child_count() == 1
    assert root.get_string("a") == "x"


def test_unknown_type_discards_later_siblings() -> None:
    data = b"\x01a\x00x\x00\x07bad\x00\x01b\x00y\x00\x08"

    assert decode(data).child_names() == ["a"]


def test_truncated_numeric_field_is_dropped() -> None:
    data = b"\x02n\x00" + struct.pack("<i", 7) + b"\x03f\x00\x00\x00"

    root = decode(data)

    assert root.child_names() == ["n"]
    assert root.get_int("n") == 7


def test_truncated_int_payload() -> None:
    root = decode(b"\x01a\x00x\x00\x02n\x00\x01\x00")

    assert root.child_names() == ["a"]


def test_empty_key_ends_object() -> None:
    root = decode(b"\x01a\x00x\x00\x01\x00ignored\x00")

    assert root.child_names() == ["a"]


def test_empty_input_decodes_to_empty_root() -> None:
    root = decode(b"")

    assert root.child_count() == 0
    assert root.value_type == ValueType.SUBSECTION


def test_float_overflow_encodes_as_infinity() -> None:
    root = KeyValues("root")
    root.set_float("huge", 1e300)

    decoded = decode(encode(root))

    assert math.isinf(decoded.get_float("huge"))

# -----------------------------------------------------------------------------
# Hex transport
# -----------------------------------------------------------------------------

def test_hex_is_lowercase_without_separators() -> None:
    assert bytes_to_hex(b"\x00\xab\x08") == "00ab08"


def test_hex_round_trip() -> None:
    tree = _sample_tree()

    assert decode_hex(encode_hex(tree)) == tree


def test_hex_odd_nibble_ignored() -> None:
    assert hex_to_bytes("0a0") == b"\x0a"


def test_malformed_hex_decodes_to_empty_root() -> None:
    assert hex_to_bytes("zz") == b""
    assert decode_hex("not hex").child_count() == 0


def test_inexact_float_round_trips() -> None:
    root = KeyValues("root")
    root.set_float("rating", 0.1)
    root.set_float("ratio", 1 / 3)

    assert decode(encode(root)) == root

# -----------------------------------------------------------------------------
# Nesting limit
# -----------------------------------------------------------------------------

def _depth(node: KeyValues) -> int:
    depth = 0
    while node.first_child() is not None:
        node = node.first_child()
        depth += 1
    return depth


def test_deep_nesting_is_truncated() -> None:
    root = decode(b"\x00a\x00" * 5000)

    assert _depth(root) == MAX_NESTING_DEPTH
    assert encode(root).endswith(b"\x08")


def test_nesting_at_limit_is_kept() -> None:
    data = b"\x00a\x00" * MAX_NESTING_DEPTH + b"\x01k\x00v\x00" + b"\x08" * (MAX_NESTING_DEPTH + 1)

    root = decode(data)

    assert _depth(root) == MAX_NESTING_DEPTH + 1
    assert decode(encode(root)) == root
