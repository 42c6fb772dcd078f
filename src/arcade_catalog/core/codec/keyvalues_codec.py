from __future__ import annotations

"""
Binary KeyValues Codec.

Parses and serializes the compact binary format used for every catalog
record. Each field is framed as ``type byte | key | 0x00 | payload``;
subsections nest the same grammar and close with ``0x08``. Malformed input
never raises: decoding of the current object simply stops at the first field
it cannot read.
"""

import logging
import struct
from typing import Tuple

from arcade_catalog.domain.keyvalues import KeyValues, ValueType

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# WIRE CONSTANTS
# -----------------------------------------------------------------------------

TYPE_SUBSECTION = 0x00
TYPE_STRING = 0x01
TYPE_INT32 = 0x02
TYPE_FLOAT32 = 0x03
END_OF_OBJECT = 0x08

DEFAULT_ROOT_NAME = "root"

# Deeper subsections are treated like a malformed field and truncate their parent
MAX_NESTING_DEPTH = 128

# Every byte sequence maps to a str and back unchanged
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"

_INT32 = struct.Struct("<i")
_UINT32 = struct.Struct("<I")
_FLOAT32 = struct.Struct("<f")

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def decode(data: bytes, root_name: str = DEFAULT_ROOT_NAME) -> KeyValues:
    """
    Decode a binary record into a KeyValues tree.

    The whole buffer is read as one implicit top-level object whose closing
    ``0x08`` is the last byte written by :func:`encode`.

    Args:
        data: Raw record bytes.
        root_name: Name given to the returned root node.

    Returns:
        KeyValues: Root subsection holding the decoded fields.
    """
    root, _ = _decode_object(bytes(data), 0, root_name)
    return root


def encode(root: KeyValues) -> bytes:
    """
    Serialize the children of ``root`` into the binary record format.

    Empty strings and containers without children are omitted, and any node
    holding children is written as a subsection regardless of its nominal type.

    Args:
        root: Tree to serialize. Its own name and value are not written.

    Returns:
        bytes: Encoded record, terminated by one ``0x08``.
    """
    buffer = bytearray()
    _encode_children(root, buffer)
    buffer.append(END_OF_OBJECT)
    return bytes(buffer)


def decode_hex(hex_data: str, root_name: str = DEFAULT_ROOT_NAME) -> KeyValues:
    """Decode the lowercase hex transport form. Invalid hex yields an empty root."""
    return decode(hex_to_bytes(hex_data), root_name)


def encode_hex(root: KeyValues) -> str:
    """Encode a tree to its lowercase hex transport form."""
    return bytes_to_hex(encode(root))


def bytes_to_hex(data: bytes) -> str:
    return bytes(data).hex()


def hex_to_bytes(hex_data: str) -> bytes:
    """
    Convert hex text to bytes.

    A trailing odd nibble is ignored and malformed text converts to no bytes,
    which decodes as an empty record.
    """
    text = (hex_data or "").strip()
    if len(text) % 2:
        logger.debug(f"Ignoring trailing nibble in {len(text)}-char hex payload.")
        text = text[:-1]
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        logger.warning(f"Malformed hex payload discarded: {e}")
        return b""


def text_to_wire(text: str) -> bytes:
    return text.encode(TEXT_ENCODING, TEXT_ERRORS)


def wire_to_text(raw: bytes) -> str:
    return raw.decode(TEXT_ENCODING, TEXT_ERRORS)

# -----------------------------------------------------------------------------
# INTERNAL HELPERS (DECODING)
# -----------------------------------------------------------------------------

def _read_cstring(data: bytes, offset: int) -> Tuple[str, int]:
    """Read bytes up to the next NUL; return the text and the offset past the NUL."""
    end = data.find(b"\x00", offset)
    if end < 0:
        return wire_to_text(data[offset:]), len(data) + 1
    return wire_to_text(data[offset:end]), end + 1


def _decode_object(data: bytes, position: int, name: str, depth: int = 0) -> Tuple[KeyValues, int]:
    """
    Decode fields until an end marker, an empty key, a malformed field or a
    subsection nested beyond MAX_NESTING_DEPTH.

    Returns the populated subsection and the offset where reading stopped.
    """
    node = KeyValues(name, ValueType.SUBSECTION)
    size = len(data)

    while position < size:
        type_byte = data[position]
        position += 1

        if type_byte == END_OF_OBJECT:
            break

        key, position = _read_cstring(data, position)
        if not key:
            break

        if type_byte == TYPE_SUBSECTION:
            if depth >= MAX_NESTING_DEPTH:
                logger.debug(f"Subsection '{key}' nested deeper than {MAX_NESTING_DEPTH}; object truncated.")
                break
            child, position = _decode_object(data, position, key, depth + 1)

        elif type_byte == TYPE_STRING:
            child = KeyValues(key)
            value, position = _read_cstring(data, position)
            child.set_string(None, value)

        elif type_byte in (TYPE_INT32, TYPE_FLOAT32):
            if position + 4 > size:
                logger.debug(f"Truncated numeric field '{key}' at offset {position}.")
                break
            child = KeyValues(key)
            if type_byte == TYPE_INT32:
                child.set_int(None, _INT32.unpack_from(data, position)[0])
            else:
                child.set_float(None, _FLOAT32.unpack_from(data, position)[0])
            position += 4

        else:
            logger.debug(f"Unknown type byte 0x{type_byte:02x} for key '{key}'; object truncated.")
            break

        node.append_child(child)

    return node, position

# -----------------------------------------------------------------------------
# INTERNAL HELPERS (ENCODING)
# -----------------------------------------------------------------------------

def _encode_children(node: KeyValues, buffer: bytearray) -> None:
    """Append every non-empty child of ``node`` to ``buffer`` in order."""
    for child in node.children():
        value_type = child.value_type
        is_subsection = value_type == ValueType.SUBSECTION or child.child_count() > 0

        if is_subsection:
            nested = bytearray()
            _encode_children(child, nested)
            # Subsections left with nothing to write vanish
            if not nested:
                continue
            buffer.append(TYPE_SUBSECTION)
            buffer += text_to_wire(child.name)
            buffer.append(0x00)
            buffer += nested
            buffer.append(END_OF_OBJECT)
            continue

        if value_type == ValueType.STRING:
            if not child.get_string():
                continue
            type_byte = TYPE_STRING
        elif value_type == ValueType.INT:
            type_byte = TYPE_INT32
        elif value_type == ValueType.FLOAT:
            type_byte = TYPE_FLOAT32
        else:
            continue

        buffer.append(type_byte)
        buffer += text_to_wire(child.name)
        buffer.append(0x00)

        if type_byte == TYPE_STRING:
            buffer += text_to_wire(child.get_string())
            buffer.append(0x00)
        elif type_byte == TYPE_INT32:
            buffer += _UINT32.pack(child.get_int() & 0xFFFFFFFF)
        else:
            buffer += _FLOAT32.pack(child.get_float())
