from __future__ import annotations

"""
KeyValues Tree Data Model.

Provides the in-memory representation of one catalog record: a labeled,
recursively nested tree of typed values. Children are kept as an ordered
list (names may repeat, first match wins on lookup), so the binary codec can
preserve both order and duplicate fields.
"""

import math
import re
import struct
from enum import IntEnum
from typing import Iterator, List, Optional, Tuple

_TRUE_STRINGS: Tuple[str, ...] = ("1", "true", "True")

_FLOAT32 = struct.Struct("<f")

# Leading decimal number, optional exponent; the rest of the string is ignored
_FLOAT_PREFIX = re.compile(
    r"[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


# -----------------------------------------------------------------------------
# VALUE TYPES
# -----------------------------------------------------------------------------

class ValueType(IntEnum):
    """Kind of value carried by a KeyValues node."""
    NONE = 0
    STRING = 1
    INT = 2
    FLOAT = 3
    SUBSECTION = 4


# -----------------------------------------------------------------------------
# TREE NODE
# -----------------------------------------------------------------------------

class KeyValues:
    """
    One labeled value in a catalog record tree.

    Exactly one scalar slot is meaningful, selected by ``value_type``. Reading
    a slot that does not match the current type yields the caller's default,
    never stale data left by a previous setter.

    Sibling traversal is resolved against the parent's current children at
    call time, so a node obtained before a removal never points at the wrong
    sibling afterwards.
    """

    def __init__(self, name: str = "", value_type: ValueType = ValueType.NONE) -> None:
        self._name = name
        self._value_type = value_type
        self._string_value = ""
        self._int_value = 0
        self._float_value = 0.0
        self._children: List[KeyValues] = []
        self._parent: Optional[KeyValues] = None

    def __repr__(self) -> str:
        if self.is_container():
            return f"KeyValues({self._name!r}, children={len(self._children)})"
        return f"KeyValues({self._name!r}, {self._value_type.name}={self._scalar()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyValues):
            return NotImplemented
        if self._name != other._name:
            return False
        if self.is_container() or other.is_container():
            return (
                self.is_container() and other.is_container()
                and self._children == other._children
            )
        return self._value_type == other._value_type and self._scalar() == other._scalar()

    __hash__ = None  # type: ignore[assignment]

    # -------------------------------------------------------------------------
    # Identity and type
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def value_type(self) -> ValueType:
        return self._value_type

    @property
    def parent(self) -> Optional[KeyValues]:
        return self._parent

    def is_container(self) -> bool:
        """True for subsections and for untyped nodes that hold children."""
        if self._value_type == ValueType.SUBSECTION:
            return True
        return self._value_type == ValueType.NONE and bool(self._children)

    def is_empty(self) -> bool:
        return self._value_type == ValueType.NONE and not self._children

    def child_count(self) -> int:
        return len(self._children)

    # -------------------------------------------------------------------------
    # Typed getters
    # -------------------------------------------------------------------------

    def get_string(self, name: Optional[str] = None, default: str = "") -> str:
        """
        Read a string value from this node or from its first child named ``name``.

        Args:
            name: Child key to look up. None reads the node itself.
            default: Returned when the key is absent or not a string.

        Returns:
            str: The stored string or the default.
        """
        node = self._target(name)
        if node is None or node._value_type != ValueType.STRING:
            return default
        return node._string_value

    def get_int(self, name: Optional[str] = None, default: int = 0) -> int:
        """
        Read an integer, parsing string values when needed.

        Args:
            name: Child key to look up. None reads the node itself.
            default: Returned when absent, non-numeric, or unparsable.

        Returns:
            int: The stored or parsed integer.
        """
        if name is None:
            return self._int_value if self._value_type == ValueType.INT else default

        node = self.find_child(name)
        if node is None:
            return default
        if node._value_type == ValueType.INT:
            return node._int_value
        if node._value_type == ValueType.STRING:
            return _parse_int(node._string_value, default)
        return default

    def get_float(self, name: Optional[str] = None, default: float = 0.0) -> float:
        """
        Read a float, widening integers and parsing strings when needed.

        Args:
            name: Child key to look up. None reads the node itself.
            default: Returned when absent, non-numeric, or unparsable.

        Returns:
            float: The stored, widened or parsed value.
        """
        if name is None:
            return self._float_value if self._value_type == ValueType.FLOAT else default

        node = self.find_child(name)
        if node is None:
            return default
        if node._value_type == ValueType.FLOAT:
            return node._float_value
        if node._value_type == ValueType.STRING:
            return _parse_float(node._string_value, default)
        if node._value_type == ValueType.INT:
            return float(node._int_value)
        return default

    def get_bool(self, name: Optional[str] = None, default: bool = False) -> bool:
        """
        Read a boolean from an integer (non-zero) or a string ("1"/"true"/"True").
        """
        node = self._target(name)
        if node is None:
            return default
        if node._value_type == ValueType.INT:
            return node._int_value != 0
        if node._value_type == ValueType.STRING:
            return node._string_value in _TRUE_STRINGS
        return default

    # -------------------------------------------------------------------------
    # Typed setters
    # -------------------------------------------------------------------------

    def set_string(self, name: Optional[str], value: str) -> None:
        node = self._target(name, create=True)
        node._string_value = value
        node._value_type = ValueType.STRING

    def set_int(self, name: Optional[str], value: int) -> None:
        node = self._target(name, create=True)
        node._int_value = _wrap_int32(int(value))
        node._value_type = ValueType.INT

    def set_float(self, name: Optional[str], value: float) -> None:
        node = self._target(name, create=True)
        node._float_value = _to_float32(float(value))
        node._value_type = ValueType.FLOAT

    def set_bool(self, name: Optional[str], value: bool) -> None:
        self.set_int(name, 1 if value else 0)

    # -------------------------------------------------------------------------
    # Children
    # -------------------------------------------------------------------------

    def find_child(self, name: str, create_if_missing: bool = False) -> Optional[KeyValues]:
        """
        Return the first child named ``name``.

        Args:
            name: Key to look up.
            create_if_missing: Append a new subsection child when absent.

        Returns:
            Optional[KeyValues]: The matching (or created) child, else None.
        """
        for child in self._children:
            if child._name == name:
                return child

        if not create_if_missing:
            return None

        return self.append_child(KeyValues(name, ValueType.SUBSECTION))

    def append_child(self, child: KeyValues) -> KeyValues:
        """Take ownership of ``child`` and append it after the existing children."""
        if child._parent is not None:
            child._parent.remove_node(child)
        child._parent = self
        self._children.append(child)
        return child

    def remove_child(self, name: str) -> bool:
        """
        Remove the first child named ``name``.

        Returns:
            bool: True when a child was removed.
        """
        for index, child in enumerate(self._children):
            if child._name == name:
                del self._children[index]
                child._parent = None
                return True
        return False

    def remove_node(self, child: KeyValues) -> bool:
        """Remove exactly this child instance, regardless of duplicate names."""
        for index, candidate in enumerate(self._children):
            if candidate is child:
                del self._children[index]
                child._parent = None
                return True
        return False

    def first_child(self) -> Optional[KeyValues]:
        return self._children[0] if self._children else None

    def next_sibling(self) -> Optional[KeyValues]:
        """
        Return the sibling following this node in its parent's current order.

        Returns None for roots and for nodes that have been removed.
        """
        parent = self._parent
        if parent is None:
            return None
        siblings = parent._children
        for index, candidate in enumerate(siblings):
            if candidate is self:
                return siblings[index + 1] if index + 1 < len(siblings) else None
        return None

    def iter_children(self) -> Iterator[KeyValues]:
        """Iterate over a snapshot of the children; safe to mutate while looping."""
        return iter(list(self._children))

    def children(self) -> Tuple[KeyValues, ...]:
        return tuple(self._children)

    def child_names(self) -> List[str]:
        return [child._name for child in self._children]

    def clear(self) -> None:
        """Drop all children and reset the node to an untyped, empty state."""
        for child in self._children:
            child._parent = None
        self._children = []
        self._string_value = ""
        self._int_value = 0
        self._float_value = 0.0
        self._value_type = ValueType.NONE

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _target(self, name: Optional[str], create: bool = False) -> Optional[KeyValues]:
        if name is None:
            return self
        return self.find_child(name, create_if_missing=create)

    def _scalar(self) -> object:
        if self._value_type == ValueType.STRING:
            return self._string_value
        if self._value_type == ValueType.INT:
            return self._int_value
        if self._value_type == ValueType.FLOAT:
            return self._float_value
        return None


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _parse_int(raw: str, default: int) -> int:
    """Parse a leading integer the way a lenient numeric field reader would."""
    text = raw.strip()
    end = 0
    if text[:1] in ("-", "+"):
        end = 1
    while end < len(text) and text[end] in "0123456789":
        end += 1
    digits = text[:end]
    if digits in ("", "-", "+"):
        return default
    value = int(digits)
    if not -0x80000000 <= value <= 0x7FFFFFFF:
        return default
    return value


def _wrap_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _parse_float(raw: str, default: float) -> float:
    """Parse a leading float, ignoring trailing text ("1.5abc" -> 1.5)."""
    match = _FLOAT_PREFIX.match(raw.strip())
    if match is None:
        return default
    return _to_float32(float(match.group(0)))


def _to_float32(value: float) -> float:
    """Round to the nearest binary32 value; out-of-range values become infinity."""
    try:
        return _FLOAT32.unpack(_FLOAT32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)
