from __future__ import annotations

"""
KeyValues Tree Renderer.

Converts decoded record trees into visual ASCII representations for
inspection from the command line. Children are shown in record order.
"""

from typing import List, Optional

from arcade_catalog.domain.keyvalues import KeyValues, ValueType

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def render_keyvalues(node: KeyValues, lines: Optional[List[str]] = None, prefix: str = "") -> List[str]:
    """
    Recursively transform a KeyValues tree into a list of strings.

    Uses standard ASCII connectors (├──, └──); scalars render as
    ``name = value`` and containers as their name followed by their children.

    Args:
        node: Tree whose children are rendered.
        lines: Accumulator list for output strings.
        prefix: Indentation prefix for the current recursion level.

    Returns:
        List[str]: The accumulator, for convenience.
    """
    if lines is None:
        lines = []

    children = node.children()
    total = len(children)

    for i, child in enumerate(children):
        is_last = (i == total - 1)
        connector = "└── " if is_last else "├── "

        if child.child_count() > 0 or child.value_type in (ValueType.SUBSECTION, ValueType.NONE):
            lines.append(f"{prefix}{connector}{child.name}")
            render_keyvalues(child, lines, prefix + ("    " if is_last else "│   "))
            continue

        lines.append(f"{prefix}{connector}{child.name} = {_format_scalar(child)}")

    return lines

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _format_scalar(node: KeyValues) -> str:
    if node.value_type == ValueType.STRING:
        return f'"{node.get_string()}"'
    if node.value_type == ValueType.INT:
        return str(node.get_int())
    return repr(node.get_float())
