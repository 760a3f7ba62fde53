"""Hierarchical WBS code arithmetic.

WBS codes are dot-separated positive integers ("1.3.2.5"). Ordering is
numeric segment by segment, never lexical: "1.10" sorts after "1.9".
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from functools import cmp_to_key

from wbscalc.models import CODE_PATTERN, WBSNode

SEPARATOR = "."


def _segments(code: str) -> list[int]:
    segments = []
    for part in code.split(SEPARATOR):
        try:
            segments.append(int(part))
        except ValueError:
            segments.append(0)
    return segments


def compare_codes(a: str, b: str) -> int:
    """Compare two codes numerically segment by segment.

    A missing segment counts as 0, so "1.3" and "1.3.0" compare equal while
    "1.3" < "1.3.1".

    Returns:
        Negative if a sorts before b, zero if equal, positive otherwise
    """
    a_parts = _segments(a)
    b_parts = _segments(b)
    for i in range(max(len(a_parts), len(b_parts))):
        a_val = a_parts[i] if i < len(a_parts) else 0
        b_val = b_parts[i] if i < len(b_parts) else 0
        if a_val != b_val:
            return a_val - b_val
    return 0


code_sort_key = cmp_to_key(compare_codes)


def is_valid_code(code: str | None) -> bool:
    return bool(code) and CODE_PATTERN.match(code.strip()) is not None


def level_of(code: str) -> int:
    return len(code.split(SEPARATOR))


def parent_of(code: str) -> str | None:
    """Code with its last segment removed, or None for a single segment."""
    parts = code.split(SEPARATOR)
    if len(parts) <= 1:
        return None
    return SEPARATOR.join(parts[:-1])


def is_direct_child(parent_code: str, code: str) -> bool:
    """True when code is parent_code plus exactly one more segment."""
    return parent_of(code) == parent_code


def next_child_code(parent_code: str, existing_codes: Iterable[str]) -> str:
    """Allocate the next free immediate child code under parent_code.

    Only immediate children ("1.3.N") count; grandchildren such as "1.3.4.1"
    are ignored. Returns parent_code + ".1" when there are no children.
    """
    prefix = parent_code + SEPARATOR
    highest = 0
    for code in existing_codes:
        if not code.startswith(prefix):
            continue
        leaf = code[len(prefix):]
        if SEPARATOR in leaf or not leaf.isdigit():
            continue
        highest = max(highest, int(leaf))
    return f"{prefix}{highest + 1}"


def sort_nodes(nodes: Iterable[WBSNode]) -> list[WBSNode]:
    """Return nodes ordered by code using compare_codes (stable)."""
    return sorted(nodes, key=lambda node: code_sort_key(node.code))


def validate_hierarchy(nodes: Sequence[WBSNode]) -> list[WBSNode]:
    """Find orphaned nodes.

    A node is orphaned when its parent_code is set but no node carries that
    code, or when the parent exists but is not the node's direct dot-prefix.

    Returns:
        Orphaned nodes in input order (empty list if the hierarchy is sound)
    """
    codes = {node.code for node in nodes}
    orphans = []
    for node in nodes:
        if node.parent_code is None:
            continue
        if node.parent_code not in codes or not is_direct_child(node.parent_code, node.code):
            orphans.append(node)
    return orphans


def find_duplicate_codes(nodes: Iterable[WBSNode]) -> list[str]:
    """Codes used by more than one node, in order of first repeat."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for node in nodes:
        if node.code in seen and node.code not in duplicates:
            duplicates.append(node.code)
        seen.add(node.code)
    return duplicates


def children_index(nodes: Iterable[WBSNode]) -> dict[str | None, list[WBSNode]]:
    """Group nodes by parent_code, each group in code order."""
    index: dict[str | None, list[WBSNode]] = {}
    for node in nodes:
        index.setdefault(node.parent_code, []).append(node)
    for parent_code, children in index.items():
        index[parent_code] = sort_nodes(children)
    return index


def describe_orphan(node: WBSNode) -> str:
    if node.parent_code is not None and not is_direct_child(node.parent_code, node.code):
        return f"Orphaned item: {node.code} is not a direct child of {node.parent_code}"
    return f"Orphaned item: {node.code} references missing parent {node.parent_code}"
