"""WBS hierarchy code handling."""

from wbscalc.hierarchy.codes import (
    code_sort_key,
    compare_codes,
    find_duplicate_codes,
    next_child_code,
    parent_of,
    sort_nodes,
    validate_hierarchy,
)

__all__ = [
    "code_sort_key",
    "compare_codes",
    "find_duplicate_codes",
    "next_child_code",
    "parent_of",
    "sort_nodes",
    "validate_hierarchy",
]
