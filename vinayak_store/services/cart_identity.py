"""
Cart line identity and the merge-vs-append decision

Two lines share an identity when kind, catalog id and variant key match
(an absent variant is one canonical value). Booked services never merge.
"""
from enum import Enum
from typing import Optional, Sequence

from vinayak_store.schemas.cart import NO_VARIANT, ItemKind, LineKey


class AddOutcome(str, Enum):
    ADDED = "added"
    UPDATED_QUANTITY = "updated_quantity"


class RemoveOutcome(str, Enum):
    REMOVED = "removed"
    NOT_FOUND = "not_found"


class UpdateOutcome(str, Enum):
    UPDATED = "updated"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"


def make_key(kind, catalog_id: str, variant_key: Optional[str] = None) -> LineKey:
    kind_value = kind.value if isinstance(kind, ItemKind) else str(kind)
    return LineKey(kind_value, catalog_id, variant_key or NO_VARIANT)


def is_mergeable(line) -> bool:
    """Booked service lines are distinct commitments and never merge."""
    return not (line.kind == ItemKind.SERVICE and line.is_booking)


def find_merge_target(lines: Sequence, new_line) -> Optional[int]:
    """
    Index of the existing line `new_line` should merge into, or None to append.
    """
    if not is_mergeable(new_line):
        return None
    for index, existing in enumerate(lines):
        if is_mergeable(existing) and existing.key == new_line.key:
            return index
    return None


def matches_key(line, key: LineKey) -> bool:
    """Key match for removal/update; booking lines are only addressable by line id."""
    return is_mergeable(line) and line.key == key
