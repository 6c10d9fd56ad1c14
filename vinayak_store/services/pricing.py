"""
Pricing rules for packages, services and the cart

All amounts are whole rupees (int). Nothing here rounds; a fractional
currency would need one rounding mode chosen here and nowhere else.
"""
from typing import Iterable, Sequence

from vinayak_store.core.exceptions import InvalidSelectionError
from vinayak_store.schemas.catalog import OptionalItem


def _validate_indices(items: Sequence[OptionalItem], removed_indices: Iterable[int]) -> set:
    removed = set(removed_indices)
    invalid = [
        i for i in removed
        if isinstance(i, bool) or not isinstance(i, int) or not 0 <= i < len(items)
    ]
    if invalid:
        raise InvalidSelectionError(
            f"Unknown optional item index: {sorted(invalid)}",
            indices=invalid,
            item_count=len(items),
        )
    return removed


def removed_value(items: Sequence[OptionalItem], removed_indices: Iterable[int]) -> int:
    """Sum of removal discounts for the removed indices."""
    removed = _validate_indices(items, removed_indices)
    return sum(items[i].remove_price for i in removed)


def compute_package_price(
    base_price: int,
    items: Sequence[OptionalItem],
    removed_indices: Iterable[int],
) -> int:
    """
    Deal price minus the removal value of every removed item, floored at 0.

    Raises:
        InvalidSelectionError: an index does not address an item
    """
    if base_price < 0:
        raise ValueError("base_price must be >= 0")
    return max(0, base_price - removed_value(items, removed_indices))


def compute_service_price(
    base_price: int,
    decoration_charge: int,
    items: Sequence[OptionalItem],
    removed_indices: Iterable[int],
) -> int:
    """
    Same removal rule as packages on the base price, then the decoration
    charge is added after the floor. The decoration charge is never discounted.
    """
    if decoration_charge is None:
        decoration_charge = 0
    if decoration_charge < 0:
        raise ValueError("decoration_charge must be >= 0")
    return compute_package_price(base_price, items, removed_indices) + decoration_charge


def compute_savings(original_price: int, current_price: int) -> int:
    """Running savings shown while customizing."""
    return max(0, original_price - current_price)


def compute_cart_total(lines: Iterable) -> int:
    """Sum of unit_price x quantity, recomputed from scratch on every call."""
    return sum(line.unit_price * line.quantity for line in lines)


def compute_cart_count(lines: Iterable) -> int:
    """Sum of quantities."""
    return sum(line.quantity for line in lines)
