"""
Tests for package, service and cart pricing rules.
"""
import pytest

from vinayak_store.core.exceptions import InvalidSelectionError
from vinayak_store.schemas.cart import PackageLine, ProductLine
from vinayak_store.schemas.catalog import OptionalItem
from vinayak_store.services.pricing import (
    compute_cart_count,
    compute_cart_total,
    compute_package_price,
    compute_savings,
    compute_service_price,
    removed_value,
)


def _items(*remove_prices):
    return [OptionalItem(name=f"item-{i}", remove_price=p) for i, p in enumerate(remove_prices)]


class TestPackagePrice:
    """Removal subtraction with a floor at zero."""

    def test_no_removals_returns_base_price(self):
        assert compute_package_price(1500, _items(600, 200), []) == 1500

    def test_subtracts_removed_items_only(self):
        assert compute_package_price(500, _items(50, 30, 20), {0, 2}) == 430

    def test_price_floors_at_zero(self):
        """Removing more value than the base price yields exactly 0."""
        assert compute_package_price(100, _items(60, 70), {0, 1}) == 0

    def test_zero_base_price(self):
        assert compute_package_price(0, _items(10), {0}) == 0

    def test_repeated_index_counts_once(self):
        assert compute_package_price(500, _items(50, 30), [0, 0, 0]) == 450

    def test_out_of_range_index_rejected(self):
        with pytest.raises(InvalidSelectionError) as exc_info:
            compute_package_price(500, _items(50, 30), {0, 5})

        assert exc_info.value.code == "OPTIONAL_ITEM_INDEX_INVALID"
        assert exc_info.value.details["indices"] == [5]
        assert exc_info.value.details["item_count"] == 2

    def test_negative_index_rejected(self):
        with pytest.raises(InvalidSelectionError):
            compute_package_price(500, _items(50), {-1})

    @pytest.mark.parametrize("flag", [True, False])
    def test_bool_index_rejected(self, flag):
        with pytest.raises(InvalidSelectionError):
            compute_package_price(500, _items(50, 30), {flag})

    def test_negative_base_price_rejected(self):
        with pytest.raises(ValueError):
            compute_package_price(-1, _items(50), set())

    def test_removed_value(self):
        assert removed_value(_items(50, 30, 20), {1, 2}) == 50


class TestServicePrice:
    """Decoration charge is added after the base floor."""

    @pytest.mark.parametrize(
        "base,decoration,removes,removed",
        [
            (5000, 1000, (1200, 2000), {0}),
            (5000, 0, (1200, 2000), {0, 1}),
            (1000, 500, (800, 900), {0, 1}),
            (0, 250, (100,), {0}),
            (300, 0, (), set()),
        ],
    )
    def test_decoration_charge_additivity(self, base, decoration, removes, removed):
        items = _items(*removes)
        removed_sum = sum(items[i].remove_price for i in removed)

        assert compute_service_price(base, decoration, items, removed) == max(0, base - removed_sum) + decoration

    def test_decoration_charge_never_discounted(self):
        """Base reaches 0, decoration charge survives untouched."""
        assert compute_service_price(100, 200, _items(150), {0}) == 200

    def test_missing_decoration_charge_is_zero(self):
        assert compute_service_price(5000, None, _items(1200), {0}) == 3800

    def test_negative_decoration_charge_rejected(self):
        with pytest.raises(ValueError):
            compute_service_price(100, -5, _items(), set())


class TestCartAggregates:

    def test_total_and_count(self):
        lines = [
            ProductLine(catalog_id="a", display_name="A", unit_price=100, quantity=2),
            PackageLine(catalog_id="b", display_name="B", unit_price=50, quantity=1),
        ]

        assert compute_cart_total(lines) == 250
        assert compute_cart_count(lines) == 3

    def test_empty_cart(self):
        assert compute_cart_total([]) == 0
        assert compute_cart_count([]) == 0

    def test_savings_never_negative(self):
        assert compute_savings(1500, 1220) == 280
        assert compute_savings(100, 150) == 0
