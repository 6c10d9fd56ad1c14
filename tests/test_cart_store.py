"""
Tests for CartStore: merge rules, quantity rules, aggregates and write-through.
"""
import pytest

from vinayak_store.schemas.cart import ItemKind, PackageLine, ProductLine
from vinayak_store.services.cart_identity import AddOutcome, RemoveOutcome, UpdateOutcome
from vinayak_store.services.cart_store import CartStore
from vinayak_store.services.customization import (
    ServiceConfiguration,
    product_line,
    quick_package_line,
)
from vinayak_store.services.notifications import NotificationLevel

BOOKING_DAY = "2099-01-15"


def _booked(service, venue="Home", day=BOOKING_DAY, time="10:00"):
    return ServiceConfiguration(service).book(day, time, venue)


class TestAddLine:
    """Merge vs append."""

    def test_same_product_twice_merges(self, cart, diya):
        first = cart.add_line(product_line(diya))
        second = cart.add_line(product_line(diya))

        assert first.outcome == AddOutcome.ADDED
        assert second.outcome == AddOutcome.UPDATED_QUANTITY
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 2

    def test_merge_adds_incoming_quantity(self, cart, diya):
        cart.add_line(product_line(diya, quantity=2))
        cart.add_line(product_line(diya, quantity=3))

        assert cart.lines[0].quantity == 5

    def test_merge_keeps_existing_price_snapshot(self, cart, diya):
        cart.add_line(product_line(diya))
        repriced = diya.model_copy(update={"price": 999})
        cart.add_line(product_line(repriced))

        assert cart.lines[0].unit_price == 250
        assert cart.total == 500

    def test_same_catalog_id_different_kind_does_not_merge(self, cart):
        cart.add_line(ProductLine(catalog_id="shared", display_name="A", unit_price=10))
        cart.add_line(PackageLine(catalog_id="shared", display_name="B", unit_price=20))

        assert len(cart.lines) == 2

    def test_booked_services_never_merge(self, cart, griha_pravesh):
        """Identical booked services stay separate lines of quantity 1."""
        cart.add_line(_booked(griha_pravesh))
        cart.add_line(_booked(griha_pravesh))
        cart.add_line(_booked(griha_pravesh, venue="Temple hall"))

        assert len(cart.lines) == 3
        assert all(line.quantity == 1 for line in cart.lines)
        assert len({line.line_id for line in cart.lines}) == 3

    def test_readding_same_line_object_gets_new_line_id(self, cart, griha_pravesh):
        line = _booked(griha_pravesh)
        cart.add_line(line)
        cart.add_line(line)

        ids = [l.line_id for l in cart.lines]
        assert len(set(ids)) == 2

    def test_notifications(self, cart, notifier, diya):
        cart.add_line(product_line(diya))
        cart.add_line(product_line(diya))

        messages = [(n.level, n.message) for n in notifier.drain()]
        assert messages == [
            (NotificationLevel.SUCCESS, "Added Brass Diya to cart"),
            (NotificationLevel.SUCCESS, "Updated Brass Diya quantity"),
        ]

    def test_caller_mutation_after_add_does_not_leak(self, cart, diya):
        line = product_line(diya)
        cart.add_line(line)
        line.quantity = 40

        assert cart.lines[0].quantity == 1

    def test_returned_lines_are_copies(self, cart, diya):
        cart.add_line(product_line(diya))
        cart.lines[0].quantity = 9

        assert cart.count == 1


class TestRemove:

    def test_remove_line_by_id(self, cart, diya, notifier):
        added = cart.add_line(product_line(diya))
        notifier.drain()

        result = cart.remove_line(added.line.line_id)

        assert result.outcome == RemoveOutcome.REMOVED
        assert result.removed_count == 1
        assert cart.is_empty
        assert [n.message for n in notifier.drain()] == ["Item removed from cart"]

    def test_remove_unknown_is_noop(self, cart, diya, notifier):
        cart.add_line(product_line(diya))
        notifier.drain()

        result = cart.remove_line("no-such-line")

        assert result.outcome == RemoveOutcome.NOT_FOUND
        assert not result.changed
        assert len(cart.lines) == 1
        assert notifier.pending == []

    def test_remove_one_of_two_bookings(self, cart, griha_pravesh):
        first = cart.add_line(_booked(griha_pravesh))
        cart.add_line(_booked(griha_pravesh))

        cart.remove_line(first.line.line_id)

        assert len(cart.lines) == 1
        assert cart.lines[0].line_id != first.line.line_id

    def test_remove_lines_is_silent_and_exact(self, cart, diya, ganesh_package, griha_pravesh, notifier):
        first = cart.add_line(product_line(diya))
        kept = cart.add_line(quick_package_line(ganesh_package))
        booked = cart.add_line(_booked(griha_pravesh))
        notifier.drain()

        result = cart.remove_lines([first.line.line_id, booked.line.line_id, "no-such-line"])

        assert result.removed_count == 2
        assert [line.line_id for line in cart.lines] == [kept.line.line_id]
        assert notifier.pending == []

    def test_remove_lines_with_no_ids_is_noop(self, cart, diya):
        cart.add_line(product_line(diya))

        result = cart.remove_lines([])

        assert result.outcome == RemoveOutcome.NOT_FOUND
        assert len(cart.lines) == 1

    def test_remove_by_key_skips_booking_lines(self, cart, griha_pravesh):
        cart.add_line(_booked(griha_pravesh))

        result = cart.remove_by_key(griha_pravesh.id)

        assert result.outcome == RemoveOutcome.NOT_FOUND
        assert len(cart.lines) == 1

    def test_remove_by_key_respects_variant(self, cart, ganesh_package):
        cart.add_line(quick_package_line(ganesh_package))
        cart.add_line(PackageLine(
            catalog_id=ganesh_package.id,
            display_name=ganesh_package.name,
            unit_price=900,
            variant_key="custom-0",
            removed_optional_items=["Ganesh Idol"],
        ))

        cart.remove_by_key(ganesh_package.id, variant_key="custom-0", kind=ItemKind.PACKAGE)

        assert len(cart.lines) == 1
        assert cart.lines[0].variant_key is None

    def test_clear(self, cart, diya, ganesh_package):
        cart.add_line(product_line(diya))
        cart.add_line(quick_package_line(ganesh_package))

        result = cart.clear()

        assert result.removed_count == 2
        assert cart.is_empty
        assert cart.total == 0
        assert cart.count == 0


class TestUpdateQuantity:

    @pytest.mark.parametrize("bad", [0, -1, -50])
    def test_below_one_is_rejected_without_change(self, cart, diya, notifier, bad):
        added = cart.add_line(product_line(diya, quantity=3))
        notifier.drain()

        result = cart.update_quantity(added.line.line_id, bad)

        assert result.outcome == UpdateOutcome.REJECTED
        assert cart.lines[0].quantity == 3
        notifications = notifier.drain()
        assert len(notifications) == 1
        assert notifications[0].level == NotificationLevel.ERROR

    def test_non_integer_rejected(self, cart, diya):
        added = cart.add_line(product_line(diya))

        assert cart.update_quantity(added.line.line_id, 2.5).outcome == UpdateOutcome.REJECTED
        assert cart.update_quantity(added.line.line_id, True).outcome == UpdateOutcome.REJECTED
        assert cart.lines[0].quantity == 1

    def test_sets_quantity(self, cart, diya):
        added = cart.add_line(product_line(diya))

        result = cart.update_quantity(added.line.line_id, 4)

        assert result.outcome == UpdateOutcome.UPDATED
        assert result.line.quantity == 4
        assert cart.count == 4
        assert cart.total == 1000

    def test_unknown_line(self, cart):
        assert cart.update_quantity("missing", 2).outcome == UpdateOutcome.NOT_FOUND

    def test_update_by_key(self, cart, diya):
        cart.add_line(product_line(diya))

        result = cart.update_quantity_by_key(diya.id, 6, kind=ItemKind.PRODUCT)

        assert result.outcome == UpdateOutcome.UPDATED
        assert cart.lines[0].quantity == 6


class TestAggregates:

    def test_total_and_count_track_every_mutation(self, cart, diya, ganesh_package, griha_pravesh):
        cart.add_line(product_line(diya, quantity=2))  # 500
        pkg = cart.add_line(quick_package_line(ganesh_package))  # 1500
        cart.add_line(_booked(griha_pravesh))  # 6000

        assert cart.total == 8000
        assert cart.count == 4

        cart.update_quantity(pkg.line.line_id, 2)
        assert cart.total == 9500
        assert cart.count == 5

        cart.remove_line(pkg.line.line_id)
        assert cart.total == sum(l.unit_price * l.quantity for l in cart.lines)
        assert cart.count == 3

    def test_remove_first_of_two_lines(self, cart):
        first = cart.add_line(ProductLine(catalog_id="a", display_name="A", unit_price=100, quantity=2))
        cart.add_line(ProductLine(catalog_id="b", display_name="B", unit_price=50, quantity=1))

        assert (cart.total, cart.count) == (250, 3)

        cart.remove_line(first.line.line_id)

        assert (cart.total, cart.count) == (50, 1)

    def test_has_services(self, cart, diya, griha_pravesh):
        cart.add_line(product_line(diya))
        assert not cart.has_services()

        cart.add_line(_booked(griha_pravesh))
        assert cart.has_services()

    def test_summary(self, cart, diya):
        cart.add_line(product_line(diya, quantity=3))

        summary = cart.summary()

        assert summary.total == 750
        assert summary.count == 3
        assert len(summary.lines) == 1


class TestWriteThrough:

    def test_every_mutation_persists(self, memory_storage, diya):
        cart = CartStore(memory_storage)

        added = cart.add_line(product_line(diya))
        assert memory_storage.load()[0].quantity == 1

        cart.update_quantity(added.line.line_id, 3)
        assert memory_storage.load()[0].quantity == 3

        cart.clear()
        assert memory_storage.load() == []

    def test_rejected_update_does_not_write(self, memory_storage, diya):
        cart = CartStore(memory_storage)
        added = cart.add_line(product_line(diya))
        before = memory_storage.payload

        cart.update_quantity(added.line.line_id, 0)

        assert memory_storage.payload == before

    def test_new_store_rehydrates(self, memory_storage, diya, griha_pravesh):
        cart = CartStore(memory_storage)
        cart.add_line(product_line(diya, quantity=2))
        cart.add_line(_booked(griha_pravesh))

        restored = CartStore(memory_storage)

        assert restored.lines == cart.lines
        assert restored.total == cart.total
