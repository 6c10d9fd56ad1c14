"""
Cart Store

Single owner of the session's cart lines. Every consumer gets the same
instance and mutates only through add/remove/update/clear, so identity and
quantity rules live in one place.

- Rehydrates from local storage once, at construction
- Writes through to local storage after every mutation
- Total and count are recomputed from the lines on every read
- Never raises for well-formed input; outcomes come back as CartMutationResult
"""
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple, Union

from vinayak_store.schemas.cart import CartLine, CartSummary, ItemKind, new_line_id
from vinayak_store.services.cart_identity import (
    AddOutcome,
    RemoveOutcome,
    UpdateOutcome,
    find_merge_target,
    make_key,
    matches_key,
)
from vinayak_store.services.cart_storage import CartStorage
from vinayak_store.services.notifications import (
    LoggingNotifier,
    Notifier,
    error,
    success,
)
from vinayak_store.services.pricing import compute_cart_count, compute_cart_total

logger = logging.getLogger(__name__)

Outcome = Union[AddOutcome, RemoveOutcome, UpdateOutcome]


@dataclass(frozen=True)
class CartMutationResult:
    """Result of a cart mutation."""
    outcome: Outcome
    line: Optional[CartLine] = None
    removed_count: int = 0

    @property
    def changed(self) -> bool:
        return self.outcome in (
            AddOutcome.ADDED,
            AddOutcome.UPDATED_QUANTITY,
            RemoveOutcome.REMOVED,
            UpdateOutcome.UPDATED,
        )


class CartStore:
    """In-memory cart backed by durable local storage."""

    def __init__(self, storage: CartStorage, notifier: Optional[Notifier] = None):
        self._storage = storage
        self._notifier = notifier or LoggingNotifier()
        self._lines: List[CartLine] = list(storage.load())
        logger.info("Cart rehydrated lines=%d count=%d", len(self._lines), self.count)

    # ==================== Reads ====================

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        """Copies of the current lines; mutating them does not touch the cart."""
        return tuple(line.model_copy(deep=True) for line in self._lines)

    @property
    def total(self) -> int:
        return compute_cart_total(self._lines)

    @property
    def count(self) -> int:
        return compute_cart_count(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    def has_services(self) -> bool:
        return any(line.kind == ItemKind.SERVICE for line in self._lines)

    def get_line(self, line_id: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.line_id == line_id:
                return line.model_copy(deep=True)
        return None

    def summary(self) -> CartSummary:
        lines = list(self.lines)
        return CartSummary(
            lines=lines,
            total=compute_cart_total(lines),
            count=compute_cart_count(lines),
        )

    # ==================== Mutations ====================

    def add_line(self, new_line: CartLine) -> CartMutationResult:
        """
        Merge into an existing line with the same identity, or append.

        On merge only the quantity changes; the existing line keeps the price
        and customization snapshot it was first added with.
        """
        line = new_line.model_copy(deep=True)
        target = find_merge_target(self._lines, line)

        if target is None:
            if any(existing.line_id == line.line_id for existing in self._lines):
                line = line.model_copy(update={"line_id": new_line_id()})
            self._lines.append(line)
            self._persist()
            logger.info(
                "Cart line added kind=%s catalog_id=%s variant=%s qty=%d",
                line.kind, line.catalog_id, line.variant_key, line.quantity,
            )
            self._notifier.notify(success(f"Added {line.display_name} to cart"))
            return CartMutationResult(AddOutcome.ADDED, line.model_copy(deep=True))

        existing = self._lines[target]
        existing.quantity = existing.quantity + line.quantity
        self._persist()
        logger.info(
            "Cart line merged line_id=%s catalog_id=%s qty=%d",
            existing.line_id, existing.catalog_id, existing.quantity,
        )
        self._notifier.notify(success(f"Updated {existing.display_name} quantity"))
        return CartMutationResult(AddOutcome.UPDATED_QUANTITY, existing.model_copy(deep=True))

    def remove_line(self, line_id: str) -> CartMutationResult:
        """Remove one line by its line id. Unknown ids are a no-op."""
        return self._remove_where(lambda line: line.line_id == line_id)

    def remove_by_key(
        self,
        catalog_id: str,
        variant_key: Optional[str] = None,
        kind: Optional[ItemKind] = None,
    ) -> CartMutationResult:
        """
        Remove non-booking lines matching catalog id and variant.

        Booking lines are skipped; they can only be removed by line id.
        """
        return self._remove_where(self._key_predicate(catalog_id, variant_key, kind))

    def update_quantity(self, line_id: str, new_quantity: int) -> CartMutationResult:
        """Set a line's quantity. Values below 1 are rejected, not clamped."""
        return self._update_where(lambda line: line.line_id == line_id, new_quantity)

    def update_quantity_by_key(
        self,
        catalog_id: str,
        new_quantity: int,
        variant_key: Optional[str] = None,
        kind: Optional[ItemKind] = None,
    ) -> CartMutationResult:
        return self._update_where(
            self._key_predicate(catalog_id, variant_key, kind), new_quantity
        )

    def remove_lines(self, line_ids: Iterable[str]) -> CartMutationResult:
        """
        Remove exactly the given lines without a toast.

        Checkout uses this so lines added while an order was in flight survive.
        """
        ids = set(line_ids)
        return self._remove_where(lambda line: line.line_id in ids, notify=False)

    def clear(self) -> CartMutationResult:
        removed = len(self._lines)
        self._lines = []
        self._persist()
        logger.info("Cart cleared lines=%d", removed)
        return CartMutationResult(RemoveOutcome.REMOVED, removed_count=removed)

    # ==================== Internals ====================

    @staticmethod
    def _key_predicate(
        catalog_id: str,
        variant_key: Optional[str],
        kind: Optional[ItemKind],
    ) -> Callable[[CartLine], bool]:
        if kind is not None:
            key = make_key(kind, catalog_id, variant_key)
            return lambda line: matches_key(line, key)
        return lambda line: matches_key(line, make_key(line.kind, catalog_id, variant_key))

    def _remove_where(
        self,
        predicate: Callable[[CartLine], bool],
        notify: bool = True,
    ) -> CartMutationResult:
        kept = [line for line in self._lines if not predicate(line)]
        removed = len(self._lines) - len(kept)
        if not removed:
            return CartMutationResult(RemoveOutcome.NOT_FOUND)

        self._lines = kept
        self._persist()
        logger.info("Cart lines removed count=%d", removed)
        if notify:
            self._notifier.notify(error("Item removed from cart"))
        return CartMutationResult(RemoveOutcome.REMOVED, removed_count=removed)

    def _update_where(
        self,
        predicate: Callable[[CartLine], bool],
        new_quantity: int,
    ) -> CartMutationResult:
        if isinstance(new_quantity, bool) or not isinstance(new_quantity, int) or new_quantity < 1:
            logger.debug("Rejected quantity update qty=%r", new_quantity)
            self._notifier.notify(error("Quantity must be at least 1"))
            return CartMutationResult(UpdateOutcome.REJECTED)

        matched = [line for line in self._lines if predicate(line)]
        if not matched:
            return CartMutationResult(UpdateOutcome.NOT_FOUND)

        for line in matched:
            line.quantity = new_quantity
        self._persist()
        return CartMutationResult(UpdateOutcome.UPDATED, matched[0].model_copy(deep=True))

    def _persist(self) -> None:
        self._storage.save(self._lines)
