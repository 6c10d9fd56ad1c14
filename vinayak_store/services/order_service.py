"""
OrderService - checkout and order queries

Checkout is the only place the cart core waits on the network:
- one outbound write per submission, no automatic retry
- a second submission while one is in flight is refused
- the ordered lines leave the cart only after the write succeeds; lines
  added while it was in flight stay. On failure the cart is left exactly as
  it was so the shopper can resubmit

Order queries back the admin order list, the customer's order history and
the admin service-request view.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Protocol, Union

from pydantic import ValidationError

from vinayak_store.adapters.firestore import FirestoreClient
from vinayak_store.adapters.order_documents import document_to_order, order_to_document
from vinayak_store.core.config import settings
from vinayak_store.core.exceptions import (
    CheckoutInProgressError,
    DocumentStoreError,
    EmptyCartError,
    OrderNotFoundError,
    OrderStatusError,
    OrderSubmissionError,
)
from vinayak_store.schemas.order import (
    Identity,
    OrderCreate,
    OrderRecord,
    OrderStatus,
    PaymentMethod,
    ShippingDetails,
)
from vinayak_store.services.cart_store import CartStore
from vinayak_store.services.notifications import error, success
from vinayak_store.services.pricing import compute_cart_total

logger = logging.getLogger(__name__)

SUBMIT_FAILED_MESSAGE = "Failed to place order. Please try again."

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class OrderSink(Protocol):
    async def submit_order(self, order: OrderCreate) -> str:
        ...


class FirestoreOrderSink:
    """Writes each order as one new document with a server-side createdAt."""

    def __init__(self, client: FirestoreClient, collection: Optional[str] = None):
        self._client = client
        self.collection = collection or settings.ORDERS_COLLECTION

    async def submit_order(self, order: OrderCreate) -> str:
        try:
            return await self._client.create_document(
                self.collection,
                order_to_document(order),
                server_timestamp_fields=("createdAt",),
            )
        except DocumentStoreError as e:
            raise OrderSubmissionError(SUBMIT_FAILED_MESSAGE, details=e.details) from e


class CheckoutService:
    """Turns the current cart into exactly one order."""

    def __init__(
        self,
        cart: CartStore,
        sink: OrderSink,
        identity: Optional[Identity] = None,
    ):
        self._cart = cart
        self._sink = sink
        self._identity = identity or Identity.guest()
        self._submitting = False

    @property
    def is_submitting(self) -> bool:
        """True while a submission is in flight; the UI disables its submit button."""
        return self._submitting

    def build_order(
        self,
        shipping: Union[ShippingDetails, dict],
        payment_method: Union[PaymentMethod, str] = PaymentMethod.COD,
    ) -> OrderCreate:
        """Snapshot the cart into an order payload without submitting it."""
        lines = list(self._cart.lines)
        if not lines:
            raise EmptyCartError("Your cart is empty")
        return OrderCreate(
            user_id=self._identity.user_id,
            user_email=self._identity.email or self._identity.user_id,
            items=lines,
            total=compute_cart_total(lines),
            status=OrderStatus.PENDING,
            shipping_details=ShippingDetails.model_validate(shipping)
            if isinstance(shipping, dict) else shipping,
            payment_method=PaymentMethod(payment_method),
        )

    async def place_order(
        self,
        shipping: Union[ShippingDetails, dict],
        payment_method: Union[PaymentMethod, str] = PaymentMethod.COD,
    ) -> str:
        """
        Submit the cart as an order and take the ordered lines out of it.

        Returns:
            The new order id

        Raises:
            CheckoutInProgressError: a submission is already in flight
            EmptyCartError: nothing to order
            OrderSubmissionError: the write failed; the cart is untouched
        """
        if self._submitting:
            raise CheckoutInProgressError("Your order is already being placed")

        order = self.build_order(shipping, payment_method)

        self._submitting = True
        try:
            order_id = await self._sink.submit_order(order)
        except Exception as e:
            logger.error(
                "Order submission failed user=%s lines=%d total=%d: %s",
                order.user_id, len(order.items), order.total, e,
            )
            self._cart.notifier.notify(error(SUBMIT_FAILED_MESSAGE))
            if isinstance(e, OrderSubmissionError):
                raise
            raise OrderSubmissionError(
                SUBMIT_FAILED_MESSAGE,
                details={"cause": type(e).__name__},
            ) from e
        finally:
            self._submitting = False

        self._settle_ordered_lines(order)
        logger.info(
            "Order placed order_id=%s user=%s total=%d", order_id, order.user_id, order.total
        )
        self._cart.notifier.notify(success("Order placed successfully!"))
        return order_id

    def _settle_ordered_lines(self, order: OrderCreate) -> None:
        """
        Take the ordered lines out of the cart.

        Lines added while the order was in flight stay. A line whose quantity
        grew in the meantime keeps only the extra quantity.
        """
        ordered_quantity = {line.line_id: line.quantity for line in order.items}
        fully_ordered = []
        for line in self._cart.lines:
            if line.line_id not in ordered_quantity:
                continue
            extra = line.quantity - ordered_quantity[line.line_id]
            if extra > 0:
                self._cart.update_quantity(line.line_id, extra)
            else:
                fully_ordered.append(line.line_id)
        self._cart.remove_lines(fully_ordered)


def _newest_first(orders: List[OrderRecord]) -> List[OrderRecord]:
    return sorted(orders, key=lambda o: o.created_at or _EPOCH, reverse=True)


class OrderQueryService:
    """Read side of the orders collection, plus the admin status update."""

    def __init__(self, client: FirestoreClient, collection: Optional[str] = None):
        self._client = client
        self.collection = collection or settings.ORDERS_COLLECTION

    def _parse(self, documents) -> List[OrderRecord]:
        orders: List[OrderRecord] = []
        for document in documents:
            try:
                orders.append(document_to_order(document))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed order %s: %d errors", document.id, e.error_count()
                )
        return orders

    async def list_orders(self) -> List[OrderRecord]:
        """All orders, newest first."""
        documents = await self._client.list_documents(self.collection)
        return _newest_first(self._parse(documents))

    async def list_user_orders(self, user_id: str) -> List[OrderRecord]:
        """One customer's orders, newest first. Sorted here to avoid a composite index."""
        documents = await self._client.query_equal(self.collection, "userId", user_id)
        return _newest_first(self._parse(documents))

    async def list_service_requests(self) -> List[OrderRecord]:
        """Orders containing at least one service line, newest first."""
        return [order for order in await self.list_orders() if order.has_services]

    async def get_order(self, order_id: str) -> OrderRecord:
        document = await self._client.get_document(self.collection, order_id)
        if document is None:
            raise OrderNotFoundError(f"Order {order_id} not found", details={"order_id": order_id})
        return document_to_order(document)

    async def update_status(self, order_id: str, status: Union[OrderStatus, str]) -> OrderRecord:
        """Set an order's status label. Only the closed status set is accepted."""
        try:
            new_status = OrderStatus(status)
        except ValueError:
            raise OrderStatusError(f"Unknown order status: {status}", status=str(status))

        document = await self._client.update_fields(
            self.collection, order_id, {"status": new_status.value}
        )
        if document is None:
            raise OrderNotFoundError(f"Order {order_id} not found", details={"order_id": order_id})

        logger.info("Order status updated order_id=%s status=%s", order_id, new_status.value)
        return document_to_order(document)
