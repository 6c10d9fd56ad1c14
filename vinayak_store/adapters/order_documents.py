"""
Order document mapping

Orders are stored in the shape the storefront and admin console already read:
camelCase keys, cart lines as {id, name, price, image, quantity, type, ...}.
Optional keys are omitted rather than written as null.
"""
from typing import Any, Dict

from vinayak_store.adapters.firestore import FirestoreDocument
from vinayak_store.schemas.cart import (
    CART_LINE_ADAPTER,
    CartLine,
    PackageLine,
    ServiceLine,
    new_line_id,
)
from vinayak_store.schemas.order import OrderCreate, OrderRecord


def line_to_document(line: CartLine) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "id": line.catalog_id,
        "lineId": line.line_id,
        "name": line.display_name,
        "price": line.unit_price,
        "image": line.image_ref or "",
        "quantity": line.quantity,
        "type": line.kind,
    }
    if line.variant_key:
        doc["variant"] = line.variant_key
    if isinstance(line, (ServiceLine, PackageLine)) and line.removed_optional_items:
        doc["customization"] = list(line.removed_optional_items)
    if isinstance(line, ServiceLine) and line.booking_details is not None:
        doc["bookingDetails"] = line.booking_details.model_dump()
    return doc


def document_to_line(data: Dict[str, Any]) -> CartLine:
    """Stored line -> CartLine. Lines written before line ids existed get a fresh one."""
    return CART_LINE_ADAPTER.validate_python({
        "kind": data.get("type") or "product",
        "line_id": data.get("lineId") or new_line_id(),
        "catalog_id": data.get("id"),
        "display_name": data.get("name"),
        "unit_price": data.get("price"),
        "image_ref": data.get("image") or None,
        "quantity": data.get("quantity", 1),
        "variant_key": data.get("variant"),
        "removed_optional_items": data.get("customization"),
        "booking_details": data.get("bookingDetails"),
    })


def order_to_document(order: OrderCreate) -> Dict[str, Any]:
    return {
        "userId": order.user_id,
        "userEmail": order.user_email,
        "items": [line_to_document(line) for line in order.items],
        "total": order.total,
        "status": order.status.value,
        "shippingDetails": order.shipping_details.model_dump(),
        "paymentMethod": order.payment_method.value,
    }


def document_to_order(document: FirestoreDocument) -> OrderRecord:
    data = document.data
    return OrderRecord(
        id=document.id,
        user_id=data.get("userId") or "guest",
        user_email=data.get("userEmail") or "guest",
        items=[document_to_line(item) for item in data.get("items") or []],
        total=data.get("total", 0),
        status=data.get("status") or "pending",
        shipping_details=data.get("shippingDetails") or {},
        payment_method=data.get("paymentMethod") or "cod",
        created_at=data.get("createdAt") or document.create_time,
    )
