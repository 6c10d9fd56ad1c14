"""
WhatsApp status messages

Admins send customers order status updates through a wa.me link; this
builds the message text and the link.
"""
import re
from typing import Optional
from urllib.parse import quote

from vinayak_store.core.config import settings
from vinayak_store.schemas.order import OrderRecord

# Same unreserved set as JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def build_status_message(
    order: OrderRecord,
    store_name: Optional[str] = None,
    currency_symbol: Optional[str] = None,
) -> str:
    store_name = store_name or settings.APP_NAME
    currency_symbol = currency_symbol or settings.CURRENCY_SYMBOL
    items = ", ".join(f"{line.display_name} (x{line.quantity})" for line in order.items)
    return (
        f"Hello {order.shipping_details.name}!\n"
        f"\n"
        f"Your order #{order.short_id} status: *{order.status.value.upper()}*\n"
        f"\n"
        f"Order Total: {currency_symbol}{order.total}\n"
        f"Items: {items}\n"
        f"\n"
        f"Thank you for shopping with {store_name}!"
    )


def build_whatsapp_url(phone: str, message: str, country_code: Optional[str] = None) -> str:
    """
    wa.me link for a customer phone number.

    Non-digits are stripped and the store's country code is prefixed.
    """
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        raise ValueError("Phone number has no digits")
    prefix = settings.WHATSAPP_COUNTRY_CODE if country_code is None else country_code
    return f"https://wa.me/{prefix}{digits}?text={quote(message, safe=_URI_COMPONENT_SAFE)}"


def build_status_update_url(order: OrderRecord) -> str:
    return build_whatsapp_url(order.shipping_details.phone, build_status_message(order))


def build_store_contact_url(message: str, store_number: Optional[str] = None) -> str:
    """Link for the storefront's "Order via WhatsApp" button; the number already has its country code."""
    number = re.sub(r"\D", "", store_number or settings.STORE_WHATSAPP_NUMBER)
    if not number:
        raise ValueError("STORE_WHATSAPP_NUMBER is not configured")
    return f"https://wa.me/{number}?text={quote(message, safe=_URI_COMPONENT_SAFE)}"
