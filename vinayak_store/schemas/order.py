"""
Order schemas

An order is a write-once snapshot of the cart taken at checkout.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from vinayak_store.schemas.cart import CartLine, ItemKind

GUEST_USER_ID = "guest"


class OrderStatus(str, Enum):
    """Closed set of order status labels."""
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """Cash on delivery is the only supported method."""
    COD = "cod"


class ShippingDetails(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    zip: str = Field(min_length=1)

    @field_validator("name", "phone", "address", "city", "zip", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class Identity(BaseModel):
    """The only part of the auth session the cart core reads."""
    user_id: str = GUEST_USER_ID
    email: Optional[str] = None

    @classmethod
    def guest(cls) -> "Identity":
        return cls()

    @property
    def is_guest(self) -> bool:
        return self.user_id == GUEST_USER_ID


class OrderBase(BaseModel):
    user_id: str = GUEST_USER_ID
    user_email: str = GUEST_USER_ID
    items: List[CartLine] = []
    total: int = Field(ge=0)
    status: OrderStatus = OrderStatus.PENDING
    shipping_details: ShippingDetails
    payment_method: PaymentMethod = PaymentMethod.COD

    @property
    def has_services(self) -> bool:
        return any(line.kind == ItemKind.SERVICE for line in self.items)

    @property
    def service_lines(self) -> List[CartLine]:
        return [line for line in self.items if line.kind == ItemKind.SERVICE]


class OrderCreate(OrderBase):
    """Order about to be written. The total must equal the line snapshot."""
    items: List[CartLine] = Field(min_length=1)

    @model_validator(mode="after")
    def total_matches_lines(self):
        expected = sum(line.unit_price * line.quantity for line in self.items)
        if self.total != expected:
            raise ValueError(
                f"Order total {self.total} does not match line total {expected}"
            )
        return self


class OrderRecord(OrderBase):
    """Order as read back from the order store."""
    id: str
    created_at: Optional[datetime] = None

    @property
    def short_id(self) -> str:
        return self.id[:8]
