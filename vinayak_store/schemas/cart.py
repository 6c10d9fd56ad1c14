"""
Cart schemas

A cart line is a tagged union on `kind`. Prices are whole rupees and are a
snapshot taken when the line was added; they never re-sync from the catalog.
"""
from enum import Enum
from typing import Annotated, List, Literal, NamedTuple, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

# Canonical value for "no variant" inside identity keys
NO_VARIANT = ""


class ItemKind(str, Enum):
    """Catalog space a cart line points into."""
    PRODUCT = "product"
    SERVICE = "service"
    PACKAGE = "package"


class LineKey(NamedTuple):
    """Identity of a cart line for merge purposes."""
    kind: str
    catalog_id: str
    variant_key: str


def new_line_id() -> str:
    return uuid4().hex


class BookingDetails(BaseModel):
    """When and where a booked service takes place."""
    model_config = ConfigDict(frozen=True)

    date: str  # ISO yyyy-mm-dd
    time: str  # HH:MM, 24h
    venue: str


class CartLineBase(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    line_id: str = Field(default_factory=new_line_id)
    catalog_id: str = Field(min_length=1)
    display_name: str
    unit_price: int = Field(ge=0)
    image_ref: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    variant_key: Optional[str] = None

    @field_validator("variant_key", mode="before")
    @classmethod
    def blank_variant_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def key(self) -> LineKey:
        return LineKey(str(self.kind), self.catalog_id, self.variant_key or NO_VARIANT)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity

    @property
    def is_booking(self) -> bool:
        return False


class CustomizableLineMixin(BaseModel):
    # Names of optional sub-items the shopper excluded; absent when none were
    removed_optional_items: Optional[List[str]] = None

    @field_validator("removed_optional_items")
    @classmethod
    def empty_removals_are_absent(cls, v):
        if v is not None and len(v) == 0:
            return None
        return v


class ProductLine(CartLineBase):
    kind: Literal["product"] = "product"


class ServiceLine(CustomizableLineMixin, CartLineBase):
    kind: Literal["service"] = "service"
    booking_details: Optional[BookingDetails] = None

    @property
    def is_booking(self) -> bool:
        return self.booking_details is not None


class PackageLine(CustomizableLineMixin, CartLineBase):
    kind: Literal["package"] = "package"


CartLine = Annotated[
    Union[ProductLine, ServiceLine, PackageLine],
    Field(discriminator="kind"),
]

CART_LINE_ADAPTER = TypeAdapter(CartLine)
CART_LINES_ADAPTER = TypeAdapter(List[CartLine])


class CartSummary(BaseModel):
    lines: List[CartLine]
    total: int
    count: int
