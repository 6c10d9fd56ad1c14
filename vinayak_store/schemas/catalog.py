"""
Catalog schemas

Read-only views of the product, service and package documents. Documents are
stored with camelCase field names, so every model accepts both spellings.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CatalogModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class OptionalItem(CatalogModel):
    """A sub-item of a service or package the shopper may decline."""
    name: str
    price: int = Field(default=0, ge=0)  # full value, shown for reference
    remove_price: int = Field(default=0, ge=0)  # discount when removed
    image: Optional[str] = None
    type: Optional[str] = None  # "product" | "custom" on packages
    is_optional: bool = True  # display hint only; any sub-item may be removed

    @field_validator("price", "remove_price", mode="before")
    @classmethod
    def missing_amount_is_zero(cls, v):
        return 0 if v is None else v


class Product(CatalogModel):
    id: str
    name: str
    price: int = Field(ge=0)
    image: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    stock: Optional[int] = None


class Service(CatalogModel):
    id: str
    name: str
    price: int = Field(ge=0)
    image: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    items: List[OptionalItem] = []
    decoration_charge: int = Field(default=0, ge=0)

    @field_validator("decoration_charge", mode="before")
    @classmethod
    def missing_charge_is_zero(cls, v):
        return 0 if v is None else v

    @field_validator("items", mode="before")
    @classmethod
    def missing_items_is_empty(cls, v):
        return [] if v is None else v

    @property
    def listed_price(self) -> int:
        """Price shown on the services listing: base plus decoration."""
        return self.price + self.decoration_charge


class Package(CatalogModel):
    id: str
    name: str
    base_price: int = Field(ge=0)  # deal price
    total_worth: Optional[int] = None  # sum of item values, shown struck through
    is_customizable: bool = True
    image: Optional[str] = None
    description: Optional[str] = None
    items: List[OptionalItem] = []

    @field_validator("items", mode="before")
    @classmethod
    def missing_items_is_empty(cls, v):
        return [] if v is None else v
