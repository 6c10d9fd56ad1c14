from vinayak_store.schemas.cart import (
    ItemKind,
    LineKey,
    BookingDetails,
    ProductLine,
    ServiceLine,
    PackageLine,
    CartLine,
    CartSummary,
)
from vinayak_store.schemas.catalog import OptionalItem, Product, Service, Package
from vinayak_store.schemas.order import (
    OrderStatus,
    PaymentMethod,
    ShippingDetails,
    Identity,
    OrderBase,
    OrderCreate,
    OrderRecord,
)
