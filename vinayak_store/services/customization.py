"""
Customization and booking capture

Working state while a shopper customizes a package or service, and the
builders that turn a confirmed configuration into a cart line.

The price on the built line is frozen at confirm time. The variant key is
derived from the sorted removed indices, so the same removal set always maps
to the same cart identity and a different set to a different one.
"""
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from vinayak_store.core.exceptions import (
    BookingValidationError,
    CartValidationError,
    InvalidSelectionError,
    QuantityValidationError,
)
from vinayak_store.core.utils import today as local_today
from vinayak_store.schemas.cart import BookingDetails, PackageLine, ProductLine, ServiceLine
from vinayak_store.schemas.catalog import OptionalItem, Package, Product, Service
from vinayak_store.services.pricing import (
    compute_package_price,
    compute_savings,
    compute_service_price,
)

logger = logging.getLogger(__name__)

VARIANT_PREFIX = "custom"
BOOKING_FIELDS = ("date", "time", "venue")


def variant_key_for(removed_indices: Iterable[int]) -> Optional[str]:
    """
    Deterministic fingerprint of a removal set.

    {2, 0} -> "custom-0-2". An empty set has no variant, so an uncustomized
    configuration shares identity with a plain add of the same item.
    """
    ordered = sorted(set(removed_indices))
    if not ordered:
        return None
    return "-".join([VARIANT_PREFIX] + [str(i) for i in ordered])


def _require_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise QuantityValidationError("Quantity must be at least 1", quantity=quantity)


def validate_booking(
    booking_date: Optional[str],
    booking_time: Optional[str],
    venue: Optional[str],
    today: Optional[date] = None,
) -> BookingDetails:
    """
    Check date, time and venue before a service may be added.

    The past-date check is advisory and runs against the local clock only.

    Raises:
        BookingValidationError: a field is missing, malformed, or the date is past
    """
    values = {"date": booking_date, "time": booking_time, "venue": venue}
    missing = [name for name in BOOKING_FIELDS if not values[name] or not str(values[name]).strip()]
    if missing:
        labels = ", ".join(name.capitalize() for name in missing)
        raise BookingValidationError(
            f"Please fill in {labels} for your service booking",
            missing_fields=missing,
        )

    try:
        parsed_date = datetime.strptime(booking_date.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise BookingValidationError(
            "Booking date must be in YYYY-MM-DD format",
            details={"invalid_field": "date", "value": booking_date},
        )

    try:
        parsed_time = datetime.strptime(booking_time.strip(), "%H:%M").time()
    except ValueError:
        raise BookingValidationError(
            "Booking time must be in HH:MM format",
            details={"invalid_field": "time", "value": booking_time},
        )

    reference = today or local_today()
    if parsed_date < reference:
        raise BookingValidationError(
            "Booking date cannot be in the past",
            details={"invalid_field": "date", "value": booking_date},
        )

    return BookingDetails(
        date=parsed_date.isoformat(),
        time=parsed_time.strftime("%H:%M"),
        venue=venue.strip(),
    )


class ItemConfiguration(ABC):
    """
    Toggle state over an ordered list of optional sub-items.

    Every sub-item can be removed; is_optional is display data only.
    """

    def __init__(self, items: Sequence[OptionalItem]):
        self.items: Tuple[OptionalItem, ...] = tuple(items)
        self._removed: Set[int] = set()

    def _check_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self.items):
            raise InvalidSelectionError(
                f"Unknown optional item index: {index}",
                indices=[index] if isinstance(index, int) else [],
                item_count=len(self.items),
            )

    def toggle(self, index: int) -> bool:
        """Flip an item between included and removed. Returns True if now removed."""
        self._check_index(index)
        if index in self._removed:
            self._removed.discard(index)
            return False
        self._removed.add(index)
        return True

    def remove(self, index: int) -> None:
        self._check_index(index)
        self._removed.add(index)

    def include(self, index: int) -> None:
        self._check_index(index)
        self._removed.discard(index)

    def reset(self) -> None:
        self._removed.clear()

    def is_removed(self, index: int) -> bool:
        return index in self._removed

    @property
    def removed_indices(self) -> Tuple[int, ...]:
        return tuple(sorted(self._removed))

    @property
    def removed_names(self) -> List[str]:
        """Names of removed items, in catalog order."""
        return [self.items[i].name for i in self.removed_indices]

    @property
    def variant_key(self) -> Optional[str]:
        return variant_key_for(self._removed)

    @property
    @abstractmethod
    def original_price(self) -> int:
        """Price before any removals."""

    @property
    @abstractmethod
    def current_price(self) -> int:
        """Price with the current removals applied."""

    @property
    def savings(self) -> int:
        return compute_savings(self.original_price, self.current_price)


class PackageConfiguration(ItemConfiguration):
    """Customization of a package. Savings are measured from the deal price."""

    def __init__(self, package: Package):
        super().__init__(package.items)
        self.package = package

    def _check_index(self, index: int) -> None:
        if not self.package.is_customizable:
            raise CartValidationError(
                f"{self.package.name} cannot be customized",
                details={"package_id": self.package.id},
            )
        super()._check_index(index)

    @property
    def original_price(self) -> int:
        return self.package.base_price

    @property
    def current_price(self) -> int:
        return compute_package_price(self.package.base_price, self.items, self._removed)

    def build_line(self, quantity: int = 1) -> PackageLine:
        _require_quantity(quantity)
        line = PackageLine(
            catalog_id=self.package.id,
            display_name=self.package.name,
            unit_price=self.current_price,
            image_ref=self.package.image,
            quantity=quantity,
            variant_key=self.variant_key,
            removed_optional_items=self.removed_names or None,
        )
        logger.debug(
            "Built package line package_id=%s price=%d variant=%s",
            self.package.id, line.unit_price, line.variant_key,
        )
        return line


class ServiceConfiguration(ItemConfiguration):
    """
    Customization and booking of a service.

    The original price includes the decoration charge, which is never
    discounted by removals.
    """

    def __init__(self, service: Service):
        super().__init__(service.items)
        self.service = service

    @property
    def original_price(self) -> int:
        return self.service.price + self.service.decoration_charge

    @property
    def current_price(self) -> int:
        return compute_service_price(
            self.service.price,
            self.service.decoration_charge,
            self.items,
            self._removed,
        )

    def build_line(
        self,
        booking: Optional[BookingDetails],
        quantity: int = 1,
        requires_booking: bool = True,
    ) -> ServiceLine:
        if booking is None and requires_booking:
            raise BookingValidationError(
                "Please fill in Date, Time, Venue for your service booking",
                missing_fields=list(BOOKING_FIELDS),
            )
        _require_quantity(quantity)
        return ServiceLine(
            catalog_id=self.service.id,
            display_name=self.service.name,
            unit_price=self.current_price,
            image_ref=self.service.image,
            quantity=quantity,
            variant_key=self.variant_key,
            removed_optional_items=self.removed_names or None,
            booking_details=booking,
        )

    def book(
        self,
        booking_date: Optional[str],
        booking_time: Optional[str],
        venue: Optional[str],
        today: Optional[date] = None,
    ) -> ServiceLine:
        """Validate booking fields and build the service line in one step."""
        booking = validate_booking(booking_date, booking_time, venue, today=today)
        return self.build_line(booking)


def product_line(product: Product, quantity: int = 1) -> ProductLine:
    _require_quantity(quantity)
    return ProductLine(
        catalog_id=product.id,
        display_name=product.name,
        unit_price=product.price,
        image_ref=product.image,
        quantity=quantity,
    )


def quick_package_line(package: Package, quantity: int = 1) -> PackageLine:
    """Add from the packages listing: deal price, nothing removed."""
    _require_quantity(quantity)
    return PackageLine(
        catalog_id=package.id,
        display_name=package.name,
        unit_price=package.base_price,
        image_ref=package.image,
        quantity=quantity,
    )
