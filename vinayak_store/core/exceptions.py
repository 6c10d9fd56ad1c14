"""
Vinayak Store Exception Hierarchy

Structured exception classes for the cart, catalog and checkout subsystems.
All exceptions include code, message, and details for logging and for the
user-facing message shown by the storefront.

Exception Hierarchy:
    StoreBaseError
    ├── CartValidationError
    │   ├── BookingValidationError
    │   ├── QuantityValidationError
    │   └── InvalidSelectionError
    ├── CatalogError
    │   ├── CatalogNotFoundError
    │   └── CatalogFetchError
    ├── OrderError
    │   ├── OrderSubmissionError
    │   ├── CheckoutInProgressError
    │   ├── EmptyCartError
    │   ├── OrderStatusError
    │   └── OrderNotFoundError
    └── DocumentStoreError
"""
import logging
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class StoreBaseError(Exception):
    """
    Base exception for all Vinayak Store custom errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging
        severity: P0-P3 severity level
    """

    default_code: str = "STORE_ERROR"
    default_severity: str = "P2"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[str] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.severity = severity or self.default_severity
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# CART VALIDATION ERRORS
# =============================================================================

class CartValidationError(StoreBaseError):
    """Input rejected before it reaches the cart. No state is mutated."""
    default_code = "CART_VALIDATION_FAILED"
    default_severity = "P3"


class BookingValidationError(CartValidationError):
    """Booking details are missing or unusable."""
    default_code = "BOOKING_INVALID"

    def __init__(
        self,
        message: str,
        missing_fields: Optional[List[str]] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        self.missing_fields = list(missing_fields or [])
        details["missing_fields"] = self.missing_fields
        super().__init__(message, details=details, **kwargs)


class QuantityValidationError(CartValidationError):
    """Quantity below the floor of 1."""
    default_code = "QUANTITY_INVALID"

    def __init__(self, message: str, quantity: Optional[int] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["quantity"] = quantity
        super().__init__(message, details=details, **kwargs)


class InvalidSelectionError(CartValidationError):
    """Removed optional-item indices that do not exist on the item."""
    default_code = "OPTIONAL_ITEM_INDEX_INVALID"

    def __init__(
        self,
        message: str,
        indices: Optional[List[int]] = None,
        item_count: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "indices": sorted(indices or []),
            "item_count": item_count,
        })
        super().__init__(message, details=details, **kwargs)


# =============================================================================
# CATALOG ERRORS
# =============================================================================

class CatalogError(StoreBaseError):
    """Base exception for catalog read failures."""
    default_code = "CATALOG_ERROR"
    default_severity = "P2"


class CatalogNotFoundError(CatalogError):
    """Requested product, service or package does not exist."""
    default_code = "CATALOG_ITEM_NOT_FOUND"
    default_severity = "P3"

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        item_id: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "collection": collection,
            "item_id": item_id,
        })
        super().__init__(message, details=details, **kwargs)


class CatalogFetchError(CatalogError):
    """Catalog could not be read (transport or decode failure)."""
    default_code = "CATALOG_FETCH_FAILED"


# =============================================================================
# ORDER ERRORS
# =============================================================================

class OrderError(StoreBaseError):
    """Base exception for checkout and order errors."""
    default_code = "ORDER_ERROR"
    default_severity = "P1"


class OrderSubmissionError(OrderError):
    """Order write failed. The cart is left untouched so the shopper can retry."""
    default_code = "ORDER_SUBMIT_FAILED"
    default_severity = "P1"


class CheckoutInProgressError(OrderError):
    """A submission is already in flight for this cart."""
    default_code = "CHECKOUT_IN_PROGRESS"
    default_severity = "P3"


class EmptyCartError(OrderError):
    """Checkout attempted with nothing in the cart."""
    default_code = "CART_EMPTY"
    default_severity = "P3"


class OrderStatusError(OrderError):
    """Status label outside the closed status set."""
    default_code = "ORDER_STATUS_INVALID"
    default_severity = "P3"

    def __init__(self, message: str, status: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["status"] = status
        super().__init__(message, details=details, **kwargs)


class OrderNotFoundError(OrderError):
    """Order id does not exist in the order store."""
    default_code = "ORDER_NOT_FOUND"
    default_severity = "P3"


# =============================================================================
# DOCUMENT STORE ERRORS
# =============================================================================

class DocumentStoreError(StoreBaseError):
    """Transport or protocol failure talking to the document store."""
    default_code = "DOCUMENT_STORE_ERROR"
    default_severity = "P1"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        path: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        self.status_code = status_code
        details.update({
            "status_code": status_code,
            "path": path,
        })
        super().__init__(message, details=details, **kwargs)


# =============================================================================
# EXCEPTION CATALOG
# =============================================================================

EXCEPTION_CATALOG = {
    "BOOKING_INVALID": {"class": BookingValidationError, "severity": "P3"},
    "QUANTITY_INVALID": {"class": QuantityValidationError, "severity": "P3"},
    "OPTIONAL_ITEM_INDEX_INVALID": {"class": InvalidSelectionError, "severity": "P3"},
    "CATALOG_ITEM_NOT_FOUND": {"class": CatalogNotFoundError, "severity": "P3"},
    "CATALOG_FETCH_FAILED": {"class": CatalogFetchError, "severity": "P2"},
    "ORDER_SUBMIT_FAILED": {"class": OrderSubmissionError, "severity": "P1"},
    "CHECKOUT_IN_PROGRESS": {"class": CheckoutInProgressError, "severity": "P3"},
    "CART_EMPTY": {"class": EmptyCartError, "severity": "P3"},
    "ORDER_STATUS_INVALID": {"class": OrderStatusError, "severity": "P3"},
    "ORDER_NOT_FOUND": {"class": OrderNotFoundError, "severity": "P3"},
    "DOCUMENT_STORE_ERROR": {"class": DocumentStoreError, "severity": "P1"},
}
