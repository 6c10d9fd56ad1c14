"""
Catalog Provider

Read-only access to products, services and packages. The cart core never
writes catalog state; admin CRUD lives outside this package.
"""
import logging
from typing import List, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError

from vinayak_store.adapters.firestore import FirestoreClient, FirestoreDocument
from vinayak_store.core.config import settings
from vinayak_store.core.exceptions import (
    CatalogFetchError,
    CatalogNotFoundError,
    DocumentStoreError,
)
from vinayak_store.schemas.catalog import Package, Product, Service

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class CatalogProvider(Protocol):
    async def fetch_product(self, product_id: str) -> Product:
        ...

    async def fetch_service(self, service_id: str) -> Service:
        ...

    async def fetch_package(self, package_id: str) -> Package:
        ...

    async def list_products(self, category: Optional[str] = None) -> List[Product]:
        ...

    async def list_services(self) -> List[Service]:
        ...

    async def list_packages(self) -> List[Package]:
        ...


def _to_model(document: FirestoreDocument, model: Type[ModelT]) -> ModelT:
    return model.model_validate({**document.data, "id": document.id})


class FirestoreCatalogProvider:
    """Catalog backed by the storefront's Firestore collections."""

    def __init__(self, client: FirestoreClient):
        self._client = client
        self.products_collection = settings.PRODUCTS_COLLECTION
        self.services_collection = settings.SERVICES_COLLECTION
        self.packages_collection = settings.PACKAGES_COLLECTION

    async def _fetch(self, collection: str, item_id: str, model: Type[ModelT]) -> ModelT:
        label = model.__name__
        try:
            document = await self._client.get_document(collection, item_id)
        except DocumentStoreError as e:
            logger.error("Error fetching %s %s: %s", label, item_id, e.message)
            raise CatalogFetchError(
                f"Error loading {label.lower()} details",
                details={"collection": collection, "item_id": item_id, **e.details},
            ) from e

        if document is None:
            raise CatalogNotFoundError(
                f"{label} not found",
                collection=collection,
                item_id=item_id,
            )

        try:
            return _to_model(document, model)
        except ValidationError as e:
            logger.error("Malformed %s document %s: %d errors", label, item_id, e.error_count())
            raise CatalogFetchError(
                f"Error loading {label.lower()} details",
                details={"collection": collection, "item_id": item_id},
            ) from e

    async def _list(self, collection: str, model: Type[ModelT]) -> List[ModelT]:
        try:
            documents = await self._client.list_documents(collection)
        except DocumentStoreError as e:
            logger.error("Error listing %s: %s", collection, e.message)
            raise CatalogFetchError(
                f"Failed to load {collection}",
                details={"collection": collection, **e.details},
            ) from e

        items: List[ModelT] = []
        for document in documents:
            try:
                items.append(_to_model(document, model))
            except ValidationError as e:
                # One bad document should not blank the whole listing page
                logger.warning(
                    "Skipping malformed %s document %s: %d errors",
                    collection, document.id, e.error_count(),
                )
        return items

    async def fetch_product(self, product_id: str) -> Product:
        return await self._fetch(self.products_collection, product_id, Product)

    async def fetch_service(self, service_id: str) -> Service:
        return await self._fetch(self.services_collection, service_id, Service)

    async def fetch_package(self, package_id: str) -> Package:
        return await self._fetch(self.packages_collection, package_id, Package)

    async def list_products(self, category: Optional[str] = None) -> List[Product]:
        products = await self._list(self.products_collection, Product)
        if category:
            wanted = category.strip().lower()
            products = [p for p in products if (p.category or "").lower() == wanted]
        return products

    async def list_services(self) -> List[Service]:
        return await self._list(self.services_collection, Service)

    async def list_packages(self) -> List[Package]:
        return await self._list(self.packages_collection, Package)
