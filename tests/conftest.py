"""
Pytest configuration and fixtures for Vinayak Store tests.
"""
import os
import pytest
from typing import Any, Callable, Dict, List

# Set test environment before importing package modules
os.environ["ENVIRONMENT"] = "development"
os.environ["LOCAL_STORAGE_URL"] = "sqlite:///:memory:"
os.environ["FIRESTORE_PROJECT_ID"] = "test-project"
os.environ["FIRESTORE_API_KEY"] = "test-key"
os.environ["STORE_WHATSAPP_NUMBER"] = "919876543210"

from vinayak_store.adapters.firestore import FirestoreClient, encode_fields
from vinayak_store.schemas.catalog import OptionalItem, Package, Product, Service
from vinayak_store.services.cart_storage import InMemoryCartStorage, SqlCartStorage
from vinayak_store.services.cart_store import CartStore
from vinayak_store.services.notifications import CollectingNotifier

DOCS_ROOT = "projects/test-project/databases/(default)/documents"


@pytest.fixture
def memory_storage() -> InMemoryCartStorage:
    return InMemoryCartStorage(key="cart")


@pytest.fixture
def sql_storage(tmp_path) -> SqlCartStorage:
    """Durable storage on a throwaway sqlite file."""
    return SqlCartStorage.from_url(f"sqlite:///{tmp_path / 'local_storage.db'}", key="cart")


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def cart(memory_storage, notifier) -> CartStore:
    return CartStore(memory_storage, notifier)


@pytest.fixture
def diya() -> Product:
    return Product(id="prod-diya", name="Brass Diya", price=250, image="diya.jpg", category="Puja Essentials")


@pytest.fixture
def ganesh_package() -> Package:
    """Deal price 1500 over four optional items."""
    return Package(
        id="pkg-ganesh",
        name="Ganesh Chaturthi Puja Kit",
        base_price=1500,
        total_worth=1900,
        image="ganesh.jpg",
        items=[
            OptionalItem(name="Ganesh Idol", price=800, remove_price=600),
            OptionalItem(name="Flowers", price=300, remove_price=200),
            OptionalItem(name="Incense", price=100, remove_price=80),
            OptionalItem(name="Coconut", price=50, remove_price=40),
        ],
    )


@pytest.fixture
def griha_pravesh() -> Service:
    """Base 5000 plus a 1000 decoration charge."""
    return Service(
        id="svc-griha",
        name="Griha Pravesh Puja",
        price=5000,
        decoration_charge=1000,
        image="griha.jpg",
        category="Puja",
        items=[
            OptionalItem(name="Havan Samagri", price=1500, remove_price=1200),
            OptionalItem(name="Flower Decoration", price=2500, remove_price=2000),
        ],
    )


def firestore_document(collection: str, doc_id: str, data: Dict[str, Any], **extra) -> Dict[str, Any]:
    """REST representation of a stored document."""
    doc = {
        "name": f"{DOCS_ROOT}/{collection}/{doc_id}",
        "fields": encode_fields(data),
        "createTime": "2025-01-01T00:00:00.000000Z",
        "updateTime": "2025-01-01T00:00:00.000000Z",
    }
    doc.update(extra)
    return doc


@pytest.fixture
def make_firestore_client() -> Callable[[Callable], FirestoreClient]:
    """Build a FirestoreClient whose HTTP calls go to a handler function."""
    import httpx

    def _make(handler) -> FirestoreClient:
        return FirestoreClient(
            project_id="test-project",
            api_key="test-key",
            base_url="https://firestore.test/v1",
            transport=httpx.MockTransport(handler),
        )

    return _make


@pytest.fixture
def requests_log() -> List:
    return []
