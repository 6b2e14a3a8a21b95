"""Shared test fixtures for the pricing and fulfillment test suite."""

import copy
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.exceptions import ConcurrentUpdateError, NotFoundError
from utils.user_context import OperatorIdentity, operator_context, clear_current_operator


# =============================================================================
# TEST OPERATOR CONSTANTS
# =============================================================================

TEST_OPERATOR = OperatorIdentity(id="op-0001", name="Marta Sosa")
TEST_OPERATOR_B = OperatorIdentity(id="op-0002", name="Julián Paz")

FIXED_NOW = datetime(2026, 5, 25, 13, 0, tzinfo=timezone.utc)


# =============================================================================
# IN-MEMORY DOCUMENT STORE
# =============================================================================


class InMemoryDocumentStore:
    """
    Dict-backed DocumentStore for tests.

    Honors revision compare-and-swap and rolls back every write made inside
    a transaction() block that raises.
    """

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {}
        self._depth = 0

    def _collection(self, name: str) -> dict[str, dict]:
        return self.collections.setdefault(name, {})

    def get(self, collection, document_id):
        doc = self._collection(collection).get(document_id)
        return copy.deepcopy(doc) if doc is not None else None

    def insert(self, collection, document):
        docs = self._collection(collection)
        if document["id"] in docs:
            raise ValueError(f"{collection}/{document['id']} already exists")
        stored = copy.deepcopy(document)
        stored.setdefault("revision", 0)
        docs[document["id"]] = stored
        return document["id"]

    def replace(self, collection, document_id, document, expected_revision):
        docs = self._collection(collection)
        current = docs.get(document_id)
        if current is None:
            raise NotFoundError(f"{collection}/{document_id} not found")
        actual = current.get("revision", 0)
        if actual != expected_revision:
            raise ConcurrentUpdateError(collection, document_id, expected_revision, actual)
        stored = copy.deepcopy(document)
        stored["revision"] = actual + 1
        docs[document_id] = stored
        return actual + 1

    def latest_number(self, collection, prefix):
        numbers = [
            doc["number"] for doc in self._collection(collection).values()
            if doc.get("number", "").startswith(prefix)
        ]
        return max(numbers) if numbers else None

    @contextmanager
    def transaction(self):
        snapshot = copy.deepcopy(self.collections) if self._depth == 0 else None
        self._depth += 1
        try:
            yield
        except BaseException:
            if snapshot is not None:
                self.collections = snapshot
            raise
        finally:
            self._depth -= 1

    def all(self, collection) -> list[dict]:
        """Every document in a collection (test helper)."""
        return [copy.deepcopy(d) for d in self._collection(collection).values()]


# =============================================================================
# CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_operator_context():
    """Ensure clean operator context before and after each test."""
    clear_current_operator()
    yield
    clear_current_operator()


@pytest.fixture
def as_operator():
    """Run the test as the primary operator."""
    with operator_context(TEST_OPERATOR):
        yield TEST_OPERATOR


@pytest.fixture
def now():
    """Fixed instant for functions that accept an explicit now."""
    return FIXED_NOW


# =============================================================================
# INFRASTRUCTURE FIXTURES
# =============================================================================


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def event_bus():
    from core.event_bus import EventBus
    return EventBus()


@pytest.fixture
def audit(store):
    from core.audit import AuditLogger
    return AuditLogger(store)


@pytest.fixture
def published(event_bus):
    """List collecting every event published on the bus, by class name."""
    from core import events

    received = []
    for name in (
        "QuoteCreated", "QuoteSent", "QuoteConfirmed", "QuoteRejected",
        "OrderCreated", "OrderCompleted", "OrderCancelled",
        "PaymentRecorded", "OrderPaidInFull",
        "SaleRecorded", "StockAdjusted",
    ):
        assert hasattr(events, name)
        event_bus.subscribe(name, received.append)
    return received


# =============================================================================
# DOMAIN FIXTURES
# =============================================================================


@pytest.fixture
def client_snapshot():
    from core.models import ClientSnapshot, ClientType

    return ClientSnapshot(
        id="cli-1",
        name="Escuela N° 12",
        type=ClientType.COMPANY,
        business_name="Escuela Normal N° 12",
        email="secretaria@escuela12.edu.ar",
        cuit="30-12345678-9",
    )


@pytest.fixture
def flag_product():
    """Flag with two sizes; a variant must be chosen."""
    from core.models import Product, ProductVariant, ProductCategory

    return Product(
        id="prod-flag",
        name="Bandera Argentina de Flameo",
        category=ProductCategory.NATIONAL_FLAG,
        has_variants=True,
        variants=(
            ProductVariant(id="v-90", size="90x150", price=Decimal("100"), stock=5, sku="BA-90"),
            ProductVariant(id="v-140", size="140x225", price=Decimal("180"), stock=10, sku="BA-140"),
        ),
    )


@pytest.fixture
def pole_product():
    """Accessory with a single variant."""
    from core.models import Product, ProductVariant, ProductCategory

    return Product(
        id="prod-pole",
        name="Mástil de aluminio",
        category=ProductCategory.ACCESSORY,
        has_variants=True,
        variants=(ProductVariant(id="v-pole", size="2m", price=Decimal("50"), stock=20),),
    )


@pytest.fixture
def ribbon_product():
    """Variant-less product with base price and stock."""
    from core.models import Product, ProductCategory

    return Product(
        id="prod-ribbon",
        name="Escarapela",
        category=ProductCategory.ACCESSORY,
        price=Decimal("2.50"),
        stock=100,
    )


@pytest.fixture
def catalog(store, flag_product, pole_product, ribbon_product):
    """Store the sample products."""
    from core.store import PRODUCTS

    for product in (flag_product, pole_product, ribbon_product):
        store.insert(PRODUCTS, product.model_dump(mode="json"))
    return {p.id: p for p in (flag_product, pole_product, ribbon_product)}
