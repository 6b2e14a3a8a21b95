"""
Inventory service: stock movements against catalog products.

Reads products from the store, applies a stock plan computed by
core.stock, and writes each changed product back with a revision check.
Callers that need all-or-nothing semantics across several products wrap
consume() in a store transaction.
"""

import logging
from typing import Iterable

from core.audit import AuditLogger, AuditAction, compute_changes
from core.event_bus import EventBus
from core.events import StockAdjusted
from core.exceptions import InvalidInputError, NotFoundError
from core.models import LineItem, Product
from core.stock import adjust_product_stock, plan_stock_changes
from core.store import PRODUCTS, DocumentStore

logger = logging.getLogger(__name__)


class InventoryService:
    """Service for product stock operations."""

    def __init__(self, store: DocumentStore, audit: AuditLogger, event_bus: EventBus):
        self.store = store
        self.audit = audit
        self.event_bus = event_bus

    def get_product(self, product_id: str) -> Product | None:
        """Product by id, or None."""
        row = self.store.get(PRODUCTS, product_id)
        if row is None:
            return None
        return Product.model_validate(row)

    def _require_product(self, product_id: str) -> Product:
        product = self.get_product(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def _write(self, current: Product, updated: Product) -> Product:
        old_doc = current.model_dump(mode="json")
        new_doc = updated.model_dump(mode="json")
        revision = self.store.replace(PRODUCTS, current.id, new_doc, expected_revision=current.revision)
        stored = updated.model_copy(update={"revision": revision})

        changes = compute_changes(old_doc, new_doc)
        if changes:
            self.audit.log_change(
                entity_type="product",
                entity_id=current.id,
                action=AuditAction.UPDATE,
                changes=changes,
            )
        return stored

    def consume(self, items: Iterable[LineItem], source: str) -> list[Product]:
        """
        Decrement stock for every line item.

        Every variant is checked before anything is written, so a short
        line raises without touching any product. Call inside
        store.transaction() together with the document that consumed
        the stock.

        Args:
            items: Line items of the sale or order
            source: Number of the sale or order, for logging and events

        Returns:
            Updated products

        Raises:
            NotFoundError: A line references an unknown product or variant
            InsufficientStockError: Any variant would go negative
        """
        items = list(items)
        current = {}
        for item in items:
            if item.product.id not in current:
                current[item.product.id] = self._require_product(item.product.id)

        planned = plan_stock_changes(current, items)

        written = [self._write(current[pid], product) for pid, product in planned.items()]
        logger.info(f"Stock consumed by {source}: {len(items)} lines across {len(written)} products")
        return written

    def publish_adjustments(self, products: Iterable[Product], source: str) -> None:
        """Publish StockAdjusted for each product. Call after the transaction commits."""
        for product in products:
            self.event_bus.publish(StockAdjusted.create(product=product, source=source))

    def restock(self, product_id: str, variant_id: str | None, quantity: int) -> Product:
        """
        Add units to a variant (or to a variant-less product).

        Raises:
            InvalidInputError: Quantity not positive
            NotFoundError: Product or variant not found
        """
        if quantity < 1:
            raise InvalidInputError(f"Restock quantity must be at least 1, got {quantity}")

        current = self._require_product(product_id)
        updated = self._write(current, adjust_product_stock(current, variant_id, quantity))
        self.publish_adjustments([updated], source="restock")
        return updated
