"""
Order service: creation (from scratch or from a quote), completion,
cancellation and payments.

Creating an order consumes stock for every line item. The stock writes and
the order insert share one store transaction, so an order that cannot be
fully stocked is never written and no variant is decremented.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable

from core import order_lifecycle
from core.audit import AuditLogger, AuditAction, compute_changes
from core.config import PublimarConfig
from core.event_bus import EventBus
from core.events import (
    OrderCreated,
    OrderCompleted,
    OrderCancelled,
    PaymentRecorded,
    OrderPaidInFull,
)
from core.exceptions import NotFoundError
from core.models import Order, OrderCreate, PaymentMethod
from core.numbering import next_document_number, number_prefix
from core.services.inventory_service import InventoryService
from core.services.quote_service import QuoteService
from core.store import ORDERS, DocumentStore
from utils.timezone import now_utc, to_local
from utils.user_context import get_current_operator

logger = logging.getLogger(__name__)


class OrderService:
    """Service for order operations."""

    def __init__(
        self,
        store: DocumentStore,
        audit: AuditLogger,
        event_bus: EventBus,
        inventory: InventoryService,
        quotes: QuoteService,
        config: PublimarConfig | None = None,
    ):
        self.store = store
        self.audit = audit
        self.event_bus = event_bus
        self.inventory = inventory
        self.quotes = quotes
        self.config = config or PublimarConfig()

    def _generate_order_number(self) -> str:
        """Next order number for the shop's current year, e.g. O-2026-0012."""
        year = to_local(now_utc(), self.config.display_timezone).year
        latest = self.store.latest_number(ORDERS, number_prefix(self.config.order_number_prefix, year))
        return next_document_number(self.config.order_number_prefix, year, latest)

    def _insert_with_stock(self, order: Order) -> Order:
        """Consume stock and insert the order atomically, then publish."""
        document = order.model_dump(mode="json")

        with self.store.transaction():
            products = self.inventory.consume(order.items, source=order.number)
            self.store.insert(ORDERS, document)
            self.audit.log_change(
                entity_type="order",
                entity_id=order.id,
                action=AuditAction.CREATE,
                changes={"created": document},
            )

        logger.info(
            f"Order {order.number} created for {order.client.name}: "
            f"total {order.total}, down payment {order.down_payment}, balance {order.balance}"
        )
        self.event_bus.publish(OrderCreated.create(order=order))
        self.inventory.publish_adjustments(products, source=order.number)
        return order

    def create(self, data: OrderCreate) -> Order:
        """
        Create an IN_PROCESS order from scratch.

        Raises:
            InvalidAmountError: Down payment negative or above the total
            InsufficientStockError: A line item exceeds available stock
            NotFoundError: A line item references an unknown product
        """
        operator = get_current_operator()
        order = order_lifecycle.create_order(
            data,
            number=self._generate_order_number(),
            default_tax_rate_percent=self.config.default_tax_rate_percent,
            created_by=operator.id,
        )
        return self._insert_with_stock(order)

    def create_from_quote(
        self,
        quote_id: str,
        down_payment: Decimal | int = 0,
        estimated_delivery_date: datetime | None = None,
        payment_method: PaymentMethod | None = None,
    ) -> Order:
        """
        Create an IN_PROCESS order from a quote, linking back to it.

        The quote's status is left as it is.

        Raises:
            NotFoundError: Quote not found
            InvalidAmountError: Down payment negative or above the total
            InsufficientStockError: A line item exceeds available stock
        """
        operator = get_current_operator()
        quote = self.quotes.get_by_id(quote_id)
        if quote is None:
            raise NotFoundError(f"Quote {quote_id} not found")

        order = order_lifecycle.create_order_from_quote(
            quote,
            number=self._generate_order_number(),
            down_payment=down_payment,
            estimated_delivery_date=estimated_delivery_date,
            payment_method=payment_method,
            created_by=operator.id,
        )
        return self._insert_with_stock(order)

    def get_by_id(self, order_id: str) -> Order | None:
        """Order by id, or None."""
        row = self.store.get(ORDERS, order_id)
        if row is None:
            return None
        return Order.model_validate(row)

    def _apply(self, order_id: str, change: Callable[[Order], Order]) -> Order:
        """Load, transform, write with revision check, audit."""
        current = self.get_by_id(order_id)
        if current is None:
            raise NotFoundError(f"Order {order_id} not found")

        updated = change(current)
        old_doc = current.model_dump(mode="json")
        new_doc = updated.model_dump(mode="json")

        with self.store.transaction():
            revision = self.store.replace(ORDERS, order_id, new_doc, expected_revision=current.revision)
            changes = compute_changes(old_doc, new_doc)
            if changes:
                self.audit.log_change(
                    entity_type="order",
                    entity_id=order_id,
                    action=AuditAction.UPDATE,
                    changes=changes,
                )

        return updated.model_copy(update={"revision": revision})

    def complete(self, order_id: str) -> Order:
        """
        Mark an IN_PROCESS order as delivered.

        Raises:
            NotFoundError: Order not found
            InvalidTransitionError: Order already completed or cancelled
        """
        updated = self._apply(order_id, order_lifecycle.complete)
        if updated.balance > 0:
            logger.warning(f"Order {updated.number} completed with outstanding balance {updated.balance}")
        else:
            logger.info(f"Order {updated.number} completed")
        self.event_bus.publish(OrderCompleted.create(order=updated))
        return updated

    def cancel(self, order_id: str) -> Order:
        """
        Cancel an IN_PROCESS order. Stock already consumed is not returned.

        Raises:
            NotFoundError: Order not found
            InvalidTransitionError: Order already completed or cancelled
        """
        updated = self._apply(order_id, order_lifecycle.cancel)
        logger.info(f"Order {updated.number} cancelled")
        self.event_bus.publish(OrderCancelled.create(order=updated))
        return updated

    def record_payment(
        self,
        order_id: str,
        amount: Decimal | int | str,
        method: PaymentMethod,
        bank: str | None = None,
        notes: str | None = None,
    ) -> Order:
        """
        Record a partial or final payment against the order's balance.

        Raises:
            NotFoundError: Order not found
            InvalidAmountError: Amount not positive or above the balance
            MissingBankError: Transfer without a bank
        """
        updated = self._apply(
            order_id,
            lambda o: order_lifecycle.record_payment(o, amount, method, bank=bank, notes=notes),
        )
        payment = updated.payment_history[-1]
        logger.info(
            f"Payment of {payment.amount} ({payment.method.value}) on order {updated.number}, "
            f"balance now {updated.balance}"
        )

        self.event_bus.publish(PaymentRecorded.create(order=updated, payment=payment))
        if updated.is_paid_in_full:
            self.event_bus.publish(OrderPaidInFull.create(order=updated))
        return updated
