"""
Domain events for quotes, orders, sales and stock.

Immutable event objects published after a change has been written.
Events carry the full domain object so handlers don't need to re-fetch it.

Event Categories:
- QuoteEvent: Quote lifecycle (create, send, confirm, reject)
- OrderEvent: Order lifecycle (create, complete, cancel) and payments
- SaleEvent: Counter sales
- StockEvent: Variant stock changes
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for all domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# QUOTE EVENTS
# =============================================================================


@dataclass(frozen=True)
class QuoteEvent(DomainEvent):
    """Events related to quote lifecycle."""
    quote: Any = None  # Quote; Any avoids a models import cycle


@dataclass(frozen=True)
class QuoteCreated(QuoteEvent):
    """A new quote was created in DRAFT."""

    @classmethod
    def create(cls, quote: Any) -> "QuoteCreated":
        return cls(quote=quote)


@dataclass(frozen=True)
class QuoteSent(QuoteEvent):
    """Quote was sent to the client."""

    @classmethod
    def create(cls, quote: Any) -> "QuoteSent":
        return cls(quote=quote)


@dataclass(frozen=True)
class QuoteConfirmed(QuoteEvent):
    """Client accepted the quote (via operator or public link)."""
    by_client: bool = False

    @classmethod
    def create(cls, quote: Any, by_client: bool = False) -> "QuoteConfirmed":
        return cls(quote=quote, by_client=by_client)


@dataclass(frozen=True)
class QuoteRejected(QuoteEvent):
    """Client declined the quote (via operator or public link)."""
    by_client: bool = False

    @classmethod
    def create(cls, quote: Any, by_client: bool = False) -> "QuoteRejected":
        return cls(quote=quote, by_client=by_client)


# =============================================================================
# ORDER EVENTS
# =============================================================================


@dataclass(frozen=True)
class OrderEvent(DomainEvent):
    """Events related to order lifecycle and payments."""
    order: Any = None


@dataclass(frozen=True)
class OrderCreated(OrderEvent):
    """A new order entered IN_PROCESS."""

    @classmethod
    def create(cls, order: Any) -> "OrderCreated":
        return cls(order=order)


@dataclass(frozen=True)
class OrderCompleted(OrderEvent):
    """Order was delivered."""

    @classmethod
    def create(cls, order: Any) -> "OrderCompleted":
        return cls(order=order)


@dataclass(frozen=True)
class OrderCancelled(OrderEvent):
    """Order was cancelled."""

    @classmethod
    def create(cls, order: Any) -> "OrderCancelled":
        return cls(order=order)


@dataclass(frozen=True)
class PaymentRecorded(OrderEvent):
    """A payment was appended to the order's ledger."""
    payment: Any = None

    @classmethod
    def create(cls, order: Any, payment: Any) -> "PaymentRecorded":
        return cls(order=order, payment=payment)


@dataclass(frozen=True)
class OrderPaidInFull(OrderEvent):
    """The order's balance reached zero."""

    @classmethod
    def create(cls, order: Any) -> "OrderPaidInFull":
        return cls(order=order)


# =============================================================================
# SALE & STOCK EVENTS
# =============================================================================


@dataclass(frozen=True)
class SaleRecorded(DomainEvent):
    """A counter sale was recorded."""
    sale: Any = None

    @classmethod
    def create(cls, sale: Any) -> "SaleRecorded":
        return cls(sale=sale)


@dataclass(frozen=True)
class StockAdjusted(DomainEvent):
    """A product's stock changed because of a sale or order."""
    product: Any = None
    source: str = ""  # number of the sale/order that caused it

    @classmethod
    def create(cls, product: Any, source: str) -> "StockAdjusted":
        return cls(product=product, source=source)
