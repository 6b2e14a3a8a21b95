"""
Order status lifecycle and payment ledger.

    IN_PROCESS --complete--> COMPLETED   (terminal)
    IN_PROCESS --cancel----> CANCELLED   (terminal)

Payments are independent of status: recording one never moves the order,
and the ledger accepts payments in any state.
"""

import logging
from datetime import datetime
from typing import Sequence
from uuid import uuid4

from core.exceptions import (
    InvalidAmountError,
    InvalidInputError,
    InvalidTransitionError,
    MissingBankError,
)
from core.models import (
    LineItem,
    Order,
    OrderCreate,
    OrderStatus,
    Payment,
    PaymentMethod,
    Quote,
    QuoteStatus,
    duplicate_item_ids,
)
from core.pricing import ZERO, compute_totals, to_decimal
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.IN_PROCESS: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


def transition(order: Order, new_status: OrderStatus, now: datetime | None = None) -> Order:
    """
    Move an order to a new status.

    Raises:
        InvalidTransitionError: Target not reachable from the current status
    """
    if new_status not in _TRANSITIONS[order.status]:
        raise InvalidTransitionError(f"Order {order.number}", order.status.value, new_status.value)

    now = now or now_utc()
    update = {"status": new_status, "updated_at": now}
    if new_status == OrderStatus.COMPLETED:
        update["delivered_at"] = now
    return order.model_copy(update=update)


def complete(order: Order, now: datetime | None = None) -> Order:
    """IN_PROCESS -> COMPLETED. Stamps delivered_at."""
    return transition(order, OrderStatus.COMPLETED, now)


def cancel(order: Order, now: datetime | None = None) -> Order:
    """IN_PROCESS -> CANCELLED."""
    return transition(order, OrderStatus.CANCELLED, now)


def record_payment(
    order: Order,
    amount,
    method: PaymentMethod,
    bank: str | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> Order:
    """
    Append a payment to the ledger and decrement the balance.

    Args:
        order: Order being paid
        amount: Payment amount, 0 < amount <= balance
        method: Payment method
        bank: Required for transfers
        notes: Free text; defaults to a description of the payment

    Returns:
        Order with one more payment and a reduced balance; status unchanged

    Raises:
        InvalidAmountError: Amount not positive or larger than the balance
        InvalidInputError: Unknown payment method
        MissingBankError: Transfer without a bank
    """
    amount = to_decimal(amount)
    if amount <= ZERO:
        raise InvalidAmountError(f"Payment amount must be positive, got {amount}", amount, order.balance)
    if amount > order.balance:
        raise InvalidAmountError(
            f"Payment of {amount} exceeds balance of {order.balance} on order {order.number}",
            amount,
            order.balance,
        )

    try:
        method = PaymentMethod(method)
    except ValueError:
        raise InvalidInputError(f"Unknown payment method: {method!r}")
    if method == PaymentMethod.TRANSFER and not (bank and bank.strip()):
        raise MissingBankError(f"Transfer payments on order {order.number} require a bank")

    if notes is None:
        notes = f"Transferencia - {bank}" if method == PaymentMethod.TRANSFER else "Pago parcial"

    now = now or now_utc()
    payment = Payment(
        amount=amount,
        date=now,
        method=method,
        bank=bank if method == PaymentMethod.TRANSFER else None,
        notes=notes,
    )

    return order.model_copy(update={
        "balance": order.balance - amount,
        "payment_history": order.payment_history + (payment,),
        "updated_at": now,
    })


def _opening_balance(items: Sequence[LineItem], tax_rate_percent, down_payment):
    down_payment = to_decimal(down_payment)
    totals = compute_totals(items, tax_rate_percent)
    if down_payment < ZERO:
        raise InvalidAmountError(f"Down payment cannot be negative, got {down_payment}", down_payment)
    if down_payment > totals.total:
        raise InvalidAmountError(
            f"Down payment of {down_payment} exceeds order total of {totals.total}",
            down_payment,
            totals.total,
        )
    return down_payment, totals.total - down_payment


def create_order(
    data: OrderCreate,
    number: str,
    default_tax_rate_percent=21,
    created_by: str | None = None,
    order_id: str | None = None,
    now: datetime | None = None,
) -> Order:
    """
    Build a new IN_PROCESS order from operator input.

    Raises:
        InvalidAmountError: Down payment negative or above the total
    """
    now = now or now_utc()
    tax_rate = data.tax_rate_percent if data.tax_rate_percent is not None else default_tax_rate_percent
    down_payment, balance = _opening_balance(data.items, tax_rate, data.down_payment)

    return Order(
        id=order_id or uuid4().hex,
        number=number,
        client=data.client,
        status=OrderStatus.IN_PROCESS,
        items=tuple(data.items),
        tax_rate_percent=tax_rate,
        down_payment=down_payment,
        balance=balance,
        payment_method=data.payment_method,
        estimated_delivery_date=data.estimated_delivery_date,
        is_invoiced=data.is_invoiced,
        invoice_number=data.invoice_number,
        notes=data.notes,
        created_by=created_by,
        created_at=now,
        updated_at=now,
        started_at=now,
    )


def create_order_from_quote(
    quote: Quote,
    number: str,
    down_payment=0,
    estimated_delivery_date: datetime | None = None,
    payment_method: PaymentMethod | None = None,
    created_by: str | None = None,
    order_id: str | None = None,
    now: datetime | None = None,
) -> Order:
    """
    Build an IN_PROCESS order from a quote's client, items and tax rate.

    The quote itself is left untouched; it stays CONFIRMED.

    Raises:
        InvalidAmountError: Down payment negative or above the total
    """
    if quote.status != QuoteStatus.CONFIRMED:
        logger.warning(f"Creating order from quote {quote.number} in status {quote.status.value}")

    now = now or now_utc()
    down_payment, balance = _opening_balance(quote.items, quote.tax_rate_percent, down_payment)

    return Order(
        id=order_id or uuid4().hex,
        number=number,
        client=quote.client,
        status=OrderStatus.IN_PROCESS,
        items=quote.items,
        tax_rate_percent=quote.tax_rate_percent,
        down_payment=down_payment,
        balance=balance,
        payment_method=payment_method,
        estimated_delivery_date=estimated_delivery_date,
        budget_id=quote.id,
        budget_number=quote.number,
        notes=quote.notes,
        created_by=created_by,
        created_at=now,
        updated_at=now,
        started_at=now,
    )


def set_items(order: Order, items: Sequence[LineItem], now: datetime | None = None) -> Order:
    """
    Re-price an order with new items, keeping payments already made.

    Raises:
        InvalidInputError: Two items share an id
        InvalidAmountError: New total is below what has already been paid
    """
    duplicates = duplicate_item_ids(items)
    if duplicates:
        raise InvalidInputError(f"Duplicate line item ids on order {order.number}: {duplicates}")

    totals = compute_totals(items, order.tax_rate_percent)
    balance = totals.total - order.down_payment - order.amount_paid
    if balance < ZERO:
        raise InvalidAmountError(
            f"New total {totals.total} of order {order.number} is below the "
            f"{order.down_payment + order.amount_paid} already paid",
            totals.total,
            order.down_payment + order.amount_paid,
        )
    return order.model_copy(update={
        "items": tuple(items),
        "balance": balance,
        "updated_at": now or now_utc(),
    })
