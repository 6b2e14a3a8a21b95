"""
Pricing math for quotes, orders and sales.

All money is Decimal and accumulates at full precision. Rounding to cents
happens only at presentation time via round_money().
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Protocol

from core.exceptions import InvalidInputError

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


class HasSubtotal(Protocol):
    subtotal: Decimal


@dataclass(frozen=True)
class DocumentTotals:
    """Subtotal, tax and grand total of a priced document."""

    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


def to_decimal(value) -> Decimal:
    """
    Convert a number or numeric string to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its
    binary expansion.

    Raises:
        InvalidInputError: If value is not numeric
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f"Not a monetary value: {value!r}")
    try:
        result = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInputError(f"Not a monetary value: {value!r}")
    if not result.is_finite():
        raise InvalidInputError(f"Not a monetary value: {value!r}")
    return result


def validate_line(unit_price, quantity, discount_percent=0) -> tuple[Decimal, int, Decimal]:
    """
    Validate line pricing inputs and normalize them.

    Returns:
        (unit_price, quantity, discount_percent) as Decimal, int, Decimal

    Raises:
        InvalidInputError: If any input is out of range
    """
    price = to_decimal(unit_price)
    discount = to_decimal(discount_percent)

    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidInputError(f"Quantity must be an integer, got {quantity!r}")
    if quantity < 1:
        raise InvalidInputError(f"Quantity must be at least 1, got {quantity}")
    if price < ZERO:
        raise InvalidInputError(f"Unit price cannot be negative, got {price}")
    if discount < ZERO or discount > HUNDRED:
        raise InvalidInputError(f"Discount must be between 0 and 100, got {discount}")

    return price, quantity, discount


def line_subtotal(unit_price, quantity, discount_percent=0) -> Decimal:
    """Subtotal of one line: unit_price * quantity * (1 - discount/100)."""
    price, qty, discount = validate_line(unit_price, quantity, discount_percent)
    return price * qty * (HUNDRED - discount) / HUNDRED


def document_subtotal(items: Iterable[HasSubtotal]) -> Decimal:
    """
    Sum of the stored subtotal of each item.

    Line subtotals are not recomputed here; each item is responsible for
    keeping its own subtotal current.
    """
    return sum((item.subtotal for item in items), ZERO)


def tax_amount(subtotal, tax_rate_percent) -> Decimal:
    """Tax on a subtotal at the given percentage rate."""
    rate = to_decimal(tax_rate_percent)
    if rate < ZERO:
        raise InvalidInputError(f"Tax rate cannot be negative, got {rate}")
    return to_decimal(subtotal) * rate / HUNDRED


def discount_amount(subtotal, discount_percent) -> Decimal:
    """
    Document-level discount on a subtotal.

    Raises:
        InvalidInputError: If the percentage is outside [0, 100]
    """
    discount = to_decimal(discount_percent)
    if discount < ZERO or discount > HUNDRED:
        raise InvalidInputError(f"Discount must be between 0 and 100, got {discount}")
    return to_decimal(subtotal) * discount / HUNDRED


def total(subtotal, tax) -> Decimal:
    """Grand total: subtotal plus tax."""
    return to_decimal(subtotal) + to_decimal(tax)


def compute_totals(items: Iterable[HasSubtotal], tax_rate_percent) -> DocumentTotals:
    """Subtotal, tax and total for a list of line items."""
    subtotal = document_subtotal(items)
    tax = tax_amount(subtotal, tax_rate_percent)
    return DocumentTotals(subtotal=subtotal, tax_amount=tax, total=total(subtotal, tax))


def round_money(value) -> Decimal:
    """Round to cents (half up). Presentation boundaries only."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
