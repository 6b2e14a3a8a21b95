"""Counter sale (venta) domain models.

A sale is paid on the spot: no balance and no lifecycle. IVA is optional
per sale and a sale-level discount applies to the subtotal, so

    total = subtotal + tax_amount - discount_amount

Its only side effect beyond being recorded is the stock it consumes.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, computed_field, model_validator

from core.models.line_item import LineItem, check_unique_item_ids
from core.models.order import PaymentMethod
from core.pricing import ZERO, discount_amount, document_subtotal, tax_amount, total


class SaleCreate(BaseModel):
    """Data required to record a sale."""

    items: list[LineItem] = Field(..., min_length=1)
    payment_method: PaymentMethod
    bank: str | None = Field(None, max_length=100)
    is_invoiced: bool = False
    invoice_number: str | None = Field(None, max_length=50)
    apply_tax: bool = True
    tax_rate_percent: Decimal | None = Field(None, ge=0)  # None = configured default
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100)

    @model_validator(mode="after")
    def validate_payment_details(self) -> "SaleCreate":
        """Transfers name a bank; invoiced sales carry an invoice number."""
        if self.payment_method == PaymentMethod.TRANSFER and not self.bank:
            raise ValueError("Transfer payments require a bank")
        if self.is_invoiced and not self.invoice_number:
            raise ValueError("Invoiced sales require an invoice_number")
        return self

    @model_validator(mode="after")
    def check_item_ids(self) -> "SaleCreate":
        check_unique_item_ids(self.items)
        return self


class Sale(BaseModel):
    """Full sale document as stored."""

    id: str
    number: str
    items: tuple[LineItem, ...]
    payment_method: PaymentMethod
    bank: str | None = None
    is_invoiced: bool = False
    invoice_number: str | None = None
    apply_tax: bool = True
    tax_rate_percent: Decimal = Field(Decimal("21"), ge=0)
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100)
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime
    revision: int = 0

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_item_ids(self) -> "Sale":
        """Item ids are unique within the sale."""
        check_unique_item_ids(self.items)
        return self

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return document_subtotal(self.items)

    @computed_field
    @property
    def tax_amount(self) -> Decimal:
        """IVA on the undiscounted subtotal, or zero when not applied."""
        if not self.apply_tax:
            return ZERO
        return tax_amount(self.subtotal, self.tax_rate_percent)

    @computed_field
    @property
    def discount_amount(self) -> Decimal:
        return discount_amount(self.subtotal, self.discount_percent)

    @computed_field
    @property
    def total(self) -> Decimal:
        return total(self.subtotal, self.tax_amount) - self.discount_amount
