"""Order (orden de trabajo) domain models.

The balance is a running figure: it starts at total - down_payment and is
decremented by each payment appended to the history.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from core.models.client import ClientSnapshot
from core.models.line_item import LineItem, check_unique_item_ids
from core.pricing import ZERO, compute_totals
from utils.timezone import deadline_utc


class OrderStatus(str, Enum):
    """Order lifecycle status. COMPLETED and CANCELLED are terminal."""

    IN_PROCESS = "in_process"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    TRANSFER = "transfer"
    MERCADOPAGO = "mercadopago"


class Payment(BaseModel):
    """Ledger entry. Immutable once appended."""

    amount: Decimal = Field(..., gt=0)
    date: datetime
    method: PaymentMethod
    bank: str | None = None
    notes: str | None = None

    model_config = {"frozen": True}


class OrderCreate(BaseModel):
    """Data required to create an order from scratch."""

    client: ClientSnapshot
    items: list[LineItem] = Field(..., min_length=1)
    tax_rate_percent: Decimal | None = Field(None, ge=0)  # None = configured default
    down_payment: Decimal = Field(Decimal("0"), ge=0)
    payment_method: PaymentMethod | None = None
    estimated_delivery_date: datetime | None = None
    is_invoiced: bool = False
    invoice_number: str | None = None
    notes: str | None = Field(None, max_length=2000)

    @field_validator("estimated_delivery_date", mode="before")
    @classmethod
    def normalize_delivery_date(cls, v):
        """Dates mean end of day in the shop's timezone."""
        return deadline_utc(v)

    @model_validator(mode="after")
    def check_item_ids(self) -> "OrderCreate":
        check_unique_item_ids(self.items)
        return self


class Order(BaseModel):
    """Full order document as stored."""

    id: str
    number: str
    client: ClientSnapshot
    status: OrderStatus = OrderStatus.IN_PROCESS
    items: tuple[LineItem, ...] = ()
    tax_rate_percent: Decimal = Field(Decimal("21"), ge=0)
    down_payment: Decimal = Field(Decimal("0"), ge=0)
    balance: Decimal = Field(..., ge=0)
    payment_history: tuple[Payment, ...] = ()
    payment_method: PaymentMethod | None = None
    estimated_delivery_date: datetime | None = None
    budget_id: str | None = None
    budget_number: str | None = None
    is_invoiced: bool = False
    invoice_number: str | None = None
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    delivered_at: datetime | None = None
    revision: int = 0

    model_config = {"from_attributes": True}

    @field_validator("estimated_delivery_date", mode="before")
    @classmethod
    def normalize_delivery_date(cls, v):
        return deadline_utc(v)

    @model_validator(mode="after")
    def check_budget_link(self) -> "Order":
        """budget_id and budget_number come as a pair."""
        if (self.budget_id is None) != (self.budget_number is None):
            raise ValueError("budget_id and budget_number must be set together")
        return self

    @model_validator(mode="after")
    def check_item_ids(self) -> "Order":
        """Item ids are unique within the order."""
        check_unique_item_ids(self.items)
        return self

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return compute_totals(self.items, self.tax_rate_percent).subtotal

    @computed_field
    @property
    def tax_amount(self) -> Decimal:
        return compute_totals(self.items, self.tax_rate_percent).tax_amount

    @computed_field
    @property
    def total(self) -> Decimal:
        return compute_totals(self.items, self.tax_rate_percent).total

    @property
    def amount_paid(self) -> Decimal:
        """Payments recorded after the down payment."""
        return sum((p.amount for p in self.payment_history), ZERO)

    @property
    def is_terminal(self) -> bool:
        return self.status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)

    @property
    def is_paid_in_full(self) -> bool:
        return self.balance == ZERO
