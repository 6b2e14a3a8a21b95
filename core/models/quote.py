"""Quote (presupuesto) domain models.

Totals are computed from the items and tax rate on every access, so they
cannot drift from the lines they summarize.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from core.models.client import ClientSnapshot
from core.models.line_item import LineItem, check_unique_item_ids
from core.pricing import compute_totals
from utils.timezone import deadline_utc


class QuoteStatus(str, Enum):
    """Quote lifecycle status."""

    DRAFT = "draft"
    SENT = "sent"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class QuoteComment(BaseModel):
    """Comment on a quote. Client comments are never internal."""

    id: str
    author_id: str
    author_name: str
    text: str = Field(..., min_length=1, max_length=2000)
    created_at: datetime
    is_internal: bool = True

    model_config = {"frozen": True}


class QuoteCreate(BaseModel):
    """Data required to create a quote."""

    client: ClientSnapshot
    items: list[LineItem] = Field(default_factory=list)
    tax_rate_percent: Decimal | None = Field(None, ge=0)  # None = configured default
    valid_until: datetime | None = None  # None = configured validity window
    notes: str | None = Field(None, max_length=2000)

    @field_validator("valid_until", mode="before")
    @classmethod
    def normalize_valid_until(cls, v):
        """Dates mean end of day in the shop's timezone."""
        return deadline_utc(v)

    @model_validator(mode="after")
    def check_item_ids(self) -> "QuoteCreate":
        check_unique_item_ids(self.items)
        return self


class Quote(BaseModel):
    """Full quote document as stored."""

    id: str
    number: str
    client: ClientSnapshot
    status: QuoteStatus = QuoteStatus.DRAFT
    items: tuple[LineItem, ...] = ()
    tax_rate_percent: Decimal = Field(Decimal("21"), ge=0)
    valid_until: datetime
    notes: str | None = None
    comments: tuple[QuoteComment, ...] = ()
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime
    sent_at: datetime | None = None
    confirmed_at: datetime | None = None
    rejected_at: datetime | None = None
    revision: int = 0

    model_config = {"from_attributes": True}

    @field_validator("valid_until", mode="before")
    @classmethod
    def normalize_valid_until(cls, v):
        return deadline_utc(v)

    @model_validator(mode="after")
    def check_item_ids(self) -> "Quote":
        """Item ids are unique within the quote."""
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
    def is_finalized(self) -> bool:
        """Whether the client has answered (confirmed or rejected)."""
        return self.status in (QuoteStatus.CONFIRMED, QuoteStatus.REJECTED)

    def is_expired(self, now: datetime) -> bool:
        """Advisory: validity date has passed. Never blocks a transition."""
        return now > self.valid_until

    @property
    def public_comments(self) -> list[QuoteComment]:
        """Comments visible to the client."""
        return [c for c in self.comments if not c.is_internal]
