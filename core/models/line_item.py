"""Line item domain models.

A line item freezes the product and variant as they were when added, so
later catalog price changes never alter an existing quote or order.
Subtotals are derived, never stored independently of their inputs.
"""

from decimal import Decimal

from pydantic import BaseModel, Field, computed_field

from core.models.product import Product, ProductCategory, ProductVariant
from core.pricing import line_subtotal


class ProductSnapshot(BaseModel):
    """Product identity at selection time."""

    id: str
    name: str
    description: str = ""
    category: ProductCategory | None = None
    sku: str | None = None

    model_config = {"frozen": True, "from_attributes": True}

    @classmethod
    def of(cls, product: Product) -> "ProductSnapshot":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            category=product.category,
            sku=product.sku,
        )


class VariantSnapshot(BaseModel):
    """Variant size/price/stock at selection time."""

    id: str
    size: str
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    sku: str | None = None

    model_config = {"frozen": True, "from_attributes": True}

    @classmethod
    def of(cls, variant: ProductVariant) -> "VariantSnapshot":
        return cls(
            id=variant.id,
            size=variant.size,
            price=variant.price,
            stock=variant.stock,
            sku=variant.sku,
        )


class LineItemUpdate(BaseModel):
    """Fields that can be patched on a line item. Unset fields keep their value."""

    quantity: int | None = Field(None, ge=1)
    unit_price: Decimal | None = Field(None, ge=0)
    discount_percent: Decimal | None = Field(None, ge=0, le=100)
    notes: str | None = Field(None, max_length=1000)


class LineItem(BaseModel):
    """One product/variant entry in a quote, order or sale."""

    id: str
    product: ProductSnapshot
    variant: VariantSnapshot | None = None
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100)
    notes: str | None = Field(None, max_length=1000)

    model_config = {"frozen": True, "from_attributes": True}

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        """quantity * unit_price * (1 - discount_percent/100), unrounded."""
        return line_subtotal(self.unit_price, self.quantity, self.discount_percent)

    @property
    def variant_id(self) -> str | None:
        return self.variant.id if self.variant else None


def duplicate_item_ids(items) -> list[str]:
    """Ids that appear more than once in an item list, in first-seen order."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for item in items:
        if item.id in seen and item.id not in duplicates:
            duplicates.append(item.id)
        seen.add(item.id)
    return duplicates


def check_unique_item_ids(items) -> None:
    """
    Raise ValueError if two items share an id.

    Item ids address lines for update, replace and remove, so they must be
    unique within the owning document.
    """
    duplicates = duplicate_item_ids(items)
    if duplicates:
        raise ValueError(f"Duplicate line item ids: {duplicates}")
