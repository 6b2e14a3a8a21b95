"""Product catalog models as consumed by pricing and stock adjustment.

The catalog itself is owned elsewhere. These models only describe what
line items snapshot and what stock adjustment rewrites.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class ProductCategory(str, Enum):
    NATIONAL_FLAG = "Bandera Nacional"
    CUSTOM_FLAG = "Bandera Personalizada"
    ACCESSORY = "Accesorio"


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ProductVariant(BaseModel):
    """A size/price/stock combination of a product."""

    id: str
    size: str
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    sku: str | None = None

    model_config = {"frozen": True, "from_attributes": True}


class Product(BaseModel):
    """
    Catalog entry.

    Products with variants price and stock each variant separately; the
    base price and stock only apply to variant-less products.
    """

    id: str
    name: str = Field(..., min_length=1)
    description: str = ""
    category: ProductCategory = ProductCategory.CUSTOM_FLAG
    status: ProductStatus = ProductStatus.ACTIVE
    has_variants: bool = False
    price: Decimal | None = Field(None, ge=0)
    stock: int | None = Field(None, ge=0)
    sku: str | None = None
    variants: tuple[ProductVariant, ...] = ()
    revision: int = 0

    model_config = {"frozen": True, "from_attributes": True}

    def find_variant(self, variant_id: str) -> ProductVariant | None:
        """Variant with the given id, or None."""
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    @property
    def requires_variant_selection(self) -> bool:
        """Whether a variant must be chosen explicitly when adding to a document."""
        return len(self.variants) > 1

    def is_low_stock(self, threshold: int, variant_id: str | None = None) -> bool:
        """Whether the variant (or the product itself) is below the threshold."""
        if variant_id is None:
            return (self.stock or 0) < threshold
        variant = self.find_variant(variant_id)
        return variant is not None and variant.stock < threshold
