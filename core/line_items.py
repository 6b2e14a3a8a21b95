"""
Line item management for quote, order and sale builders.

Every operation returns a new list; the input list and its items are never
modified. Items are only ever replaced whole, so a subtotal can never lag
behind its quantity, price or discount.
"""

import logging
from typing import Sequence
from uuid import uuid4

from pydantic import ValidationError

from core.exceptions import InvalidInputError, MissingSelectionError, NotFoundError
from core.models import (
    LineItem,
    LineItemUpdate,
    Product,
    ProductSnapshot,
    ProductVariant,
    VariantSnapshot,
)
from core.pricing import ZERO, validate_line

logger = logging.getLogger(__name__)


def add_item(
    product: Product,
    variant: ProductVariant | None = None,
    quantity: int = 1,
    discount_percent=0,
    notes: str | None = None,
    item_id: str | None = None,
) -> LineItem:
    """
    Build a line item for a product, snapshotting product and variant.

    Args:
        product: Catalog product being added
        variant: Chosen variant; may be omitted when the product has at most one
        quantity: Units, at least 1
        discount_percent: Line discount in [0, 100]
        notes: Free text
        item_id: Explicit id; a fresh one is generated if omitted

    Returns:
        New LineItem priced from the variant, or from the product when it
        has no variants

    Raises:
        MissingSelectionError: Product has several variants and none was chosen
        NotFoundError: Variant does not belong to the product
        InvalidInputError: Quantity, price or discount out of range
    """
    if variant is None:
        if product.requires_variant_selection:
            raise MissingSelectionError(
                f"Product {product.id} ({product.name}) has {len(product.variants)} variants; choose one"
            )
        if product.variants:
            variant = product.variants[0]
    elif product.variants and product.find_variant(variant.id) is None:
        raise NotFoundError(f"Variant {variant.id} not found on product {product.id}")

    if variant is not None:
        unit_price = variant.price
    else:
        unit_price = product.price if product.price is not None else ZERO

    price, qty, discount = validate_line(unit_price, quantity, discount_percent)

    return LineItem(
        id=item_id or uuid4().hex,
        product=ProductSnapshot.of(product),
        variant=VariantSnapshot.of(variant) if variant is not None else None,
        quantity=qty,
        unit_price=price,
        discount_percent=discount,
        notes=notes,
    )


def update_item(
    items: Sequence[LineItem],
    item_id: str,
    patch: LineItemUpdate | dict,
) -> list[LineItem]:
    """
    Replace the item with the given id by a patched copy.

    Raises:
        NotFoundError: No item has that id
        InvalidInputError: Patched values out of range
    """
    if isinstance(patch, dict):
        unknown = set(patch) - set(LineItemUpdate.model_fields)
        if unknown:
            logger.warning(f"Ignoring unknown line item fields {sorted(unknown)} on item {item_id}")
        try:
            patch = LineItemUpdate(**{k: v for k, v in patch.items() if k not in unknown})
        except ValidationError as e:
            raise InvalidInputError(f"Invalid line item patch for {item_id}: {e}") from e

    changes = patch.model_dump(exclude_unset=True)

    result = []
    found = False
    for item in items:
        if item.id != item_id:
            result.append(item)
            continue

        found = True
        quantity = changes.get("quantity", item.quantity)
        unit_price = changes.get("unit_price", item.unit_price)
        discount = changes.get("discount_percent", item.discount_percent)
        # Patching a field to None means "leave as is" for the numeric fields
        quantity = item.quantity if quantity is None else quantity
        unit_price = item.unit_price if unit_price is None else unit_price
        discount = item.discount_percent if discount is None else discount

        price, qty, disc = validate_line(unit_price, quantity, discount)
        result.append(LineItem.model_validate({
            **item.model_dump(),
            "quantity": qty,
            "unit_price": price,
            "discount_percent": disc,
            "notes": changes.get("notes", item.notes),
        }))

    if not found:
        raise NotFoundError(f"Line item {item_id} not found")

    return result


def replace_item(items: Sequence[LineItem], new_item: LineItem) -> list[LineItem]:
    """
    Swap in a whole new item with the same id, keeping its position.

    Raises:
        NotFoundError: No item has that id
    """
    if not any(item.id == new_item.id for item in items):
        raise NotFoundError(f"Line item {new_item.id} not found")
    return [new_item if item.id == new_item.id else item for item in items]


def remove_item(items: Sequence[LineItem], item_id: str) -> list[LineItem]:
    """Drop the item with the given id. Absent ids are a no-op."""
    return [item for item in items if item.id != item_id]
