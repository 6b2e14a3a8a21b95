"""
Stock adjustment for sales and orders.

Stock only moves when a sale or order is finalized, never for quotes.
plan_stock_changes() validates every affected variant before producing any
updated product, so a sale with one short line changes nothing at all.
"""

import logging
from collections import defaultdict
from typing import Iterable, Mapping

from core.exceptions import InsufficientStockError, InvalidInputError, NotFoundError
from core.models import LineItem, Product, ProductVariant

logger = logging.getLogger(__name__)


def apply_stock_delta(variant: ProductVariant, delta: int) -> ProductVariant:
    """
    New variant with stock shifted by delta (negative for a sale).

    Raises:
        InsufficientStockError: Resulting stock would be negative
    """
    new_stock = variant.stock + delta
    if new_stock < 0:
        raise InsufficientStockError(variant.sku or variant.id, variant.stock, -delta)
    return variant.model_copy(update={"stock": new_stock})


def adjust_product_stock(product: Product, variant_id: str | None, delta: int) -> Product:
    """
    New product with one variant's stock shifted; other variants pass through.

    A None variant_id adjusts the stock of a variant-less product.

    Raises:
        NotFoundError: Variant not on the product
        InsufficientStockError: Resulting stock would be negative
    """
    if variant_id is None:
        current = product.stock or 0
        if current + delta < 0:
            raise InsufficientStockError(product.sku or product.id, current, -delta)
        return product.model_copy(update={"stock": current + delta})

    if product.find_variant(variant_id) is None:
        raise NotFoundError(f"Variant {variant_id} not found on product {product.id}")

    variants = tuple(
        apply_stock_delta(v, delta) if v.id == variant_id else v
        for v in product.variants
    )
    return product.model_copy(update={"variants": variants})


def stock_demand(items: Iterable[LineItem]) -> dict[tuple[str, str | None], int]:
    """Total units per (product_id, variant_id) across the items."""
    demand: dict[tuple[str, str | None], int] = defaultdict(int)
    for item in items:
        demand[(item.product.id, item.variant_id)] += item.quantity
    return dict(demand)


def plan_stock_changes(
    products: Mapping[str, Product],
    items: Iterable[LineItem],
    sign: int = -1,
) -> dict[str, Product]:
    """
    Updated products after applying every line item, all or nothing.

    Lines for the same variant are summed before checking, so two lines of
    3 against a stock of 5 fail together rather than one by one.

    Args:
        products: Current catalog products by id
        items: Line items of the sale or order
        sign: -1 to consume stock, +1 to return it

    Returns:
        Only the products that changed, by id

    Raises:
        NotFoundError: A line references a product not in products
        InsufficientStockError: Any variant would go negative; nothing is applied
    """
    if sign not in (-1, 1):
        raise InvalidInputError(f"sign must be -1 or 1, got {sign}")

    updated: dict[str, Product] = {}
    for (product_id, variant_id), quantity in stock_demand(items).items():
        product = updated.get(product_id) or products.get(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        updated[product_id] = adjust_product_stock(product, variant_id, sign * quantity)

    logger.debug(f"Planned stock changes for {len(updated)} products")
    return updated
