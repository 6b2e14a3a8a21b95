"""Core domain models."""

from core.models.client import ClientSnapshot, ClientContact, ClientType, ClientStatus
from core.models.product import Product, ProductVariant, ProductCategory, ProductStatus
from core.models.line_item import (
    LineItem,
    LineItemUpdate,
    ProductSnapshot,
    VariantSnapshot,
    check_unique_item_ids,
    duplicate_item_ids,
)
from core.models.quote import Quote, QuoteCreate, QuoteComment, QuoteStatus
from core.models.order import Order, OrderCreate, OrderStatus, Payment, PaymentMethod
from core.models.sale import Sale, SaleCreate

__all__ = [
    # Client
    "ClientSnapshot", "ClientContact", "ClientType", "ClientStatus",
    # Product
    "Product", "ProductVariant", "ProductCategory", "ProductStatus",
    # LineItem
    "LineItem", "LineItemUpdate", "ProductSnapshot", "VariantSnapshot",
    "check_unique_item_ids", "duplicate_item_ids",
    # Quote
    "Quote", "QuoteCreate", "QuoteComment", "QuoteStatus",
    # Order
    "Order", "OrderCreate", "OrderStatus", "Payment", "PaymentMethod",
    # Sale
    "Sale", "SaleCreate",
]
