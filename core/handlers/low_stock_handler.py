"""
Handler for StockAdjusted events.

Logs a warning for every variant that a sale or order left below the
low-stock threshold, so the shop floor can reorder cloth or hardware.
"""

import logging
from typing import Callable

from core.config import PublimarConfig
from core.event_bus import EventBus
from core.events import StockAdjusted

logger = logging.getLogger(__name__)


def handle_stock_adjusted(threshold: int, alerts: list | None = None) -> Callable:
    """
    Factory that returns a StockAdjusted handler.

    Args:
        threshold: Stock level below which a variant is reported
        alerts: Optional list collecting (product_id, variant_id, stock)
            tuples, for callers that surface alerts beyond the log

    Returns:
        Handler callable
    """

    def handler(event: StockAdjusted):
        product = event.product

        if not product.variants:
            low = [(product.id, None, product.stock or 0)] if product.is_low_stock(threshold) else []
        else:
            low = [
                (product.id, variant.id, variant.stock)
                for variant in product.variants
                if variant.stock < threshold
            ]

        for product_id, variant_id, stock in low:
            logger.warning(
                f"Low stock after {event.source}: {product.name}"
                f"{f' ({variant_id})' if variant_id else ''} has {stock} left"
            )
            if alerts is not None:
                alerts.append((product_id, variant_id, stock))

    return handler


def register(event_bus: EventBus, config: PublimarConfig) -> None:
    """Subscribe the low-stock warning at the configured threshold."""
    event_bus.subscribe("StockAdjusted", handle_stock_adjusted(config.low_stock_threshold))
