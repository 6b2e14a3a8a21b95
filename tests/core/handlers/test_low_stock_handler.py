"""Tests for the low stock handler.

On StockAdjusted: warn about every variant left below the threshold.
"""

import logging

import pytest

from core.events import StockAdjusted
from core.handlers.low_stock_handler import handle_stock_adjusted
from core.stock import adjust_product_stock


class TestLowStockHandler:
    """Tests for handle_stock_adjusted."""

    def test_warns_below_threshold(self, flag_product, caplog):
        alerts = []
        handler = handle_stock_adjusted(threshold=3, alerts=alerts)
        product = adjust_product_stock(flag_product, "v-90", -4)

        with caplog.at_level(logging.WARNING, logger="core.handlers.low_stock_handler"):
            handler(StockAdjusted.create(product=product, source="V-2026-0007"))

        assert alerts == [("prod-flag", "v-90", 1)]
        assert "V-2026-0007" in caplog.text

    def test_quiet_above_threshold(self, flag_product):
        alerts = []
        handle_stock_adjusted(threshold=3, alerts=alerts)(
            StockAdjusted.create(product=flag_product, source="O-2026-0001")
        )
        assert alerts == []

    def test_variantless_product(self, ribbon_product):
        alerts = []
        product = adjust_product_stock(ribbon_product, None, -98)

        handle_stock_adjusted(threshold=5, alerts=alerts)(StockAdjusted.create(product=product, source="restock"))

        assert alerts == [("prod-ribbon", None, 2)]

    def test_wired_through_event_bus(self, store, audit, event_bus, pole_product, catalog):
        from core.line_items import add_item
        from core.services.inventory_service import InventoryService

        alerts = []
        event_bus.subscribe("StockAdjusted", handle_stock_adjusted(threshold=19, alerts=alerts))
        inventory = InventoryService(store, audit, event_bus)

        products = inventory.consume([add_item(pole_product, quantity=2)], source="V-2026-0002")
        inventory.publish_adjustments(products, source="V-2026-0002")

        assert alerts == [("prod-pole", "v-pole", 18)]

    def test_register_uses_configured_threshold(self, event_bus, pole_product, caplog):
        from core.config import PublimarConfig
        from core.handlers.low_stock_handler import register

        register(event_bus, PublimarConfig(low_stock_threshold=25))
        with caplog.at_level(logging.WARNING, logger="core.handlers.low_stock_handler"):
            event_bus.publish(StockAdjusted.create(product=pole_product, source="restock"))

        assert "Mástil de aluminio" in caplog.text
