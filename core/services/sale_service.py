"""Sale service: counter sales that consume stock on the spot."""

import logging
from uuid import uuid4

from core.audit import AuditLogger, AuditAction
from core.config import PublimarConfig
from core.event_bus import EventBus
from core.events import SaleRecorded
from core.models import Sale, SaleCreate
from core.numbering import next_document_number, number_prefix
from core.services.inventory_service import InventoryService
from core.store import SALES, DocumentStore
from utils.timezone import now_utc, to_local
from utils.user_context import get_current_operator

logger = logging.getLogger(__name__)


class SaleService:
    """Service for sale operations."""

    def __init__(
        self,
        store: DocumentStore,
        audit: AuditLogger,
        event_bus: EventBus,
        inventory: InventoryService,
        config: PublimarConfig | None = None,
    ):
        self.store = store
        self.audit = audit
        self.event_bus = event_bus
        self.inventory = inventory
        self.config = config or PublimarConfig()

    def _generate_sale_number(self) -> str:
        """Next sale number for the shop's current year, e.g. V-2026-0003."""
        year = to_local(now_utc(), self.config.display_timezone).year
        latest = self.store.latest_number(SALES, number_prefix(self.config.sale_number_prefix, year))
        return next_document_number(self.config.sale_number_prefix, year, latest)

    def record(self, data: SaleCreate) -> Sale:
        """
        Record a sale and decrement stock for each line, all or nothing.

        Args:
            data: Items and payment details

        Returns:
            Recorded sale

        Raises:
            InsufficientStockError: A line exceeds available stock; nothing is written
            NotFoundError: A line references an unknown product or variant
        """
        operator = get_current_operator()
        now = now_utc()

        sale = Sale(
            id=uuid4().hex,
            number=self._generate_sale_number(),
            items=tuple(data.items),
            payment_method=data.payment_method,
            bank=data.bank,
            is_invoiced=data.is_invoiced,
            invoice_number=data.invoice_number if data.is_invoiced else None,
            apply_tax=data.apply_tax,
            tax_rate_percent=(
                data.tax_rate_percent
                if data.tax_rate_percent is not None
                else self.config.default_tax_rate_percent
            ),
            discount_percent=data.discount_percent,
            created_by=operator.id,
            created_at=now,
            updated_at=now,
        )
        document = sale.model_dump(mode="json")

        with self.store.transaction():
            products = self.inventory.consume(sale.items, source=sale.number)
            self.store.insert(SALES, document)
            self.audit.log_change(
                entity_type="sale",
                entity_id=sale.id,
                action=AuditAction.CREATE,
                changes={"created": document},
            )

        logger.info(f"Sale {sale.number} recorded: total {sale.total} ({sale.payment_method.value})")
        self.event_bus.publish(SaleRecorded.create(sale=sale))
        self.inventory.publish_adjustments(products, source=sale.number)
        return sale

    def get_by_id(self, sale_id: str) -> Sale | None:
        """Sale by id, or None."""
        row = self.store.get(SALES, sale_id)
        if row is None:
            return None
        return Sale.model_validate(row)
