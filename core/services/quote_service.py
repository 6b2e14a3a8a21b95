"""
Quote service: creation, editing and the send/confirm/reject lifecycle.

Each operation loads the quote, applies the matching pure function from
core.quote_lifecycle, writes it back with a revision check, audits the
change and publishes an event. Quotes never touch stock.
"""

import logging
from decimal import Decimal
from typing import Callable, Sequence
from uuid import uuid4

from core import quote_lifecycle
from core.audit import AuditLogger, AuditAction, compute_changes
from core.config import PublimarConfig
from core.event_bus import EventBus
from core.events import QuoteCreated, QuoteSent, QuoteConfirmed, QuoteRejected
from core.exceptions import NotFoundError
from core.models import LineItem, Quote, QuoteCreate, QuoteStatus
from core.numbering import next_document_number, number_prefix
from core.store import QUOTES, DocumentStore
from utils.timezone import add_days, now_utc, to_local
from utils.user_context import get_current_operator

logger = logging.getLogger(__name__)


class QuoteService:
    """Service for quote operations."""

    def __init__(
        self,
        store: DocumentStore,
        audit: AuditLogger,
        event_bus: EventBus,
        config: PublimarConfig | None = None,
    ):
        self.store = store
        self.audit = audit
        self.event_bus = event_bus
        self.config = config or PublimarConfig()

    def _generate_quote_number(self) -> str:
        """Next quote number for the shop's current year, e.g. P-2026-0007."""
        year = to_local(now_utc(), self.config.display_timezone).year
        latest = self.store.latest_number(QUOTES, number_prefix(self.config.quote_number_prefix, year))
        return next_document_number(self.config.quote_number_prefix, year, latest)

    def create(self, data: QuoteCreate) -> Quote:
        """
        Create a quote in DRAFT.

        Args:
            data: Client snapshot, items and optional tax rate / validity

        Returns:
            Created quote
        """
        operator = get_current_operator()
        now = now_utc()

        quote = Quote(
            id=uuid4().hex,
            number=self._generate_quote_number(),
            client=data.client,
            status=QuoteStatus.DRAFT,
            items=tuple(data.items),
            tax_rate_percent=(
                data.tax_rate_percent
                if data.tax_rate_percent is not None
                else self.config.default_tax_rate_percent
            ),
            valid_until=data.valid_until or add_days(now, self.config.quote_validity_days),
            notes=data.notes,
            created_by=operator.id,
            created_at=now,
            updated_at=now,
        )

        document = quote.model_dump(mode="json")
        with self.store.transaction():
            self.store.insert(QUOTES, document)
            self.audit.log_change(
                entity_type="quote",
                entity_id=quote.id,
                action=AuditAction.CREATE,
                changes={"created": document},
            )

        logger.info(f"Quote {quote.number} created for {quote.client.name}, total {quote.total}")
        self.event_bus.publish(QuoteCreated.create(quote=quote))
        return quote

    def get_by_id(self, quote_id: str) -> Quote | None:
        """Quote by id, or None."""
        row = self.store.get(QUOTES, quote_id)
        if row is None:
            return None
        return Quote.model_validate(row)

    def _require(self, quote_id: str) -> Quote:
        quote = self.get_by_id(quote_id)
        if quote is None:
            raise NotFoundError(f"Quote {quote_id} not found")
        return quote

    def _apply(
        self,
        quote_id: str,
        change: Callable[[Quote], Quote],
        user_id: str | None = None,
    ) -> tuple[Quote, Quote]:
        """Load, transform, write with revision check, audit. Returns (old, new)."""
        current = self._require(quote_id)
        updated = change(current)

        old_doc = current.model_dump(mode="json")
        new_doc = updated.model_dump(mode="json")

        with self.store.transaction():
            revision = self.store.replace(QUOTES, quote_id, new_doc, expected_revision=current.revision)
            changes = compute_changes(old_doc, new_doc)
            if changes:
                self.audit.log_change(
                    entity_type="quote",
                    entity_id=quote_id,
                    action=AuditAction.UPDATE,
                    changes=changes,
                    user_id=user_id,
                )

        return current, updated.model_copy(update={"revision": revision})

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def update_items(self, quote_id: str, items: Sequence[LineItem]) -> Quote:
        """Replace the quote's items."""
        _, updated = self._apply(quote_id, lambda q: quote_lifecycle.set_items(q, items))
        return updated

    def set_tax_rate(self, quote_id: str, tax_rate_percent: Decimal) -> Quote:
        """Change the quote's tax rate (0 for quotes without IVA)."""
        _, updated = self._apply(quote_id, lambda q: quote_lifecycle.set_tax_rate(q, tax_rate_percent))
        return updated

    def add_comment(self, quote_id: str, text: str, is_internal: bool = True) -> Quote:
        """Append a comment authored by the current operator."""
        operator = get_current_operator()
        _, updated = self._apply(
            quote_id,
            lambda q: quote_lifecycle.add_comment(q, text, operator.id, operator.name, is_internal),
        )
        return updated

    # -------------------------------------------------------------------------
    # Operator lifecycle
    # -------------------------------------------------------------------------

    def mark_sent(self, quote_id: str) -> Quote:
        """
        Mark a DRAFT quote as sent to the client.

        Raises:
            NotFoundError: Quote not found
            InvalidTransitionError: Quote not in DRAFT
        """
        _, updated = self._apply(quote_id, quote_lifecycle.mark_sent)
        logger.info(f"Quote {updated.number} sent")
        self.event_bus.publish(QuoteSent.create(quote=updated))
        return updated

    def confirm(self, quote_id: str) -> Quote:
        """
        Record the client's acceptance of a SENT quote.

        Raises:
            NotFoundError: Quote not found
            InvalidTransitionError: Quote not in SENT
        """
        _, updated = self._apply(quote_id, quote_lifecycle.confirm)
        logger.info(f"Quote {updated.number} confirmed")
        self.event_bus.publish(QuoteConfirmed.create(quote=updated))
        return updated

    def reject(self, quote_id: str) -> Quote:
        """
        Record the client's refusal of a SENT quote.

        Raises:
            NotFoundError: Quote not found
            InvalidTransitionError: Quote not in SENT
        """
        _, updated = self._apply(quote_id, quote_lifecycle.reject)
        logger.info(f"Quote {updated.number} rejected")
        self.event_bus.publish(QuoteRejected.create(quote=updated))
        return updated

    def reset_to_draft(self, quote_id: str) -> Quote:
        """Return a quote to DRAFT for re-editing. Never fails on status."""
        previous, updated = self._apply(quote_id, quote_lifecycle.reset_to_draft)
        if previous.status != QuoteStatus.DRAFT:
            logger.info(f"Quote {updated.number} reset to draft from {previous.status.value}")
        return updated

    # -------------------------------------------------------------------------
    # Client-facing confirmation link
    # -------------------------------------------------------------------------

    def client_confirm(self, quote_id: str, comment: str | None = None) -> Quote:
        """
        Client accepts through the public link. No operator context needed.

        Raises:
            NotFoundError: Quote not found
            InvalidTransitionError: Quote already confirmed or rejected
        """
        _, updated = self._apply(
            quote_id,
            lambda q: quote_lifecycle.client_confirm(q, comment),
            user_id=quote_lifecycle.CLIENT_AUTHOR_ID,
        )
        logger.info(f"Quote {updated.number} confirmed by client")
        self.event_bus.publish(QuoteConfirmed.create(quote=updated, by_client=True))
        return updated

    def client_reject(self, quote_id: str, comment: str | None = None) -> Quote:
        """
        Client declines through the public link. No operator context needed.

        Raises:
            NotFoundError: Quote not found
            InvalidTransitionError: Quote already confirmed or rejected
        """
        _, updated = self._apply(
            quote_id,
            lambda q: quote_lifecycle.client_reject(q, comment),
            user_id=quote_lifecycle.CLIENT_AUTHOR_ID,
        )
        logger.info(f"Quote {updated.number} rejected by client")
        self.event_bus.publish(QuoteRejected.create(quote=updated, by_client=True))
        return updated
