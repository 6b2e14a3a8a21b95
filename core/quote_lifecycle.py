"""
Quote status lifecycle.

    DRAFT --mark_sent--> SENT --confirm--> CONFIRMED
                              --reject---> REJECTED
    any   --reset_to_draft--> DRAFT

The client-facing confirmation link is more permissive than the operator
flow: it may confirm or reject straight from DRAFT. Both flows refuse to
act on a quote the client has already answered.

Timestamps are a history log. Each transition stamps its own timestamp
and nothing ever clears one, including reset_to_draft.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Sequence
from uuid import uuid4

from core.exceptions import InvalidInputError, InvalidTransitionError
from core.models import LineItem, Quote, QuoteComment, QuoteStatus, duplicate_item_ids
from core.pricing import ZERO, to_decimal
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

CLIENT_AUTHOR_ID = "client"

_OPERATOR_TRANSITIONS: dict[QuoteStatus, set[QuoteStatus]] = {
    QuoteStatus.DRAFT: {QuoteStatus.SENT},
    QuoteStatus.SENT: {QuoteStatus.CONFIRMED, QuoteStatus.REJECTED},
    QuoteStatus.CONFIRMED: set(),
    QuoteStatus.REJECTED: set(),
}

_CLIENT_ANSWERABLE = {QuoteStatus.DRAFT, QuoteStatus.SENT}

_TIMESTAMP_FIELD = {
    QuoteStatus.SENT: "sent_at",
    QuoteStatus.CONFIRMED: "confirmed_at",
    QuoteStatus.REJECTED: "rejected_at",
}


def _check_operator_transition(quote: Quote, target: QuoteStatus) -> None:
    if target not in _OPERATOR_TRANSITIONS[quote.status]:
        raise InvalidTransitionError(f"Quote {quote.number}", quote.status.value, target.value)


def _move(quote: Quote, target: QuoteStatus, now: datetime, **extra) -> Quote:
    update = {"status": target, "updated_at": now, **extra}
    stamp = _TIMESTAMP_FIELD.get(target)
    if stamp:
        update[stamp] = now
    return quote.model_copy(update=update)


def mark_sent(quote: Quote, now: datetime | None = None) -> Quote:
    """DRAFT -> SENT."""
    _check_operator_transition(quote, QuoteStatus.SENT)
    return _move(quote, QuoteStatus.SENT, now or now_utc())


def confirm(quote: Quote, now: datetime | None = None) -> Quote:
    """SENT -> CONFIRMED (operator records the client's acceptance)."""
    _check_operator_transition(quote, QuoteStatus.CONFIRMED)
    return _move(quote, QuoteStatus.CONFIRMED, now or now_utc())


def reject(quote: Quote, now: datetime | None = None) -> Quote:
    """SENT -> REJECTED (operator records the client's refusal)."""
    _check_operator_transition(quote, QuoteStatus.REJECTED)
    return _move(quote, QuoteStatus.REJECTED, now or now_utc())


def reset_to_draft(quote: Quote, now: datetime | None = None) -> Quote:
    """Any state -> DRAFT, for re-editing. Historical timestamps are kept."""
    return quote.model_copy(update={"status": QuoteStatus.DRAFT, "updated_at": now or now_utc()})


def _client_answer(
    quote: Quote,
    target: QuoteStatus,
    comment: str | None,
    now: datetime | None,
) -> Quote:
    if quote.status not in _CLIENT_ANSWERABLE:
        raise InvalidTransitionError(f"Quote {quote.number}", quote.status.value, target.value)

    now = now or now_utc()
    comments = quote.comments
    if comment and comment.strip():
        comments = comments + (QuoteComment(
            id=uuid4().hex,
            author_id=CLIENT_AUTHOR_ID,
            author_name=quote.client.name,
            text=comment.strip(),
            created_at=now,
            is_internal=False,
        ),)

    return _move(quote, target, now, comments=comments)


def client_confirm(quote: Quote, comment: str | None = None, now: datetime | None = None) -> Quote:
    """Client accepts through the public link. Allowed from DRAFT or SENT."""
    return _client_answer(quote, QuoteStatus.CONFIRMED, comment, now)


def client_reject(quote: Quote, comment: str | None = None, now: datetime | None = None) -> Quote:
    """Client declines through the public link. Allowed from DRAFT or SENT."""
    return _client_answer(quote, QuoteStatus.REJECTED, comment, now)


def add_comment(
    quote: Quote,
    text: str,
    author_id: str,
    author_name: str,
    is_internal: bool = True,
    now: datetime | None = None,
) -> Quote:
    """Append an operator comment. Internal by default."""
    now = now or now_utc()
    comment = QuoteComment(
        id=uuid4().hex,
        author_id=author_id,
        author_name=author_name,
        text=text,
        created_at=now,
        is_internal=is_internal,
    )
    return quote.model_copy(update={"comments": quote.comments + (comment,), "updated_at": now})


def set_items(quote: Quote, items: Sequence[LineItem], now: datetime | None = None) -> Quote:
    """
    Replace the quote's items. Totals follow automatically.

    Not gated on status: editing a sent or answered quote is unusual but allowed.

    Raises:
        InvalidInputError: Two items share an id
    """
    duplicates = duplicate_item_ids(items)
    if duplicates:
        raise InvalidInputError(f"Duplicate line item ids on quote {quote.number}: {duplicates}")
    if quote.status != QuoteStatus.DRAFT:
        logger.info(f"Editing items of quote {quote.number} in status {quote.status.value}")
    return quote.model_copy(update={"items": tuple(items), "updated_at": now or now_utc()})


def set_tax_rate(quote: Quote, tax_rate_percent, now: datetime | None = None) -> Quote:
    """Change the tax rate. Totals follow automatically."""
    rate: Decimal = to_decimal(tax_rate_percent)
    if rate < ZERO:
        raise InvalidInputError(f"Tax rate cannot be negative, got {rate}")
    return quote.model_copy(update={"tax_rate_percent": rate, "updated_at": now or now_utc()})


def is_expired(quote: Quote, now: datetime | None = None) -> bool:
    """Advisory only; expired quotes can still be confirmed."""
    return quote.is_expired(now or now_utc())
