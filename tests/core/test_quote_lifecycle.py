"""Tests for the quote status lifecycle."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core import quote_lifecycle
from core.exceptions import InvalidInputError, InvalidTransitionError
from core.line_items import add_item
from core.models import Quote, QuoteStatus
from utils.timezone import now_utc


@pytest.fixture
def quote(client_snapshot, flag_product, pole_product):
    now = now_utc()
    return Quote(
        id="q-1",
        number="P-2026-0001",
        client=client_snapshot,
        items=(
            add_item(flag_product, flag_product.variants[0], quantity=3, discount_percent=10),
            add_item(pole_product),
        ),
        tax_rate_percent=Decimal("21"),
        valid_until=now + timedelta(days=30),
        created_at=now,
        updated_at=now,
    )


class TestOperatorFlow:
    """Tests for DRAFT -> SENT -> CONFIRMED/REJECTED."""

    def test_send_then_confirm(self, quote):
        sent = quote_lifecycle.mark_sent(quote)
        confirmed = quote_lifecycle.confirm(sent)

        assert confirmed.status == QuoteStatus.CONFIRMED
        assert confirmed.sent_at is not None
        assert confirmed.confirmed_at is not None
        assert confirmed.rejected_at is None

    def test_send_then_reject(self, quote):
        rejected = quote_lifecycle.reject(quote_lifecycle.mark_sent(quote))

        assert rejected.status == QuoteStatus.REJECTED
        assert rejected.rejected_at is not None
        assert rejected.confirmed_at is None

    def test_reject_after_confirm_fails(self, quote):
        confirmed = quote_lifecycle.confirm(quote_lifecycle.mark_sent(quote))

        with pytest.raises(InvalidTransitionError) as exc:
            quote_lifecycle.reject(confirmed)

        assert exc.value.current == "confirmed"
        assert exc.value.target == "rejected"

    def test_confirm_from_draft_fails(self, quote):
        with pytest.raises(InvalidTransitionError):
            quote_lifecycle.confirm(quote)

    def test_send_twice_fails(self, quote):
        with pytest.raises(InvalidTransitionError):
            quote_lifecycle.mark_sent(quote_lifecycle.mark_sent(quote))

    def test_input_quote_unchanged(self, quote):
        quote_lifecycle.mark_sent(quote)
        assert quote.status == QuoteStatus.DRAFT
        assert quote.sent_at is None

    def test_uses_given_now(self, quote, now):
        sent = quote_lifecycle.mark_sent(quote, now=now)
        assert sent.sent_at == now
        assert sent.updated_at == now


class TestResetToDraft:
    """Tests for reset_to_draft."""

    def test_from_any_status(self, quote):
        rejected = quote_lifecycle.reject(quote_lifecycle.mark_sent(quote))

        draft = quote_lifecycle.reset_to_draft(rejected)

        assert draft.status == QuoteStatus.DRAFT

    def test_keeps_timestamps(self, quote):
        confirmed = quote_lifecycle.confirm(quote_lifecycle.mark_sent(quote))

        draft = quote_lifecycle.reset_to_draft(confirmed)

        assert draft.sent_at == confirmed.sent_at
        assert draft.confirmed_at == confirmed.confirmed_at

    def test_resent_after_reset(self, quote):
        draft = quote_lifecycle.reset_to_draft(quote_lifecycle.mark_sent(quote))
        assert quote_lifecycle.mark_sent(draft).status == QuoteStatus.SENT


class TestClientFlow:
    """Tests for the public confirmation link."""

    def test_client_confirm_from_draft(self, quote):
        confirmed = quote_lifecycle.client_confirm(quote)

        assert confirmed.status == QuoteStatus.CONFIRMED
        assert confirmed.confirmed_at is not None
        assert confirmed.comments == ()

    def test_client_reject_with_comment(self, quote):
        sent = quote_lifecycle.mark_sent(quote)

        rejected = quote_lifecycle.client_reject(sent, comment="  Muy caro  ")

        assert rejected.status == QuoteStatus.REJECTED
        comment = rejected.comments[-1]
        assert comment.text == "Muy caro"
        assert comment.author_id == quote_lifecycle.CLIENT_AUTHOR_ID
        assert comment.author_name == "Escuela N° 12"
        assert comment.is_internal is False
        assert rejected.public_comments == [comment]

    def test_blank_comment_ignored(self, quote):
        assert quote_lifecycle.client_confirm(quote, comment="   ").comments == ()

    @pytest.mark.parametrize("answer", ["client_confirm", "client_reject"])
    def test_answered_quote_refused(self, quote, answer):
        confirmed = quote_lifecycle.client_confirm(quote)

        with pytest.raises(InvalidTransitionError):
            getattr(quote_lifecycle, answer)(confirmed)


class TestEditing:
    """Tests for comments, items and tax rate."""

    def test_add_internal_comment(self, quote):
        updated = quote_lifecycle.add_comment(quote, "Llamar el lunes", "op-1", "Marta")

        assert updated.comments[0].is_internal is True
        assert updated.public_comments == []

    def test_set_items_recomputes_totals(self, quote, pole_product):
        updated = quote_lifecycle.set_items(quote, [add_item(pole_product, quantity=2)])

        assert updated.subtotal == Decimal("100")
        assert updated.total == Decimal("121")

    def test_totals(self, quote):
        """270 + 50 at 21% gives 320 / 67.2 / 387.2."""
        assert quote.subtotal == Decimal("320")
        assert quote.tax_amount == Decimal("67.2")
        assert quote.total == Decimal("387.2")

    def test_set_tax_rate(self, quote):
        assert quote_lifecycle.set_tax_rate(quote, 0).total == Decimal("320")

    def test_negative_tax_rate(self, quote):
        with pytest.raises(InvalidInputError):
            quote_lifecycle.set_tax_rate(quote, -1)

    def test_set_items_duplicate_ids(self, quote, pole_product):
        item = add_item(pole_product, item_id="dup")

        with pytest.raises(InvalidInputError, match="dup"):
            quote_lifecycle.set_items(quote, [item, add_item(pole_product, quantity=2, item_id="dup")])


class TestExpiry:
    """Tests for advisory expiry."""

    def test_not_expired(self, quote):
        assert quote_lifecycle.is_expired(quote) is False

    def test_expired_can_still_be_confirmed(self, quote):
        later = quote.valid_until + timedelta(days=1)
        sent = quote_lifecycle.mark_sent(quote, now=later)

        assert quote_lifecycle.is_expired(sent, now=later) is True
        assert quote_lifecycle.confirm(sent, now=later).status == QuoteStatus.CONFIRMED

    def test_date_only_valid_until(self, quote):
        """A plain date runs to the end of that day in Buenos Aires."""
        dated = Quote.model_validate({**quote.model_dump(), "valid_until": "2026-06-30"})

        last_minute = datetime(2026, 7, 1, 2, 0, tzinfo=timezone.utc)
        next_morning = datetime(2026, 7, 1, 3, 0, tzinfo=timezone.utc)

        assert quote_lifecycle.is_expired(dated, now=last_minute) is False
        assert quote_lifecycle.is_expired(dated, now=next_morning) is True

    def test_date_object_valid_until(self, quote):
        dated = Quote.model_validate({**quote.model_dump(), "valid_until": date(2026, 6, 30)})

        assert quote_lifecycle.is_expired(dated, now=datetime(2026, 6, 30, 12, 0, tzinfo=timezone.utc)) is False

    def test_naive_valid_until_is_local(self, quote):
        dated = Quote.model_validate({**quote.model_dump(), "valid_until": datetime(2026, 6, 30, 18, 0)})

        assert dated.valid_until == datetime(2026, 6, 30, 21, 0, tzinfo=timezone.utc)
        assert quote_lifecycle.is_expired(dated, now=datetime(2026, 6, 30, 20, 0, tzinfo=timezone.utc)) is False
