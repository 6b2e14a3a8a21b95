"""Tests for document numbering."""

from core.numbering import next_document_number, number_prefix


class TestNumbering:
    """Tests for next_document_number."""

    def test_prefix(self):
        assert number_prefix("P", 2026) == "P-2026-"

    def test_first_of_year(self):
        assert next_document_number("P", 2026, None) == "P-2026-0001"

    def test_increments(self):
        assert next_document_number("O", 2026, "O-2026-0041") == "O-2026-0042"

    def test_restarts_each_year(self):
        assert next_document_number("V", 2027, "V-2026-0999") == "V-2027-0001"

    def test_grows_past_four_digits(self):
        assert next_document_number("V", 2026, "V-2026-9999") == "V-2026-10000"

    def test_garbage_latest_restarts(self):
        assert next_document_number("P", 2026, "P-2026-XYZ") == "P-2026-0001"
