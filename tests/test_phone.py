"""
Tests for phone number normalization and reverse lookup ranking
"""
from apple_mcp.phone import (
    RANK_CONTAINS,
    RANK_EXACT,
    RANK_NATIONAL,
    best_match,
    match_rank,
    national_digits,
    normalize_phone_number,
    phone_variants,
)


class TestNormalize:
    """Test phone number normalization."""

    def test_strips_formatting(self):
        assert normalize_phone_number("(555) 123-4567") == "5551234567"

    def test_keeps_leading_plus(self):
        assert normalize_phone_number("+1 (555) 123-4567") == "+15551234567"

    def test_empty(self):
        assert normalize_phone_number("") == ""
        assert normalize_phone_number("+") == ""

    def test_national_digits_drops_country_code(self):
        assert national_digits("+1 555 123 4567") == "5551234567"
        assert national_digits("+44 20 7946 0958") == "442079460958"

    def test_variants(self):
        variants = phone_variants("555-123-4567")
        assert "5551234567" in variants
        assert "15551234567" in variants
        assert "+15551234567" in variants
        assert len(variants) == len(set(variants))

    def test_variants_of_blank(self):
        assert phone_variants("n/a") == []


class TestMatchRank:
    """Test the ranked match rule set."""

    def test_exact(self):
        assert match_rank("+1 (555) 123-4567", "+15551234567") == RANK_EXACT

    def test_national(self):
        assert match_rank("(555) 123-4567", "+15551234567") == RANK_NATIONAL

    def test_contains(self):
        assert match_rank("1234567", "5551234567") == RANK_CONTAINS

    def test_short_numbers_do_not_contain(self):
        assert match_rank("4567", "5551234567") is None

    def test_no_match(self):
        assert match_rank("5559999999", "5551234567") is None
        assert match_rank("", "5551234567") is None


class TestBestMatch:
    """Test reverse lookup across a directory."""

    def test_prefers_exact_over_national_over_contains(self):
        directory = {
            "Partial": ["123-4567"],
            "National": ["555 123 4567"],
            "Exact": ["+15551234567"],
        }
        assert best_match(directory, "+15551234567") == "Exact"

        del directory["Exact"]
        assert best_match(directory, "+15551234567") == "National"

        del directory["National"]
        assert best_match(directory, "+15551234567") == "Partial"

    def test_first_contact_wins_ties(self):
        directory = {
            "First": ["555-123-4567"],
            "Second": ["(555) 123 4567"],
        }
        assert best_match(directory, "+15551234567") == "First"

    def test_unknown(self):
        assert best_match({"Someone": ["5550000000"]}, "+15551234567") is None
