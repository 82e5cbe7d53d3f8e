"""
Unit tests for hash utilities.

Tests compute_price_hash / compute_pricing_hash for determinism and
sensitivity, and daily_seed for per-day stability.

Version: 1.0.0
"""
from datetime import date

import pytest

from app.utils.hash_utils import compute_price_hash, compute_pricing_hash, daily_seed


pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# compute_price_hash
# ---------------------------------------------------------------------------

class TestComputePriceHash:
    """Tests for compute_price_hash."""

    def test_deterministic_same_input(self):
        assert compute_price_hash(10.0, 17.0, 31.2, True) == compute_price_hash(10.0, 17.0, 31.2, True)

    def test_returns_16_char_hex_string(self):
        h = compute_price_hash(10.0, 17.0, 31.2, True)
        assert isinstance(h, str)
        assert len(h) == 16
        assert all(c in "0123456789abcdef" for c in h)

    def test_different_cost_different_hash(self):
        assert compute_price_hash(10.0, 17.0, 31.2, True) != compute_price_hash(11.0, 17.0, 31.2, True)

    def test_stock_change_different_hash(self):
        assert compute_price_hash(10.0, 17.0, 31.2, True) != compute_price_hash(10.0, 17.0, 31.2, False)

    def test_handles_none_values(self):
        h = compute_price_hash(None, None, None, None)
        assert len(h) == 16


class TestComputePricingHash:

    def test_matches_field_hash(self):
        pricing = {"cost": 10.0, "list_price": 17.0, "compare_at_price": 31.2, "profit": {"percent": 70.0}}
        assert compute_pricing_hash(pricing, True) == compute_price_hash(10.0, 17.0, 31.2, True)

    def test_ignores_competitor_breakdown(self):
        base = {"cost": 10.0, "list_price": 17.0, "compare_at_price": 31.2}
        with_competitors = {**base, "competitor_prices": {"amazon": 31.0}}
        assert compute_pricing_hash(base, True) == compute_pricing_hash(with_competitors, True)


# ---------------------------------------------------------------------------
# daily_seed
# ---------------------------------------------------------------------------

class TestDailySeed:

    def test_same_key_same_day_stable(self):
        day = date(2024, 5, 1)
        assert daily_seed("prod-1", day) == daily_seed("prod-1", day)

    def test_changes_across_days(self):
        assert daily_seed("prod-1", date(2024, 5, 1)) != daily_seed("prod-1", date(2024, 5, 2))

    def test_changes_across_keys(self):
        day = date(2024, 5, 1)
        assert daily_seed("prod-1", day) != daily_seed("prod-2", day)

    def test_defaults_to_today(self):
        assert isinstance(daily_seed("prod-1"), int)
