from datetime import date, datetime
from types import SimpleNamespace

import pytest

from app.utils.quotes import (
    competitive_price, experience_margin, profit_margin, quote_expiry, quote_history_stats,
    quote_totals, season_for, seasonal_factor, tiered_pricing,
)


@pytest.mark.parametrize("day,expected", [
    (date(2025, 2, 28), "winter"),
    (date(2025, 3, 1), "spring"),
    (date(2025, 8, 31), "summer"),
    (date(2025, 11, 30), "fall"),
    (date(2025, 12, 1), "winter"),
])
def test_season_for(day, expected):
    assert season_for(day) == expected


@pytest.mark.parametrize("years,expected", [
    (0, 0.15), (1, 0.22), (2.9, 0.22), (3, 0.28), (9, 0.35), (10, 0.40), (15, 0.45),
])
def test_experience_margin(years, expected):
    assert experience_margin(years) == expected


def test_unknown_industry_uses_defaults():
    assert profit_margin("dog walking", 0) == 0.25
    assert seasonal_factor("dog walking", "summer") == 1.0
    assert profit_margin("Graphic Design", 20) == 0.475


def test_competitive_price_in_winter():
    estimate = competitive_price(100, 5, "plumbing", today=date(2025, 1, 15))
    assert estimate["season"] == "winter"
    assert estimate["profit_margin"] == 0.375
    assert estimate["seasonal_factor"] == 1.2
    assert estimate["price"] == 165.0
    assert estimate["tiered_pricing"] == {"basic": 140.25, "standard": 165.0, "premium": 206.25}


def test_competitive_price_rejects_negative_base():
    with pytest.raises(ValueError):
        competitive_price(-1, 2, "cleaning")


def test_quote_totals_add_tax_in_cents():
    totals = quote_totals([
        {"description": "Labour", "quantity": 3, "unit_price": 45.5, "category": "labor"},
        {"description": "Valve", "quantity": 1, "unit_price": 120, "category": "materials"},
    ])
    assert [i["total"] for i in totals["line_items"]] == [136.5, 120.0]
    assert totals["subtotal"] == 256.5
    assert totals["tax"] == 17.96
    assert totals["total"] == 274.46
    assert totals["tiered_pricing"] == {"basic": 233.29, "standard": 274.46, "premium": 343.08}


def test_tiered_pricing_of_zero():
    assert tiered_pricing(0) == {"basic": 0.0, "standard": 0.0, "premium": 0.0}


def test_quote_expiry_is_thirty_days():
    assert quote_expiry(datetime(2025, 1, 20)) == datetime(2025, 2, 19)


def test_quote_history_stats():
    quotes = [
        SimpleNamespace(industry="plumbing", profit_margin=0.3, status="accepted", total=100.0),
        SimpleNamespace(industry="plumbing", profit_margin=0.4, status="declined", total=200.0),
        SimpleNamespace(industry="hvac", profit_margin=0.5, status="draft", total=50.0),
    ]
    stats = quote_history_stats(quotes)
    assert stats["total_quotes"] == 3
    assert stats["average_margin"] == 0.4
    assert stats["preferred_industries"] == ["plumbing", "hvac"]
    assert stats["accepted_quotes"] == 1
    assert stats["acceptance_rate"] == 50.0
    assert stats["total_quoted"] == 350.0
    assert stats["total_accepted"] == 100.0


def test_quote_history_stats_without_quotes():
    stats = quote_history_stats([])
    assert stats["total_quotes"] == 0
    assert stats["average_margin"] == 0.0
    assert stats["acceptance_rate"] == 0.0
