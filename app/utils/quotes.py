# app/utils/quotes.py
"""
Quote pricing for service providers.

A base price is marked up by the average of the industry's usual margin and
an experience margin, then scaled by how busy the industry is this season.
Quote totals carry 7% tax and are offered in basic / standard / premium tiers.
"""
from collections import Counter
from datetime import datetime, date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, Iterable, List, Optional

from app.utils.allocation import CENT, to_cents

TAX_RATE = Decimal("0.07")
QUOTE_VALID_DAYS = 30
DEFAULT_BASE_MARGIN = 0.35

TIER_MULTIPLIERS: Dict[str, Decimal] = {
    "basic": Decimal("0.85"),
    "standard": Decimal("1"),
    "premium": Decimal("1.25"),
}

BASE_MARGINS: Dict[str, float] = {
    "construction": 0.25,
    "landscaping": 0.30,
    "automotive": 0.35,
    "plumbing": 0.40,
    "electrical": 0.35,
    "hvac": 0.30,
    "roofing": 0.25,
    "cleaning": 0.45,
    "painting": 0.35,
    "locksmith": 0.50,
    "flooring": 0.30,
    "security": 0.35,
    "beauty": 0.45,
    "electronics": 0.40,
    "graphic_design": 0.50,
}

# spring, summer, fall, winter
SEASONALITY: Dict[str, Dict[str, float]] = {
    "construction": {"spring": 1.15, "summer": 1.2, "fall": 1.05, "winter": 0.9},
    "landscaping": {"spring": 1.3, "summer": 1.15, "fall": 1.1, "winter": 0.7},
    "automotive": {"spring": 1.05, "summer": 1.1, "fall": 1.05, "winter": 1.15},
    "plumbing": {"spring": 1.1, "summer": 0.95, "fall": 1.0, "winter": 1.2},
    "electrical": {"spring": 1.05, "summer": 1.1, "fall": 1.0, "winter": 1.05},
    "hvac": {"spring": 1.15, "summer": 1.3, "fall": 1.0, "winter": 1.2},
    "roofing": {"spring": 1.2, "summer": 1.15, "fall": 1.1, "winter": 0.8},
    "cleaning": {"spring": 1.2, "summer": 1.0, "fall": 1.1, "winter": 0.95},
    "painting": {"spring": 1.15, "summer": 1.1, "fall": 1.05, "winter": 0.9},
    "locksmith": {"spring": 1.0, "summer": 1.0, "fall": 1.0, "winter": 1.0},
    "flooring": {"spring": 1.05, "summer": 1.0, "fall": 1.1, "winter": 0.95},
    "security": {"spring": 1.0, "summer": 1.05, "fall": 1.0, "winter": 1.05},
    "beauty": {"spring": 1.1, "summer": 1.15, "fall": 1.0, "winter": 1.05},
    "electronics": {"spring": 0.95, "summer": 1.0, "fall": 1.05, "winter": 1.2},
    "graphic_design": {"spring": 1.0, "summer": 0.95, "fall": 1.05, "winter": 1.1},
}


def normalize_industry(value: str) -> str:
    return value.strip().lower().replace(" ", "_").replace("-", "_")


def season_for(day: date) -> str:
    if 3 <= day.month <= 5:
        return "spring"
    if 6 <= day.month <= 8:
        return "summer"
    if 9 <= day.month <= 11:
        return "fall"
    return "winter"


def seasonal_factor(industry: str, season: str) -> float:
    return SEASONALITY.get(normalize_industry(industry), {}).get(season, 1.0)


def base_margin(industry: str) -> float:
    return BASE_MARGINS.get(normalize_industry(industry), DEFAULT_BASE_MARGIN)


def experience_margin(years: float) -> float:
    if years < 1:
        return 0.15
    if years < 3:
        return 0.22
    if years < 5:
        return 0.28
    if years < 10:
        return 0.35
    if years < 15:
        return 0.40
    return 0.45


def profit_margin(industry: str, experience_years: float) -> float:
    return round((base_margin(industry) + experience_margin(experience_years)) / 2, 4)


def tiered_pricing(amount) -> Dict[str, float]:
    total = to_cents(amount)
    return {
        tier: float((total * multiplier).quantize(CENT, rounding=ROUND_HALF_UP))
        for tier, multiplier in TIER_MULTIPLIERS.items()
    }


def competitive_price(base_price: float, experience_years: float, industry: str,
                      today: Optional[date] = None) -> Dict[str, Any]:
    """Price a job from its base cost, the provider's experience and the season."""
    if base_price < 0:
        raise ValueError("Base price must be zero or positive")
    today = today or datetime.utcnow().date()
    season = season_for(today)
    margin = profit_margin(industry, experience_years)
    factor = seasonal_factor(industry, season)
    price = to_cents(Decimal(str(base_price)) * (1 + Decimal(str(margin))) * Decimal(str(factor)))
    return {
        "industry": normalize_industry(industry),
        "base_price": float(to_cents(base_price)),
        "base_margin": base_margin(industry),
        "experience_margin": experience_margin(experience_years),
        "profit_margin": margin,
        "season": season,
        "seasonal_factor": factor,
        "price": float(price),
        "tiered_pricing": tiered_pricing(price),
    }


def quote_totals(line_items: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Price each line, then add tax and the tier options on the total."""
    items = []
    subtotal = Decimal("0")
    for item in line_items:
        line_total = to_cents(Decimal(str(item["quantity"])) * Decimal(str(item["unit_price"])))
        subtotal += line_total
        items.append({**item, "total": float(line_total)})

    tax = (subtotal * TAX_RATE).quantize(CENT, rounding=ROUND_HALF_UP)
    total = subtotal + tax
    return {
        "line_items": items,
        "subtotal": float(subtotal),
        "tax": float(tax),
        "total": float(total),
        "tiered_pricing": tiered_pricing(total),
    }


def quote_expiry(created: Optional[datetime] = None) -> datetime:
    return (created or datetime.utcnow()) + timedelta(days=QUOTE_VALID_DAYS)


def quote_history_stats(quotes: List[Any]) -> Dict[str, Any]:
    total_quotes = len(quotes)
    decided = [q for q in quotes if _status(q) in ("accepted", "declined")]
    accepted = [q for q in decided if _status(q) == "accepted"]
    industries = Counter(q.industry for q in quotes)
    return {
        "total_quotes": total_quotes,
        "average_margin": round(sum(q.profit_margin for q in quotes) / total_quotes, 4) if total_quotes else 0.0,
        "preferred_industries": [industry for industry, _ in industries.most_common(3)],
        "accepted_quotes": len(accepted),
        "acceptance_rate": round(len(accepted) / len(decided) * 100, 2) if decided else 0.0,
        "total_quoted": round(sum(q.total for q in quotes), 2),
        "total_accepted": round(sum(q.total for q in accepted), 2),
    }


def _status(quote: Any) -> str:
    return quote.status.value if hasattr(quote.status, "value") else str(quote.status)
