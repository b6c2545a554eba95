from datetime import datetime
from types import SimpleNamespace

import pytest

from app.utils.guardrails import guardrail_level, period_end, should_alert


@pytest.mark.parametrize("spent,limit,expected", [
    (0, 100, "ok"),
    (79.99, 100, "ok"),
    (80, 100, "warning"),
    (99.99, 100, "warning"),
    (100, 100, "exceeded"),
    (100.01, 100, "exceeded"),
    (5, 0, "exceeded"),
])
def test_guardrail_level(spent, limit, expected):
    assert guardrail_level(spent, limit) == expected


def test_period_end():
    assert period_end("weekly", datetime(2025, 3, 10)) == datetime(2025, 3, 17)
    assert period_end("monthly", datetime(2025, 12, 1)) == datetime(2026, 1, 1)


def test_alerts_once_per_level_per_period():
    start = datetime(2025, 3, 1)
    fresh = SimpleNamespace(last_alert_level=None, last_alert_period_start=None)
    assert should_alert(fresh, "warning", start) is True
    assert should_alert(fresh, "ok", start) is False

    warned = SimpleNamespace(last_alert_level="warning", last_alert_period_start=start)
    assert should_alert(warned, "warning", start) is False
    assert should_alert(warned, "exceeded", start) is True

    exceeded = SimpleNamespace(last_alert_level="exceeded", last_alert_period_start=start)
    assert should_alert(exceeded, "warning", start) is False


def test_new_period_alerts_again():
    last_month = SimpleNamespace(last_alert_level="exceeded", last_alert_period_start=datetime(2025, 2, 1))
    assert should_alert(last_month, "warning", datetime(2025, 3, 1)) is True
