import json

import httpx
import pytest

from app.services.ai_service import AIProvider, AIService, AIServiceSettings, get_ai_service


async def _spend(client, amount, category, description="Spend"):
    r = await client.post("/api/v1/expenses/", json={"description": description, "amount": amount, "category": category})
    assert r.status_code == 201


async def test_monthly_summary(client):
    await client.post("/api/v1/guardrails/limits", json={"category": "food", "limit_amount": 100})
    await client.post("/api/v1/guardrails/limits",
                      json={"category": "transportation", "limit_amount": 50, "period": "weekly"})
    await _spend(client, 85, "food")
    await _spend(client, 500, "housing")

    summary = (await client.get("/api/v1/guardrails/summary")).json()
    assert summary["period"] == "monthly"
    assert summary["total_spent"] == 585.0
    assert summary["total_limit"] == 100.0
    assert summary["categories"] == [
        {"category": "food", "spent": 85.0, "limit_amount": 100.0, "percentage": 85.0, "level": "warning"},
        {"category": "housing", "spent": 500.0, "limit_amount": None, "percentage": 0.0, "level": "ok"},
    ]


async def test_weekly_summary_lists_limits_without_spending(client):
    await client.post("/api/v1/guardrails/limits",
                      json={"category": "transportation", "limit_amount": 50, "period": "weekly"})
    await _spend(client, 12, "food")

    summary = (await client.get("/api/v1/guardrails/summary", params={"period": "weekly"})).json()
    assert summary["total_limit"] == 50.0
    by_category = {c["category"]: c for c in summary["categories"]}
    assert by_category["transportation"]["spent"] == 0.0
    assert by_category["transportation"]["level"] == "ok"
    assert by_category["food"]["limit_amount"] is None


async def test_summary_rejects_unknown_period(client):
    r = await client.get("/api/v1/guardrails/summary", params={"period": "daily"})
    assert r.status_code == 422


async def test_alerts(client):
    await client.post("/api/v1/guardrails/limits", json={"category": "food", "limit_amount": 100})
    await client.post("/api/v1/guardrails/limits", json={"category": "housing", "limit_amount": 1000})
    await _spend(client, 85, "food")
    await _spend(client, 100, "housing")

    alerts = (await client.get("/api/v1/guardrails/alerts")).json()
    assert alerts["has_warnings"] is True
    assert alerts["has_overages"] is False
    assert [a["category"] for a in alerts["alerts"]] == ["food"]

    await _spend(client, 20, "food")
    alerts = (await client.get("/api/v1/guardrails/alerts")).json()
    assert alerts["has_warnings"] is False
    assert alerts["has_overages"] is True
    assert alerts["alerts"][0]["level"] == "exceeded"


async def test_no_alerts_without_limits(client):
    await _spend(client, 85, "food")
    assert (await client.get("/api/v1/guardrails/alerts")).json() == {
        "has_warnings": False, "has_overages": False, "alerts": [],
    }


async def test_weekly_reflection_falls_back_without_ai(client):
    await client.post("/api/v1/guardrails/limits",
                      json={"category": "food", "limit_amount": 50, "period": "weekly"})
    await _spend(client, 60, "food")

    r = await client.get("/api/v1/guardrails/reflection")
    assert r.status_code == 200
    reflection = r.json()
    assert reflection["overall_status"] == "over_budget"
    assert reflection["ai_suggestion"].startswith("Review your spending")
    assert reflection["category_summary"][0]["category"] == "food"

    # Written once per week
    await _spend(client, 5, "food")
    again = (await client.get("/api/v1/guardrails/reflection")).json()
    assert again["id"] == reflection["id"]
    assert again["category_summary"][0]["spent"] == 60.0

    history = (await client.get("/api/v1/guardrails/reflections/history")).json()
    assert [h["id"] for h in history] == [reflection["id"]]


@pytest.mark.parametrize("spent,expected", [(10, "good"), (45, "warning")])
async def test_weekly_reflection_status(client, spent, expected):
    await client.post("/api/v1/guardrails/limits",
                      json={"category": "food", "limit_amount": 50, "period": "weekly"})
    await _spend(client, spent, "food")
    assert (await client.get("/api/v1/guardrails/reflection")).json()["overall_status"] == expected


async def test_weekly_reflection_uses_ai(client, app, tmp_path):
    prompts = []

    def handler(request):
        prompts.append(json.loads(request.content)["messages"][-1]["content"])
        content = json.dumps({"suggestion": "Great week. Keep packing lunches."})
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    service = AIService(
        AIServiceSettings(cache_dir=str(tmp_path / "ai-cache"), max_retries=1),
        {AIProvider.OPENAI: "sk-openai"},
        transport=httpx.MockTransport(handler),
        initial_retry_delay=0,
    )
    app.dependency_overrides[get_ai_service] = lambda: service
    await _spend(client, 20, "food", "Lunch")

    reflection = (await client.get("/api/v1/guardrails/reflection")).json()
    assert reflection["ai_suggestion"] == "Great week. Keep packing lunches."
    assert reflection["overall_status"] == "good"
    assert "food: spent $20.00" in prompts[0]
    assert "Within budget across all categories" in prompts[0]


async def test_reflection_history_limit(client):
    r = await client.get("/api/v1/guardrails/reflections/history", params={"limit": 0})
    assert r.status_code == 422
    assert (await client.get("/api/v1/guardrails/reflections/history")).json() == []
