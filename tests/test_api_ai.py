import json

import httpx
import pytest

from app.services.ai_service import AIProvider, AIService, AIServiceSettings, get_ai_service


@pytest.fixture()
def use_ai(app, tmp_path):
    """Swap in an AI service whose providers answer through the given handler."""
    def _use(handler, keys=None):
        service = AIService(
            AIServiceSettings(cache_dir=str(tmp_path / "ai-cache"), max_retries=1),
            {AIProvider.OPENAI: "sk-openai", AIProvider.PERPLEXITY: "pplx"} if keys is None else keys,
            transport=httpx.MockTransport(handler),
            initial_retry_delay=0,
        )
        app.dependency_overrides[get_ai_service] = lambda: service
        return service
    return _use


def advice_handler(request):
    content = json.dumps({"advice": "Move 5% more into savings.", "suggestions": ["Automate transfers"], "summary": "Good."})
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


async def test_ai_requires_pro(client, use_ai):
    use_ai(advice_handler)
    r = await client.post("/api/v1/ai/financial-advice", json={})
    assert r.status_code == 403


async def test_financial_advice(client, pro_user, use_ai):
    use_ai(advice_handler)
    await client.post("/api/v1/incomes/", json={"description": "Repair", "amount": 300})

    r = await client.post("/api/v1/ai/financial-advice", json={"question": "How much should I save?"})
    assert r.status_code == 200
    body = r.json()
    assert body["provider"] == "openai"
    assert body["suggestions"] == ["Automate transfers"]


async def test_quota_exhausted_everywhere(client, pro_user, use_ai):
    def handler(request):
        return httpx.Response(429, json={"error": {"message": "quota", "code": "insufficient_quota"}})

    use_ai(handler)
    r = await client.post("/api/v1/ai/suggest-goals")
    assert r.status_code == 429
    assert r.json()["error"] is True
    assert r.json()["error_type"] == "quota_exceeded"


async def test_no_provider_configured(client, pro_user, use_ai):
    use_ai(advice_handler, keys={})
    r = await client.post("/api/v1/ai/analyze-expenses", json={"period": "quarter"})
    assert r.status_code == 503
    assert r.json()["error_type"] == "unavailable"


async def test_provider_failure_is_bad_gateway(client, pro_user, use_ai):
    use_ai(lambda request: httpx.Response(400, json={"error": {"message": "bad", "type": "invalid_request_error"}}))
    r = await client.post("/api/v1/ai/financial-advice", json={})
    assert r.status_code == 502
    assert r.json()["error_type"] == "unknown"


async def test_settings(client, use_ai):
    use_ai(advice_handler)
    r = await client.get("/api/v1/ai/settings")
    assert r.status_code == 200
    assert r.json()["configured_providers"] == ["openai", "perplexity"]

    r = await client.patch("/api/v1/ai/settings", json={"default_provider": "perplexity"})
    assert r.status_code == 403


async def test_mark_advice_used(client):
    r = await client.post("/api/v1/ai/mark-advice-used", json={"advice_type": "goal_suggestion"})
    assert r.json() == {"success": True, "points_awarded": 10, "reason": "Used goal suggestion"}
