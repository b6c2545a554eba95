import json
from pathlib import Path

import httpx
import pytest

from app.services.ai_service import (
    AIProvider,
    AIProviderError,
    AIService,
    AIServiceSettings,
    AIUnavailableError,
    classify_error,
)

ALL_KEYS = {
    AIProvider.OPENAI: "sk-openai",
    AIProvider.ANTHROPIC: "sk-anthropic",
    AIProvider.PERPLEXITY: "pplx-key",
}

ADVICE = {"advice": "Keep building your emergency fund.", "suggestions": ["Save 10% more"], "summary": "Solid month."}


def chat_response(payload, status_code=200):
    return httpx.Response(status_code, json={"choices": [{"message": {"content": json.dumps(payload)}}]})


def error_response(status_code, code=None):
    return httpx.Response(status_code, json={"error": {"message": "nope", "code": code}})


def make_service(tmp_path, handler, keys=None, **config):
    settings = AIServiceSettings(cache_dir=str(tmp_path / "ai-cache"), **config)
    return AIService(
        settings,
        ALL_KEYS if keys is None else keys,
        transport=httpx.MockTransport(handler),
        initial_retry_delay=0,
    )


class Recorder:
    """MockTransport handler that answers per host and remembers the hosts it saw."""

    def __init__(self, **responses):
        self.responses = responses
        self.hosts = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        provider = request.url.host.split(".")[-2]
        self.hosts.append(provider)
        answer = self.responses[provider]
        if isinstance(answer, list):
            return answer.pop(0)
        return answer


async def test_advice_from_default_provider_is_cached(tmp_path):
    handler = Recorder(openai=chat_response(ADVICE))
    service = make_service(tmp_path, handler)

    first = await service.get_financial_advice({"incomes": [{"amount": 100}]})
    assert first["provider"] == "openai"
    assert first["advice"] == ADVICE["advice"]
    assert first["suggestions"] == ["Save 10% more"]

    second = await service.get_financial_advice({"incomes": [{"amount": 100}]})
    assert second["provider"] == "cache"
    assert second["advice"] == ADVICE["advice"]
    assert handler.hosts == ["openai"]


async def test_quota_error_falls_back_to_next_provider(tmp_path):
    handler = Recorder(
        openai=error_response(429, "insufficient_quota"),
        perplexity=chat_response(ADVICE),
    )
    service = make_service(tmp_path, handler, max_retries=2)

    result = await service.get_financial_advice({"incomes": []})
    assert result["provider"] == "perplexity"
    # 429 is retried on the same provider before moving on
    assert handler.hosts == ["openai", "openai", "perplexity"]


async def test_non_quota_error_fails_fast(tmp_path):
    handler = Recorder(openai=error_response(400, "invalid_request_error"), perplexity=chat_response(ADVICE))
    service = make_service(tmp_path, handler)

    with pytest.raises(AIProviderError) as exc_info:
        await service.get_financial_advice({"incomes": []})
    assert exc_info.value.status_code == 400
    assert handler.hosts == ["openai"]
    assert classify_error(exc_info.value) == "unknown"


async def test_server_error_is_retried(tmp_path):
    handler = Recorder(openai=[error_response(503), chat_response(ADVICE)])
    service = make_service(tmp_path, handler, max_retries=3)

    result = await service.get_financial_advice({"incomes": []}, question="Can I afford a new van?")
    assert result["provider"] == "openai"
    assert handler.hosts == ["openai", "openai"]


async def test_network_error_counts_as_retryable(tmp_path):
    def handler(request):
        raise httpx.ConnectError("connection refused")

    service = make_service(tmp_path, handler, keys={AIProvider.OPENAI: "sk-openai"}, max_retries=2)
    with pytest.raises(AIProviderError) as exc_info:
        await service.get_financial_advice({"incomes": []})
    assert exc_info.value.status_code == 503
    assert exc_info.value.is_retryable
    assert not exc_info.value.is_quota_error


async def test_fallback_disabled_surfaces_quota_error(tmp_path):
    handler = Recorder(openai=error_response(429, "insufficient_quota"), perplexity=chat_response(ADVICE))
    service = make_service(tmp_path, handler, auto_fallback=False, max_retries=1)

    with pytest.raises(AIProviderError) as exc_info:
        await service.get_financial_advice({"incomes": []})
    assert classify_error(exc_info.value) == "quota_exceeded"
    assert handler.hosts == ["openai"]


async def test_unconfigured_providers_are_skipped(tmp_path):
    handler = Recorder(perplexity=chat_response({"goals": [{"name": "Emergency fund", "targetAmount": 3000}]}))
    service = make_service(tmp_path, handler, keys={AIProvider.PERPLEXITY: "pplx-key"})

    result = await service.suggest_financial_goals([{"amount": 1200, "category": "repair"}])
    assert result["provider"] == "perplexity"
    assert result["goals"] == [
        {"name": "Emergency fund", "description": None, "target_amount": 3000, "timeframe": None},
    ]


async def test_no_configured_provider(tmp_path):
    service = make_service(tmp_path, Recorder(), keys={})
    with pytest.raises(AIUnavailableError) as exc_info:
        await service.analyze_expenses([])
    assert classify_error(exc_info.value) == "unavailable"


async def test_anthropic_json_wrapped_in_prose(tmp_path):
    text = "Here is your analysis:\n```json\n" + json.dumps({
        "summary": "Food is your biggest cost.",
        "topCategories": [{"name": "food", "amount": 300, "percentage": 60}],
        "insights": ["Dining out doubled"],
        "recommendations": [],
    }) + "\n```"
    handler = Recorder(anthropic=httpx.Response(200, json={"content": [{"type": "text", "text": text}]}))
    service = make_service(tmp_path, handler)

    result = await service.analyze_expenses([{"amount": 300, "category": "food"}], preferred=AIProvider.ANTHROPIC)
    assert result["provider"] == "anthropic"
    assert result["summary"] == "Food is your biggest cost."
    assert result["top_categories"][0]["name"] == "food"
    assert result["insights"] == ["Dining out doubled"]


async def test_invalid_json_is_a_provider_error(tmp_path):
    handler = Recorder(openai=httpx.Response(200, json={"choices": [{"message": {"content": "no json here"}}]}))
    service = make_service(tmp_path, handler)
    with pytest.raises(AIProviderError):
        await service.get_financial_advice({"incomes": []})


def test_expired_cache_entry_is_removed(tmp_path):
    service = make_service(tmp_path, Recorder(), cache_expiry_seconds=60)
    key = service.cache_key("financial-advice", {"a": 1})
    service.write_cache(key, {"advice": "old"})
    assert service.read_cache(key) == {"advice": "old"}

    cache_file = Path(service.config.cache_dir) / f"{key}.json"
    entry = json.loads(cache_file.read_text())
    entry["timestamp"] -= 3600
    cache_file.write_text(json.dumps(entry))

    assert service.read_cache(key) is None
    assert not cache_file.exists()


def test_cache_key_ignores_dict_order():
    assert AIService.cache_key("op", {"a": 1, "b": 2}) == AIService.cache_key("op", {"b": 2, "a": 1})
    assert AIService.cache_key("op", {"a": 1}) != AIService.cache_key("other", {"a": 1})


def test_disabled_cache(tmp_path):
    service = make_service(tmp_path, Recorder(), cache_enabled=False)
    key = service.cache_key("op", {})
    service.write_cache(key, {"x": 1})
    assert service.read_cache(key) is None


def test_update_settings(tmp_path):
    service = make_service(tmp_path, Recorder(), keys={AIProvider.ANTHROPIC: "sk-anthropic"})
    updated = service.update_settings({"default_provider": "anthropic", "max_retries": 5, "auto_fallback": None})
    assert updated["default_provider"] == "anthropic"
    assert updated["max_retries"] == 5
    assert updated["auto_fallback"] is True
    assert updated["configured_providers"] == ["anthropic"]


async def test_retry_backoff_doubles_from_one_second(tmp_path, monkeypatch):
    import app.services.ai_service as ai_module

    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(ai_module.asyncio, "sleep", fake_sleep)
    service = AIService(AIServiceSettings(cache_dir=str(tmp_path), max_retries=4), ALL_KEYS)

    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 4:
            raise AIProviderError(AIProvider.OPENAI, "busy", status_code=503)
        return ADVICE

    assert await service.with_retry(flaky) == ADVICE
    assert delays == [1.0, 2.0, 4.0]


async def test_retries_stop_at_max_retries(tmp_path, monkeypatch):
    import app.services.ai_service as ai_module

    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(ai_module.asyncio, "sleep", fake_sleep)
    service = AIService(AIServiceSettings(cache_dir=str(tmp_path), max_retries=3), ALL_KEYS)

    async def always_limited():
        raise AIProviderError(AIProvider.OPENAI, "slow down", status_code=429)

    with pytest.raises(AIProviderError):
        await service.with_retry(always_limited)
    assert delays == [1.0, 2.0]
