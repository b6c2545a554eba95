# app/services/ai_service.py
"""
Multi-provider AI service used for financial advice, goal suggestions,
expense analysis and weekly spending reflections.

Each operation sends one JSON-producing prompt to a provider chosen from
OpenAI, Anthropic and Perplexity:

- a call is retried with exponential backoff on rate limits and 5xx errors;
- with auto-fallback on, a quota error moves on to the next provider in a
  fixed order, any other error fails fast;
- results are memoised on disk as JSON files keyed by operation and input.
"""
import asyncio
import hashlib
import json
import logging
import time
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel

from app.core.config import settings as app_settings

logger = logging.getLogger(__name__)

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"
ANTHROPIC_VERSION = "2023-06-01"


class AIProvider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    PERPLEXITY = "perplexity"


# Preferred provider first, then the cheaper online model before the other paid one
PROVIDER_ORDER: Dict[AIProvider, List[AIProvider]] = {
    AIProvider.OPENAI: [AIProvider.OPENAI, AIProvider.PERPLEXITY, AIProvider.ANTHROPIC],
    AIProvider.PERPLEXITY: [AIProvider.PERPLEXITY, AIProvider.OPENAI, AIProvider.ANTHROPIC],
    AIProvider.ANTHROPIC: [AIProvider.ANTHROPIC, AIProvider.PERPLEXITY, AIProvider.OPENAI],
}

REFLECTION_STATUS_TEXT = {
    "good": "Within budget across all categories",
    "warning": "Approaching the limit in some categories",
    "over_budget": "Over budget in some categories",
}


class AIServiceError(Exception):
    """Base exception for AI service errors."""
    pass


class AIUnavailableError(AIServiceError):
    """No provider is configured for the request."""
    pass


class AIProviderError(AIServiceError):
    """A provider call failed."""

    def __init__(self, provider: AIProvider, message: str,
                 status_code: Optional[int] = None, code: Optional[str] = None):
        self.provider = provider
        self.status_code = status_code
        self.code = code
        super().__init__(f"{provider.value}: {message}")

    @property
    def is_retryable(self) -> bool:
        return self.status_code == 429 or (self.status_code is not None and 500 <= self.status_code < 600)

    @property
    def is_quota_error(self) -> bool:
        return self.status_code == 429 or self.code == "insufficient_quota"


def classify_error(error: Exception) -> str:
    """Map an AI failure to the error type reported to clients."""
    if isinstance(error, AIUnavailableError):
        return "unavailable"
    if isinstance(error, AIProviderError):
        if error.code == "insufficient_quota":
            return "quota_exceeded"
        if error.status_code == 429:
            return "rate_limited"
    return "unknown"


class AIServiceSettings(BaseModel):
    default_provider: AIProvider = AIProvider.OPENAI
    auto_fallback: bool = True
    max_retries: int = 3
    cache_enabled: bool = True
    cache_expiry_seconds: int = 60 * 60 * 24 * 7
    cache_dir: str = ".cache"


def _parse_json_content(provider: AIProvider, text: Optional[str]) -> Dict[str, Any]:
    """Models sometimes wrap their JSON in prose or code fences."""
    if not text:
        return {}
    try:
        return json.loads(text)
    except ValueError:
        start, end = text.find("{"), text.rfind("}")
        if start != -1 and end > start:
            try:
                return json.loads(text[start:end + 1])
            except ValueError:
                pass
    raise AIProviderError(provider, "Response was not valid JSON")


def _error_code(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("code") or error.get("type")
    return None


class AIService:
    def __init__(
        self,
        config: AIServiceSettings,
        api_keys: Dict[AIProvider, str],
        models: Optional[Dict[AIProvider, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 60.0,
        initial_retry_delay: float = 1.0,
    ):
        self.config = config
        self._api_keys = api_keys
        self._models = models or {
            AIProvider.OPENAI: "gpt-4o",
            AIProvider.ANTHROPIC: "claude-3-7-sonnet-20250219",
            AIProvider.PERPLEXITY: "llama-3.1-sonar-small-128k-online",
        }
        self._transport = transport
        self._timeout = timeout
        self._initial_retry_delay = initial_retry_delay

    @classmethod
    def from_settings(cls) -> "AIService":
        config = AIServiceSettings(
            default_provider=AIProvider(app_settings.AI_DEFAULT_PROVIDER),
            auto_fallback=app_settings.AI_AUTO_FALLBACK,
            max_retries=app_settings.AI_MAX_RETRIES,
            cache_enabled=app_settings.AI_CACHE_ENABLED,
            cache_expiry_seconds=app_settings.AI_CACHE_EXPIRY_SECONDS,
            cache_dir=app_settings.AI_CACHE_DIR,
        )
        api_keys = {
            AIProvider.OPENAI: app_settings.OPENAI_API_KEY,
            AIProvider.ANTHROPIC: app_settings.ANTHROPIC_API_KEY,
            AIProvider.PERPLEXITY: app_settings.PERPLEXITY_API_KEY,
        }
        models = {
            AIProvider.OPENAI: app_settings.OPENAI_MODEL,
            AIProvider.ANTHROPIC: app_settings.ANTHROPIC_MODEL,
            AIProvider.PERPLEXITY: app_settings.PERPLEXITY_MODEL,
        }
        for provider, key in api_keys.items():
            if not key:
                logger.warning(f"{provider.value} API key not set. {provider.value} functionality will be disabled.")
        return cls(config, api_keys, models=models, timeout=app_settings.AI_REQUEST_TIMEOUT)

    # ──────────────────────────────────────────────────────────────────────
    # SETTINGS
    # ──────────────────────────────────────────────────────────────────────
    def configured_providers(self) -> List[AIProvider]:
        return [p for p in AIProvider if self._api_keys.get(p)]

    def get_settings(self) -> Dict[str, Any]:
        return {
            "default_provider": self.config.default_provider.value,
            "auto_fallback": self.config.auto_fallback,
            "max_retries": self.config.max_retries,
            "cache_enabled": self.config.cache_enabled,
            "cache_expiry_seconds": self.config.cache_expiry_seconds,
            "available_providers": [p.value for p in AIProvider],
            "configured_providers": [p.value for p in self.configured_providers()],
        }

    def update_settings(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        for field, value in changes.items():
            if value is None:
                continue
            if field == "default_provider":
                value = AIProvider(value)
            setattr(self.config, field, value)
        logger.info(f"AI settings updated: {changes}")
        return self.get_settings()

    # ──────────────────────────────────────────────────────────────────────
    # CACHE
    # ──────────────────────────────────────────────────────────────────────
    @staticmethod
    def cache_key(operation: str, payload: Any) -> str:
        data = payload if isinstance(payload, str) else json.dumps(payload, sort_keys=True, default=str)
        return hashlib.md5(f"{operation}-{data}".encode("utf-8")).hexdigest()

    def _cache_file(self, key: str) -> Path:
        return Path(self.config.cache_dir) / f"{key}.json"

    def read_cache(self, key: str) -> Optional[Dict[str, Any]]:
        if not self.config.cache_enabled:
            return None
        cache_file = self._cache_file(key)
        try:
            entry = json.loads(cache_file.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None

        if time.time() - entry.get("timestamp", 0) > self.config.cache_expiry_seconds:
            try:
                cache_file.unlink()
            except OSError as e:
                logger.warning(f"Failed to remove expired cache entry {cache_file}: {e}")
            return None
        return entry.get("data")

    def write_cache(self, key: str, data: Dict[str, Any]) -> None:
        if not self.config.cache_enabled:
            return
        cache_file = self._cache_file(key)
        try:
            cache_file.parent.mkdir(parents=True, exist_ok=True)
            cache_file.write_text(json.dumps({"data": data, "timestamp": time.time()}), encoding="utf-8")
        except (OSError, TypeError) as e:
            logger.error(f"Failed to save to cache: {e}")

    # ──────────────────────────────────────────────────────────────────────
    # PROVIDERS
    # ──────────────────────────────────────────────────────────────────────
    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def _post(self, provider: AIProvider, url: str, headers: Dict[str, str],
                    payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.post(url, headers=headers, json=payload)
        except httpx.RequestError as e:
            # Network trouble is treated like a temporary server error
            raise AIProviderError(provider, f"Request failed: {e}", status_code=503)

        if response.status_code != 200:
            raise AIProviderError(
                provider,
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
                code=_error_code(response),
            )
        return response.json()

    async def _call_openai(self, system: str, prompt: str) -> Dict[str, Any]:
        body = await self._post(
            AIProvider.OPENAI,
            OPENAI_URL,
            {"Authorization": f"Bearer {self._api_keys[AIProvider.OPENAI]}"},
            {
                "model": self._models[AIProvider.OPENAI],
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                "response_format": {"type": "json_object"},
            },
        )
        return _parse_json_content(AIProvider.OPENAI, body["choices"][0]["message"]["content"])

    async def _call_anthropic(self, system: str, prompt: str) -> Dict[str, Any]:
        body = await self._post(
            AIProvider.ANTHROPIC,
            ANTHROPIC_URL,
            {
                "x-api-key": self._api_keys[AIProvider.ANTHROPIC],
                "anthropic-version": ANTHROPIC_VERSION,
            },
            {
                "model": self._models[AIProvider.ANTHROPIC],
                "max_tokens": 1024,
                "system": system,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        text = ""
        content = body.get("content") or []
        if content and content[0].get("type") == "text":
            text = content[0].get("text", "")
        return _parse_json_content(AIProvider.ANTHROPIC, text)

    async def _call_perplexity(self, system: str, prompt: str) -> Dict[str, Any]:
        body = await self._post(
            AIProvider.PERPLEXITY,
            PERPLEXITY_URL,
            {"Authorization": f"Bearer {self._api_keys[AIProvider.PERPLEXITY]}"},
            {
                "model": self._models[AIProvider.PERPLEXITY],
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                "temperature": 0.1,
            },
        )
        return _parse_json_content(AIProvider.PERPLEXITY, body["choices"][0]["message"]["content"])

    def _provider_call(self, provider: AIProvider) -> Callable[[str, str], Awaitable[Dict[str, Any]]]:
        return {
            AIProvider.OPENAI: self._call_openai,
            AIProvider.ANTHROPIC: self._call_anthropic,
            AIProvider.PERPLEXITY: self._call_perplexity,
        }[provider]

    # ──────────────────────────────────────────────────────────────────────
    # RETRY / FALLBACK
    # ──────────────────────────────────────────────────────────────────────
    async def with_retry(self, fn: Callable[[], Awaitable[Dict[str, Any]]]) -> Dict[str, Any]:
        attempt = 0
        while True:
            try:
                return await fn()
            except AIProviderError as e:
                attempt += 1
                if attempt >= self.config.max_retries or not e.is_retryable:
                    raise
                delay = self._initial_retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying {e.provider.value} after {delay:.1f}s (attempt {attempt} of {self.config.max_retries})...")
                await asyncio.sleep(delay)

    async def execute_with_fallback(self, system: str, prompt: str,
                                    preferred: Optional[AIProvider] = None) -> Tuple[Dict[str, Any], AIProvider]:
        preferred = preferred or self.config.default_provider
        configured = set(self.configured_providers())

        if self.config.auto_fallback:
            chain = [p for p in PROVIDER_ORDER[preferred] if p in configured]
        else:
            chain = [preferred] if preferred in configured else []

        if not chain:
            raise AIUnavailableError("No AI provider is configured")

        last_error: Optional[AIProviderError] = None
        for provider in chain:
            call = self._provider_call(provider)
            try:
                data = await self.with_retry(lambda: call(system, prompt))
                return data, provider
            except AIProviderError as e:
                logger.error(f"Error with {provider.value}: {e}")
                last_error = e
                if not e.is_quota_error:
                    raise
                logger.warning(f"{provider.value} quota exhausted, trying next provider")

        raise last_error

    async def run(self, operation: str, payload: Any, system: str, prompt: str,
                  preferred: Optional[AIProvider] = None) -> Dict[str, Any]:
        key = self.cache_key(operation, payload)
        cached = await asyncio.to_thread(self.read_cache, key)
        if cached is not None:
            logger.info(f"Using cached {operation}")
            return {**cached, "provider": "cache"}

        data, provider = await self.execute_with_fallback(system, prompt, preferred)
        result = {**data, "provider": provider.value}
        await asyncio.to_thread(self.write_cache, key, result)
        return result

    # ──────────────────────────────────────────────────────────────────────
    # OPERATIONS
    # ──────────────────────────────────────────────────────────────────────
    async def get_financial_advice(self, financial_data: Dict[str, Any], question: Optional[str] = None,
                                   preferred: Optional[AIProvider] = None) -> Dict[str, Any]:
        system = (
            "You are a financial advisor specialized in personal finance for service providers. "
            "Provide thoughtful, detailed advice based on the user's financial situation. "
            'Always respond with JSON in the format: { "advice": string, "suggestions": string[], "summary": string }'
        )
        prompt = build_financial_advice_prompt(financial_data, question)
        result = await self.run("financial-advice", {"data": financial_data, "question": question},
                                system, prompt, preferred)
        return {
            "advice": result.get("advice") or "No specific advice could be generated at this time.",
            "suggestions": [str(s) for s in result.get("suggestions") or []],
            "summary": result.get("summary"),
            "provider": result["provider"],
        }

    async def suggest_financial_goals(self, income_data: List[Dict[str, Any]],
                                      preferred: Optional[AIProvider] = None) -> Dict[str, Any]:
        system = (
            "You are a financial goals expert. Generate realistic, achievable financial goals based on income data. "
            'Always respond with JSON in the format: { "goals": [...array of goal objects...] }'
        )
        prompt = (
            "Based on the following income data, suggest 3-5 realistic financial goals:\n"
            f"{json.dumps(income_data, indent=2, default=str)}\n\n"
            "Each goal must have this structure:\n"
            '{ "name": "Goal name", "description": "Detailed description", '
            '"target_amount": numeric amount, "timeframe": "e.g. 3 months" }\n'
            'Respond with { "goals": [ ... ] }'
        )
        result = await self.run("suggest-goals", income_data, system, prompt, preferred)
        goals = []
        for goal in result.get("goals") or []:
            if not isinstance(goal, dict) or not goal.get("name"):
                continue
            goals.append({
                "name": goal["name"],
                "description": goal.get("description"),
                "target_amount": goal.get("target_amount", goal.get("targetAmount")),
                "timeframe": goal.get("timeframe"),
            })
        return {"goals": goals, "provider": result["provider"]}

    async def analyze_expenses(self, expense_data: List[Dict[str, Any]], period: str = "month",
                               preferred: Optional[AIProvider] = None) -> Dict[str, Any]:
        system = (
            "You are a financial analyst specializing in personal expense optimization. "
            "Analyze expense data and provide actionable insights. Always respond with JSON."
        )
        prompt = (
            f"Analyze the following expense data for the last {period} and provide insights:\n"
            f"{json.dumps(expense_data, indent=2, default=str)}\n\n"
            "Respond with JSON in this structure:\n"
            '{ "summary": "Brief overview of spending patterns", '
            '"top_categories": [{ "name": "Category name", "amount": number, "percentage": number }], '
            '"insights": ["Insight 1", "Insight 2"], '
            '"recommendations": [{ "title": "...", "description": "...", "savings_estimate": number }] }'
        )
        result = await self.run("analyze-expenses", {"period": period, "expenses": expense_data},
                                system, prompt, preferred)
        return {
            "summary": result.get("summary") or "",
            "top_categories": result.get("top_categories", result.get("topCategories")) or [],
            "insights": [str(i) for i in result.get("insights") or []],
            "recommendations": result.get("recommendations") or [],
            "provider": result["provider"],
        }

    async def weekly_reflection(self, summary: Dict[str, Any], status: str,
                                preferred: Optional[AIProvider] = None) -> Dict[str, Any]:
        system = (
            "You are a supportive personal finance coach. Keep the tone helpful, not judgmental. "
            'Always respond with JSON in the format: { "suggestion": string }'
        )
        lines = []
        for c in summary["categories"]:
            line = f"{c['category']}: spent ${c['spent']:.2f}"
            if c.get("limit_amount"):
                line += f" of ${c['limit_amount']:.2f} limit ({c['percentage']:.0f}%)"
            lines.append(line)
        prompt = (
            f"Weekly spending summary ({summary['period_start']:%b %d} - {summary['period_end']:%b %d, %Y}):\n"
            + "\n".join(lines)
            + f"\n\nOverall status: {REFLECTION_STATUS_TEXT[status]}\n\n"
            "Give a brief analysis of this spending, one or two specific tips for the coming week "
            "and a positive note about categories within budget. Limit it to 3-4 sentences."
        )
        result = await self.run("weekly-reflection", {"summary": summary, "status": status},
                                system, prompt, preferred)
        return {"suggestion": result.get("suggestion") or "", "provider": result["provider"]}


def build_financial_advice_prompt(data: Dict[str, Any], question: Optional[str] = None) -> str:
    ask = f"The user has asked: {question}" if question else \
        "Provide general financial advice based on their income patterns, expenses, and goals."
    return f"""
You are advising a service provider who uses a 40/30/30 income allocation model
(40% for needs, 30% for investments, 30% for savings).

INCOME DATA:
{json.dumps(data.get("incomes", []), indent=2, default=str)}

EXPENSE DATA:
{json.dumps(data.get("expenses", []), indent=2, default=str)}

FINANCIAL GOALS:
{json.dumps(data.get("goals", []), indent=2, default=str)}

CURRENT BALANCE:
{json.dumps(data.get("balance"), default=str)}

{ask}

Include a general assessment, specific advice on their 40/30/30 allocation,
how their behaviour aligns with their goals, and actionable suggestions.

Respond with a JSON object:
{{
  "advice": "Detailed financial advice with multiple paragraphs",
  "suggestions": ["Specific action item 1", "Specific action item 2", "Specific action item 3"],
  "summary": "A one-paragraph summary of the key advice"
}}
"""


ai_service = AIService.from_settings()


def get_ai_service() -> AIService:
    return ai_service
