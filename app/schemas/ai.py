# app/schemas/ai.py
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

ProviderName = Literal["openai", "anthropic", "perplexity"]


class AISettingsRead(BaseModel):
    default_provider: ProviderName
    auto_fallback: bool
    max_retries: int
    cache_enabled: bool
    cache_expiry_seconds: int
    available_providers: List[str]
    configured_providers: List[str]


class AISettingsUpdate(BaseModel):
    default_provider: Optional[ProviderName] = None
    auto_fallback: Optional[bool] = None
    max_retries: Optional[int] = Field(None, ge=1, le=10)
    cache_enabled: Optional[bool] = None
    cache_expiry_seconds: Optional[int] = Field(None, ge=1)


class FinancialAdviceRequest(BaseModel):
    question: Optional[str] = Field(None, max_length=1000, description="Specific question for the advisor")
    preferred_provider: Optional[ProviderName] = None


class FinancialAdviceResponse(BaseModel):
    advice: str
    suggestions: List[str] = []
    summary: Optional[str] = None
    provider: str


class GoalSuggestion(BaseModel):
    name: str
    description: Optional[str] = None
    target_amount: Optional[float] = None
    timeframe: Optional[str] = None


class GoalSuggestionsResponse(BaseModel):
    goals: List[GoalSuggestion] = []
    provider: str


class ExpenseAnalysisRequest(BaseModel):
    period: Literal["month", "quarter", "year"] = "month"


class ExpenseAnalysisResponse(BaseModel):
    summary: str = ""
    top_categories: List[Dict[str, Any]] = []
    insights: List[str] = []
    recommendations: List[Dict[str, Any]] = []
    provider: str


class AdviceUsageRequest(BaseModel):
    advice_type: Literal["financial_advice", "goal_suggestion", "expense_analysis"]


class AdviceUsageResponse(BaseModel):
    success: bool
    points_awarded: int
    reason: str
