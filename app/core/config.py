# app/core/config.py

from pathlib import Path
from pydantic import EmailStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the project root directory (where .env should be located)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

AI_PROVIDERS = ("openai", "anthropic", "perplexity")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra="ignore"
    )

    # App Configuration
    APP_NAME: str = "Stackr API"
    DEBUG: bool = False
    VERSION: str = "1.0.0"

    # Database Configuration
    DATABASE_URL: str

    # JWT / Security Configuration
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080

    # CORS / links
    FRONTEND_URL: str = "http://localhost:5173"
    BACKEND_BASE_URL: str = "http://localhost:8000"

    # SendGrid Configuration
    SENDGRID_API_KEY: str = ""
    EMAIL_FROM: EmailStr = "noreply@stackr.app"
    EMAIL_FROM_NAME: str = "Stackr Team"

    # AI providers
    OPENAI_API_KEY: str = ""
    ANTHROPIC_API_KEY: str = ""
    PERPLEXITY_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o"
    ANTHROPIC_MODEL: str = "claude-3-7-sonnet-20250219"
    PERPLEXITY_MODEL: str = "llama-3.1-sonar-small-128k-online"

    # AI service defaults (mutable at runtime through /ai/settings)
    AI_DEFAULT_PROVIDER: str = "openai"
    AI_AUTO_FALLBACK: bool = True
    AI_MAX_RETRIES: int = 3
    AI_CACHE_ENABLED: bool = True
    AI_CACHE_EXPIRY_SECONDS: int = 60 * 60 * 24 * 7
    AI_CACHE_DIR: str = str(BASE_DIR / ".cache")
    AI_REQUEST_TIMEOUT: float = 60.0

    # Plaid
    PLAID_CLIENT_ID: str = ""
    PLAID_SECRET: str = ""
    PLAID_ENV: str = "sandbox"
    PLAID_CLIENT_NAME: str = "Stackr"

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_PRO_PRICE_ID: str = ""

    # Optional: Environment
    ENVIRONMENT: str = "development"

    @field_validator("AI_DEFAULT_PROVIDER")
    @classmethod
    def validate_provider(cls, value: str) -> str:
        value = value.lower()
        if value not in AI_PROVIDERS:
            raise ValueError(f"AI_DEFAULT_PROVIDER must be one of {', '.join(AI_PROVIDERS)}")
        return value

    @property
    def is_supabase(self) -> bool:
        """Check if we're using Supabase database"""
        return any(d in self.DATABASE_URL for d in [
            "supabase.co",
            "supabase.com",
            "pooler.supabase",
        ])

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def plaid_base_url(self) -> str:
        return f"https://{self.PLAID_ENV}.plaid.com"

    @property
    def plaid_configured(self) -> bool:
        return bool(self.PLAID_CLIENT_ID and self.PLAID_SECRET)

    @property
    def stripe_configured(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY)


# Create a global settings instance
settings = Settings()
