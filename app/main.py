# app/main.py
import uvicorn
import os
import logging
from datetime import datetime
from fastapi import FastAPI, HTTPException, Form, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.openapi.utils import get_openapi
from sqlalchemy import text

from app.core.config import settings
from app.core.database import engine, Base
from app.core.auth import (
    fastapi_users,
    auth_backend,
    get_user_manager,
    UserManager,
    UserRead,
    UserCreate,
)
from app.api.v1.api import api_router
# Register every table on Base.metadata before create_all
from app.models import (  # noqa: F401
    balance,
    bank,
    expense,
    gig,
    goal,
    income,
    invoice,
    notification,
    quote,
    spending_limit,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Income tracking, 40/30/30 budgeting and AI money advice for service providers.",
    openapi_tags=[
        {"name": "Authentication", "description": "Login, registration, verification and password reset"},
        {"name": "User Management", "description": "Profile, onboarding and plan"},
        {"name": "ai", "description": "AI financial advice with provider fallback and caching"},
        {"name": "voice", "description": "Voice transcripts to expenses, incomes and commands"},
        {"name": "notifications", "description": "Stored and real-time notifications"},
    ],
)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        tags=app.openapi_tags,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "OAuth2PasswordBearer": {
            "type": "oauth2",
            "flows": {
                "password": {
                    "tokenUrl": "/api/v1/auth/jwt/login",
                    "scopes": {}
                }
            }
        },
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer"
        }
    }

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi

# CORS Configuration
origins = [
    settings.FRONTEND_URL,
    "http://localhost:3000",
    "http://localhost:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Anything not turned into an HTTP error by a route ends up here"""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

# ------------------------------------------------------------
# AUTHENTICATION ROUTES
# ------------------------------------------------------------

# JWT Login
app.include_router(
    fastapi_users.get_auth_router(auth_backend),
    prefix="/api/v1/auth/jwt",
    tags=["Authentication"],
)

# Registration
app.include_router(
    fastapi_users.get_register_router(UserRead, UserCreate),
    prefix="/api/v1/auth",
    tags=["Authentication"],
)

# Email verification and password reset routes
app.include_router(
    fastapi_users.get_verify_router(UserRead),
    prefix="/api/v1/auth",
    tags=["Authentication"],
)

app.include_router(
    fastapi_users.get_reset_password_router(),
    prefix="/api/v1/auth",
    tags=["Authentication"],
)


@app.post("/api/v1/auth/verify-email", tags=["Authentication"])
async def verify_email_form(
    token: str = Form(...),
    user_manager: UserManager = Depends(get_user_manager)
):
    """Verification for the link in the signup email, posted as form data"""
    try:
        await user_manager.verify(token)
    except Exception as e:
        logger.error(f"Email verification failed: {str(e)}")
        raise HTTPException(status_code=400, detail="Invalid or expired verification token")
    return {"message": "Email verified successfully"}

# ------------------------------------------------------------
# BUSINESS LOGIC ROUTES
# ------------------------------------------------------------
app.include_router(api_router, prefix="/api/v1")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"{settings.APP_NAME} is running!",
        "version": settings.VERSION
    }


@app.get("/health", tags=["Health"])
async def health_check():
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Database unavailable")

    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT
    }


@app.on_event("startup")
async def on_startup():
    await create_db_and_tables()
    logger.info("✅ Database tables created successfully")
    logger.info(f"✅ Frontend URL: {settings.FRONTEND_URL}")

    configured = [name for name, key in (
        ("OpenAI", settings.OPENAI_API_KEY),
        ("Anthropic", settings.ANTHROPIC_API_KEY),
        ("Perplexity", settings.PERPLEXITY_API_KEY),
    ) if key]
    if configured:
        logger.info(f"✅ AI providers configured: {', '.join(configured)}")
    else:
        logger.warning("⚠️ No AI provider keys configured - AI advice will be unavailable")

    if not settings.plaid_configured:
        logger.warning("⚠️ Plaid not configured - bank linking disabled")
    if not settings.stripe_configured:
        logger.warning("⚠️ Stripe not configured - billing and card payments disabled")

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=False)
