import os
import tempfile
import uuid

import pytest
from fastapi import Depends
from httpx import ASGITransport, AsyncClient

# IMPORTANT:
# Set env BEFORE importing app (settings are read at import time)
_tmp_dir = tempfile.mkdtemp(prefix="stackr-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir}/stackr_test.db"
os.environ["SECRET_KEY"] = "stackr-test-secret"
os.environ["AI_CACHE_DIR"] = os.path.join(_tmp_dir, "ai-cache")
os.environ["ENVIRONMENT"] = "test"

# Vendor keys from a local .env must never reach the tests
for _key in (
    "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "PERPLEXITY_API_KEY",
    "PLAID_CLIENT_ID", "PLAID_SECRET",
    "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "STRIPE_PRO_PRICE_ID",
    "SENDGRID_API_KEY",
):
    os.environ[_key] = ""


@pytest.fixture(scope="session")
def app():
    from app.main import app as fastapi_app
    return fastapi_app


@pytest.fixture()
async def db(app):
    from app.core.database import engine, Base, AsyncSessionLocal

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as session:
        yield session
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def create_user(db, **fields):
    from app.core.auth import User

    user = User(
        email=f"u_{uuid.uuid4().hex[:10]}@example.com",
        hashed_password="not-a-real-hash",
        full_name=fields.pop("full_name", "Test Provider"),
        **fields,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture()
async def user(db):
    return await create_user(db)


@pytest.fixture()
async def pro_user(db, user):
    user.subscription_tier = "pro"
    user.subscription_active = True
    db.add(user)
    await db.commit()
    return user


@pytest.fixture()
async def other_user(db):
    return await create_user(db, full_name="Other Provider")


@pytest.fixture()
def login_as(app):
    """Authenticate requests as the given user, loaded in the request's own session."""
    from app.api.deps import get_current_user
    from app.core.auth import User
    from app.core.database import get_async_session

    def _login(target):
        async def _current_user(session=Depends(get_async_session)):
            return await session.get(User, target.id)

        app.dependency_overrides[get_current_user] = _current_user

    yield _login
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(app, user, login_as):
    login_as(user)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def anon_client(app, db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
