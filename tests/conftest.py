# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Fixtures shared by all tests.
#
# Key features:
# - Environment is configured BEFORE config.settings is imported
# - Every test gets a fresh SQLite database (aiosqlite, temp file)
# - API tests talk to the FastAPI app through httpx.ASGITransport
# =============================================================================

import os
import tempfile

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# config.settings reads the environment at import time

_db_dir = tempfile.mkdtemp(prefix="tea_tasting_tests_")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_db_dir}/test.db"
os.environ["BOT_API_SECRET"] = "test-bot-secret"
os.environ["ADMIN_TELEGRAM_IDS"] = "1000"
os.environ["APP_BASE_URL"] = "https://tea.example.com"
os.environ["REDIS_URL"] = "redis://localhost:6399/0"
os.environ.setdefault("ENVIRONMENT", "test")

import httpx
import pytest

from api import app
from database import AsyncSessionLocal, Base, engine, upsert_user

BOT_HEADERS = {"X-Bot-Secret": "test-bot-secret"}
ADMIN_TELEGRAM_ID = 1000


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
async def db():
    """Session on a freshly created schema; tables are dropped afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Соединения привязаны к event loop теста
    await engine.dispose()


@pytest.fixture
async def user(db):
    """Regular participant."""
    return await upsert_user(db, telegram_id=42, username="tea_lover", full_name="Анна Чайная")


@pytest.fixture
async def admin(db):
    """Administrator (telegram_id from ADMIN_TELEGRAM_IDS)."""
    return await upsert_user(
        db,
        telegram_id=ADMIN_TELEGRAM_ID,
        username="organizer",
        full_name="Организатор",
        make_admin=True,
    )


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
async def client(db):
    """HTTP client for the backend app (lifespan is not started)."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
