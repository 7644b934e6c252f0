"""
Test configuration and fixtures for the Lead CRM API.

Every test runs against a freshly created schema in a throwaway database.
TEST_DATABASE_URL selects a real database; otherwise a temporary SQLite
file is used.
"""

import itertools
import os
import tempfile

test_db_url = os.getenv("TEST_DATABASE_URL")
if test_db_url:
    if "postgresql://" in test_db_url and "asyncpg" not in test_db_url:
        test_db_url = test_db_url.replace("postgresql://", "postgresql+asyncpg://")
    os.environ["DATABASE_URL"] = test_db_url
else:
    test_db_fd, test_db_path = tempfile.mkstemp(suffix=".db")
    os.close(test_db_fd)
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db_path}"

os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from leadcrm import models  # noqa: F401  registers tables
from leadcrm.database import init_db, drop_db, get_sessionmaker
from leadcrm.core.security import create_session_token, get_password_hash
from leadcrm.models.lead import Lead
from leadcrm.models.user import User
from leadcrm.services.auth_service import session_payload

PASSWORD = "TestPass123"


@pytest_asyncio.fixture
async def db():
    """Fresh schema and a session for seeding."""
    await drop_db()
    await init_db()
    async with get_sessionmaker()() as session:
        yield session
    await drop_db()


@pytest_asyncio.fixture
async def client(db):
    """In-process HTTP client for the app."""
    from leadcrm.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client


async def _create_user(session, email: str, role: str, name: str) -> User:
    user = User(
        email=email,
        password_hash=get_password_hash(PASSWORD),
        full_name=name,
        role=role,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin(db) -> User:
    return await _create_user(db, "admin@example.com", "admin", "Ada Admin")


@pytest_asyncio.fixture
async def sales_a(db) -> User:
    return await _create_user(db, "alice@example.com", "sales", "Alice Seller")


@pytest_asyncio.fixture
async def sales_b(db) -> User:
    # Legacy role spelling, still a sales user
    return await _create_user(db, "bob@example.com", "sales_user", "Bob Seller")


@pytest.fixture
def auth_headers():
    """Build request headers carrying a session token for a user."""
    def _headers(user: User) -> dict:
        token = create_session_token(session_payload(user))
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def make_leads(db):
    """Insert leads directly, in the given order. Emails stay unique per test."""
    numbers = itertools.count()

    async def _make(count: int, **fields) -> list:
        leads = []
        for _ in range(count):
            i = next(numbers)
            lead = Lead(email=f"lead{i}@example.com", full_name=f"Lead {i}", **fields)
            db.add(lead)
            await db.commit()
            await db.refresh(lead)
            leads.append(lead)
        return leads
    return _make


@pytest.fixture
def fetch_lead():
    """Read a lead back through a new session."""
    async def _fetch(lead_id) -> Lead:
        async with get_sessionmaker()() as session:
            return await session.get(Lead, lead_id)
    return _fetch
