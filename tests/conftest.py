"""
Shared test fixtures for the Home Lesson Management test suite.

Every test gets a fresh in-memory SQLite database (aiosqlite + StaticPool)
installed as ``app.state.database``.  Auth is short-circuited: requests act
as the seeded admin unless a test switches to the read-only user.
"""

import os
from typing import AsyncGenerator, Awaitable, Callable

import pytest

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-the-suite-only"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from homelesson.api.v1.deps import get_current_active_user
from homelesson.core.security import get_password_hash
from homelesson.db.session import Database
from homelesson.main import app
from homelesson.models.user import User

ADMIN_EMAIL = "admin@test.local"
ADMIN_PASSWORD = "adminpass123"
READONLY_EMAIL = "viewer@test.local"

# Password hashing is slow; do it once for the whole run
_ADMIN_HASH = get_password_hash(ADMIN_PASSWORD)

_acting_as = {"role": "admin"}


@pytest.fixture(autouse=True)
async def database() -> AsyncGenerator[Database, None]:
    """Fresh schema plus two users (admin id=1, readonly id=2) for every test."""
    db = Database(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await db.create_all()
    async with db.session_factory() as session:
        session.add_all(
            [
                User(id=1, email=ADMIN_EMAIL, hashed_password=_ADMIN_HASH,
                     full_name="Test Admin", role="admin", is_active=True),
                User(id=2, email=READONLY_EMAIL, hashed_password=_ADMIN_HASH,
                     full_name="Test Viewer", role="readonly", is_active=True),
            ]
        )
        await session.commit()

    previous = app.state.database
    app.state.database = db
    _acting_as["role"] = "admin"
    yield db
    app.state.database = previous
    await db.dispose()


# ── Auth Overrides ──────────────────────────────────────────────────
async def _override_get_current_active_user() -> User:
    if _acting_as["role"] == "admin":
        return User(id=1, email=ADMIN_EMAIL, full_name="Test Admin", is_active=True, role="admin")
    return User(id=2, email=READONLY_EMAIL, full_name="Test Viewer", is_active=True, role="readonly")


app.dependency_overrides[get_current_active_user] = _override_get_current_active_user


@pytest.fixture
def as_readonly() -> None:
    """Make subsequent requests in the test act as the read-only user."""
    _acting_as["role"] = "readonly"


@pytest.fixture
def act_as() -> Callable[[str], None]:
    """Switch the acting role ('admin' or 'readonly') mid-test."""

    def _switch(role: str) -> None:
        _acting_as["role"] = role

    return _switch


@pytest.fixture
def real_auth():
    """Drop the auth override so requests must carry a real token."""
    app.dependency_overrides.pop(get_current_active_user, None)
    yield
    app.dependency_overrides[get_current_active_user] = _override_get_current_active_user


# ── Clients & sessions ──────────────────────────────────────────────
@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with database.session_factory() as session:
        yield session


# ── Builders ────────────────────────────────────────────────────────
@pytest.fixture
def make_teacher(async_client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    async def _make(name: str, **fields) -> dict:
        body = {"name": name, "teaching_allowance": 20000, "transport_allowance": 12000, **fields}
        resp = await async_client.post("/api/teachers", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make


@pytest.fixture
def make_slots(async_client: AsyncClient) -> Callable[..., Awaitable[list[dict]]]:
    """Replace ``day`` with ``count`` lesson slots for one teacher; returns the stored slots."""

    async def _make(teacher_id: int, day: int = 0, count: int = 1, subject_id=None) -> list[dict]:
        entries = [
            {
                "day_of_week": day,
                "time_slot": f"{8 + i:02d}:00-{8 + i:02d}:40",
                "teacher_id": teacher_id,
                "subject_id": subject_id,
            }
            for i in range(count)
        ]
        resp = await async_client.put(f"/api/timetable/day/{day}", json=entries)
        assert resp.status_code == 200, resp.text
        listing = await async_client.get(f"/api/timetable/day/{day}")
        return listing.json()

    return _make


@pytest.fixture
def mark(async_client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    async def _mark(teacher_id: int, slot: dict, status: str, week: int = 10, year: int = 2025) -> dict:
        resp = await async_client.post(
            "/api/attendance",
            json={
                "week_number": week,
                "year": year,
                "day_of_week": slot["day_of_week"],
                "timetable_id": slot["id"],
                "teacher_id": teacher_id,
                "status": status,
            },
        )
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _mark
