import pytest
from datetime import datetime, timedelta
from uuid import uuid4
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from app.auth.middleware import JWTPayload, verify_token
from app.container import build_services
from app.db.base import Base
from app.db.models import FeedbackSession
from app.main import create_app

# In-memory SQLite shared by every connection of a test
TEST_DATABASE_URL = "sqlite+aiosqlite://"

MANAGER_PERMISSIONS = [
    "statistics:read",
    "reviews:read",
    "report:read",
    "report:generate",
    "employee:manage",
    "settings:read",
    "settings:manage",
    "feedback-session:sweep",
]


@pytest.fixture(scope="function")
async def engine():
    """Create a fresh database for each test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def services(session_factory, tmp_path):
    return build_services(session_factory, reports_dir=tmp_path / "reports")


@pytest.fixture
def app(services):
    return create_app(services)


@pytest.fixture(scope="function")
async def client(app):
    """Create a test client without authentication."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def mock_jwt_payload():
    """Create a mock JWT payload for a pharmacy manager."""
    return JWTPayload(
        user_id="123e4567-e89b-12d3-a456-426614174000",
        email="manager@example.com",
        roles=["manager"],
        permissions=MANAGER_PERMISSIONS,
    )


@pytest.fixture
def auth_client(app, client, mock_jwt_payload):
    """Test client whose bearer token always resolves to the mock manager."""
    app.dependency_overrides[verify_token] = lambda: mock_jwt_payload
    client.headers["Authorization"] = "Bearer mock_token"
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def add_sessions(session_factory):
    """Insert feedback sessions directly, bypassing the service layer."""
    async def _add(*sessions: FeedbackSession):
        async with session_factory() as db:
            db.add_all(sessions)
            await db.commit()
        return sessions
    return _add


def _build_session(
    last_active_at: datetime,
    device_id: str = "kiosk-1",
    pharmacy_rating: int | None = None,
    employee_ratings: list | None = None,
    status: str = "active",
    **fields,
) -> FeedbackSession:
    """Build a feedback session whose activity happened at last_active_at"""
    return FeedbackSession(
        session_id=fields.pop("session_id", None) or str(uuid4()),
        device_id=device_id,
        pharmacy_rating=pharmacy_rating,
        employee_ratings=employee_ratings or [],
        status=status,
        completed=status == "completed",
        started_at=last_active_at - timedelta(minutes=1),
        last_active_at=last_active_at,
        **fields,
    )


@pytest.fixture
def make_session():
    return _build_session
