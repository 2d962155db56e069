"""Test configuration and fixtures."""

import os

# Settings are read at import time; point them at an in-memory database first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BEARER_TOKEN_SECRET", "test-secret")
os.environ.setdefault("ENVIRONMENT", "development")

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tourdesk.core.clock import today, utcnow
from tourdesk.core.config import settings
from tourdesk.core.database import Base, build_engine
from tourdesk.core.dependencies import get_event_dispatcher, get_gateway
from tourdesk.core.exceptions import GatewayError
from tourdesk.core.session import TOKEN_ALGORITHM, SessionContext
from tourdesk.gateway import Gateway, SqlAlchemyGateway, Table
from tourdesk.models import *  # noqa: F403 - Import all models
from tourdesk.models.booking import BookingStatus
from tourdesk.models.tour import TourType
from tourdesk.services.notifications import BookingEventDispatcher, CancellationNotifier, NotificationResult

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

OPERATOR_ID = UUID("00000000-0000-4000-8000-000000000001")
CUSTOMER_ID = UUID("00000000-0000-4000-8000-000000000002")
OTHER_CUSTOMER_ID = UUID("00000000-0000-4000-8000-000000000003")


def make_token(
    user_id: UUID,
    role: str = "user",
    email: Optional[str] = None,
    expires_in: int = 3600,
    metadata: Optional[dict] = None,
) -> str:
    """Sign a bearer token the way the auth provider would."""
    payload = {
        "sub": str(user_id),
        "role": role,
        "exp": int((datetime.now() + timedelta(seconds=expires_in)).timestamp()),
    }
    if email:
        payload["email"] = email
    if metadata is not None:
        payload["user_metadata"] = metadata
    return jwt.encode(payload, settings.bearer_token_secret, algorithm=TOKEN_ALGORITHM)


class RecordingNotifier(CancellationNotifier):
    """Notifier double that records calls and can be told to fail."""

    def __init__(self):
        self.calls: list[UUID] = []
        self.fail_with: Optional[str] = None
        self.raise_with: Optional[Exception] = None

    async def notify_cancellation(self, booking_id: UUID) -> NotificationResult:
        self.calls.append(booking_id)
        if self.raise_with is not None:
            raise self.raise_with
        if self.fail_with is not None:
            return NotificationResult(ok=False, error=self.fail_with)
        return NotificationResult(ok=True)


class FaultyGateway(Gateway):
    """Delegating gateway that fails chosen (method, table) calls and records every call."""

    def __init__(self, inner: Gateway, faults: set[tuple[str, Table]]):
        self.inner = inner
        self.faults = set(faults)
        self.calls: list[tuple[str, Table]] = []

    def _check(self, method: str, table: Table) -> None:
        self.calls.append((method, table))
        if (method, table) in self.faults:
            raise GatewayError(detail=f"injected {method} failure", operation=method, table=table.value)

    async def list(self, table, filters=(), order=None, limit=None):
        self._check("list", table)
        return await self.inner.list(table, filters, order, limit)

    async def get(self, table, row_id):
        self._check("get", table)
        return await self.inner.get(table, row_id)

    async def insert(self, table, row):
        self._check("insert", table)
        return await self.inner.insert(table, row)

    async def insert_many(self, table, rows):
        self._check("insert_many", table)
        return await self.inner.insert_many(table, rows)

    async def update(self, table, row_id, patch, expected=()):
        self._check("update", table)
        return await self.inner.update(table, row_id, patch, expected)

    async def delete(self, table, row_id):
        self._check("delete", table)
        return await self.inner.delete(table, row_id)

    async def delete_where(self, table, filters):
        self._check("delete_where", table)
        return await self.inner.delete_where(table, filters)


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = build_engine(TEST_DATABASE_URL)

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def gateway(session_factory):
    """Gateway over the test database."""
    return SqlAlchemyGateway(session_factory)


@pytest.fixture
def make_faulty_gateway(gateway):
    """Build a gateway that fails the given (method, table) calls."""
    def factory(*faults: tuple[str, Table]) -> FaultyGateway:
        return FaultyGateway(gateway, set(faults))
    return factory


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def dispatcher(notifier):
    return BookingEventDispatcher(notifier)


@pytest_asyncio.fixture(scope="function")
async def test_app(gateway, dispatcher):
    """Application wired to the test database and the recording notifier."""
    from tourdesk.main import create_app

    app = create_app()
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_event_dispatcher] = lambda: dispatcher

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def operator_headers():
    return {"Authorization": f"Bearer {make_token(OPERATOR_ID, role='admin', email='ops@tourdesk.dev')}"}


@pytest.fixture
def customer_headers():
    return {"Authorization": f"Bearer {make_token(CUSTOMER_ID, role='user', email='ana@example.com')}"}


@pytest.fixture
def other_customer_headers():
    return {"Authorization": f"Bearer {make_token(OTHER_CUSTOMER_ID, role='user', email='ben@example.com')}"}


@pytest.fixture
def customer_session():
    return SessionContext(user_id=CUSTOMER_ID, email="ana@example.com", role="user", access_token="token")


@pytest.fixture
def other_customer_session():
    return SessionContext(user_id=OTHER_CUSTOMER_ID, email="ben@example.com", role="user", access_token="token")


@pytest.fixture
def sample_tour_data():
    """Sample tour draft for testing."""
    return {
        "title": "Oslob Whale Shark Encounter",
        "price": "1000",
        "duration": "10 hours",
        "image": "https://images.example.com/oslob.jpg",
        "sub_images": [],
        "type": "regular",
        "location": "Oslob",
        "max_capacity": 10,
        "available": True,
        "features": [{"text": "Hotel pickup", "available": True}],
    }


@pytest_asyncio.fixture(scope="function")
async def customer_profile(gateway):
    return await gateway.insert(Table.PROFILES, {
        "id": CUSTOMER_ID,
        "full_name": "Ana Santos",
        "role": "user",
        "contact_email": "ana@example.com",
    })


@pytest.fixture
def make_tour(gateway):
    """Insert a tour row directly, bypassing catalog validation."""
    async def factory(**overrides: Any):
        values = {
            "title": "Oslob Whale Shark Encounter",
            "price": Decimal("1000"),
            "duration": "10 hours",
            "image": "https://images.example.com/oslob.jpg",
            "type": TourType.REGULAR,
            "location": "Oslob",
            "max_capacity": 10,
            "available": True,
            "features": [],
        }
        values.update(overrides)
        return await gateway.insert(Table.TOURS, values)
    return factory


@pytest_asyncio.fixture(scope="function")
async def tour(make_tour):
    return await make_tour()


@pytest.fixture
def make_booking(gateway):
    """Insert a booking row directly in any status."""
    async def factory(tour, **overrides: Any):
        people = overrides.pop("number_of_people", 3)
        values = {
            "id": uuid4(),
            "created_at": utcnow(),
            "user_id": CUSTOMER_ID,
            "tour_id": tour.id,
            "booking_date": today() + timedelta(days=14),
            "number_of_people": people,
            "total_price": tour.price * people,
            "status": BookingStatus.PENDING,
            "contact_email": "ana@example.com",
        }
        values.update(overrides)
        return await gateway.insert(Table.BOOKINGS, values)
    return factory


@pytest.fixture
def future_date() -> date:
    return today() + timedelta(days=30)
