"""
Centralized Test Configuration.

Each test gets a fresh in-memory SQLite database, a mock Redis and a fake
email sender that records what would have been sent.
"""

import pytest
from datetime import timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event, select, func
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from fleetflow.app.main import app
from fleetflow.app.db.session import get_db, Base
from fleetflow.app.core.redis_client import get_redis
from fleetflow.app.core.jwt import create_access_token
from fleetflow.app.core.security import get_password_hash
from fleetflow.app.models.enums import UserRole
from fleetflow.app.models.user import User
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.fleet_enums import DriverStatus, VehicleStatus
from fleetflow.app.domain.trips.rules import utc_today
from fleetflow.app.services.email import EmailService

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "password123"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self.ttls = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def setex(self, key, ttl, value):
        if self._closed:
            raise ConnectionError("Redis is closed")
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def exists(self, key):
        if self._closed:
            raise ConnectionError("Redis is closed")
        return 1 if key in self.store else 0

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
async def engine():
    """Fresh schema per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def sent_emails(monkeypatch):
    """Replace the Brevo call; each send is recorded as a dict."""
    outbox = []

    async def fake_send(to_email, name, otp, purpose="verification"):
        outbox.append({"to": to_email, "name": name, "otp": otp, "purpose": purpose})

    monkeypatch.setattr(EmailService, "send_otp_email", staticmethod(fake_send))
    return outbox


@pytest.fixture
async def client(session_factory, mock_redis, sent_emails):
    """Async client for testing, wired to the per-test database and Redis."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
def make_user(session_factory):
    """Insert a user and return (user, auth headers)."""
    counter = {"n": 0}

    async def _make_user(role: UserRole = UserRole.DISPATCHER, verified: bool = True, email: str = None):
        counter["n"] += 1
        email = email or f"{role.name.lower()}{counter['n']}@fleetflow.io"
        async with session_factory() as session:
            user = User(
                email=email,
                full_name=f"Test {role.value}",
                hashed_password=get_password_hash(TEST_PASSWORD),
                role=role,
                is_verified=verified,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)

        token = create_access_token({"sub": user.email, "user_id": user.id, "role": user.role.value})
        return user, {"Authorization": f"Bearer {token}"}

    return _make_user


@pytest.fixture
async def manager_headers(make_user):
    _, headers = await make_user(UserRole.MANAGER)
    return headers


@pytest.fixture
async def dispatcher_headers(make_user):
    _, headers = await make_user(UserRole.DISPATCHER)
    return headers


@pytest.fixture
async def analyst_headers(make_user):
    _, headers = await make_user(UserRole.ANALYST)
    return headers


@pytest.fixture
async def safety_headers(make_user):
    _, headers = await make_user(UserRole.SAFETY_OFFICER)
    return headers


@pytest.fixture
def make_vehicle(session_factory):
    counter = {"n": 0}

    async def _make_vehicle(**overrides) -> Vehicle:
        counter["n"] += 1
        fields = {
            "name": f"Truck {counter['n']}",
            "license_plate": f"FF-{counter['n']:04d}",
            "vehicle_type": "Truck",
            "region": "North",
            "max_load_capacity": 5000.0,
            "odometer": 1000.0,
            "acquisition_cost": 50000.0,
            "status": VehicleStatus.AVAILABLE,
        }
        fields.update(overrides)
        async with session_factory() as session:
            vehicle = Vehicle(**fields)
            session.add(vehicle)
            await session.commit()
            await session.refresh(vehicle)
        return vehicle

    return _make_vehicle


@pytest.fixture
def make_driver(session_factory):
    counter = {"n": 0}

    async def _make_driver(**overrides) -> Driver:
        counter["n"] += 1
        fields = {
            "name": f"Driver {counter['n']}",
            "license_number": f"DL-{counter['n']:05d}",
            "license_category": "Truck",
            "license_expiry": utc_today() + timedelta(days=365),
            "status": DriverStatus.OFF_DUTY,
        }
        fields.update(overrides)
        async with session_factory() as session:
            driver = Driver(**fields)
            session.add(driver)
            await session.commit()
            await session.refresh(driver)
        return driver

    return _make_driver


@pytest.fixture
def fetch(session_factory):
    """Load a fresh copy of a row, outside the request sessions."""
    async def _fetch(model, entity_id):
        async with session_factory() as session:
            return await session.get(model, entity_id)

    return _fetch


@pytest.fixture
def count_rows(session_factory):
    async def _count(model, *criteria):
        async with session_factory() as session:
            return (await session.execute(select(func.count(model.id)).where(*criteria))).scalar()

    return _count
