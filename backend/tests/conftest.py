"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.redis_client import get_redis
from backend.app.core.jwt import create_access_token
from backend.app.core.security import get_password_hash
from backend.app.models.department import Department
from backend.app.models.user import User
from backend.app.models.enums import UserRole
import backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "secret123"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self.expiry = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def incr(self, key):
        self.store[key] = int(self.store.get(key, 0)) + 1
        return self.store[key]

    async def expire(self, key, seconds):
        if key not in self.store:
            return False
        self.expiry[key] = seconds
        return True

    async def ttl(self, key):
        if key not in self.store:
            return -2
        return self.expiry.get(key, -1)

    async def flushdb(self):
        if not self._closed:
            self.store = {}
            self.expiry = {}

    async def aclose(self):
        self._closed = True
        self.store = {}
        self.expiry = {}

# Redis Fixture (Session Scope)
@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()

@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Apply overrides once for the session.
    Global override is safer here than per-test override to avoid app state flux.
    """

    # Patch the global redis client used by Middleware
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield

    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client

@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


def auth_headers(user: User) -> dict:
    """Bearer header for a user, signed the same way login signs tokens."""
    token = create_access_token(data={
        "sub": str(user.id),
        "user_id": user.id,
        "email": user.email,
        "role": user.user_role.value,
    })
    return {"Authorization": f"Bearer {token}"}


async def create_user(db, coyno_id: str, role: UserRole, department_id: int = None, **kwargs) -> User:
    user = User(
        coyno_id=coyno_id,
        email=kwargs.pop("email", f"{coyno_id.lower()}@fleetco.com"),
        password_hash=get_password_hash(kwargs.pop("password", TEST_PASSWORD)),
        first_name=kwargs.pop("first_name", coyno_id.title()),
        last_name=kwargs.pop("last_name", "Tester"),
        department_id=department_id,
        user_role=role,
        is_active=kwargs.pop("is_active", True),
        **kwargs,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def department(db_session):
    dept = Department(code="OPS", name="Operations", description="Field operations")
    db_session.add(dept)
    await db_session.commit()
    await db_session.refresh(dept)
    return dept

@pytest.fixture
async def admin_user(db_session, department):
    return await create_user(db_session, "ADMIN001", UserRole.ADMIN, department.id)

@pytest.fixture
async def manager_user(db_session, department):
    return await create_user(db_session, "MGR001", UserRole.MANAGER, department.id)

@pytest.fixture
async def driver_user(db_session, department):
    return await create_user(db_session, "DRV001", UserRole.DRIVER, department.id)

@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)

@pytest.fixture
def manager_headers(manager_user):
    return auth_headers(manager_user)

@pytest.fixture
def driver_headers(driver_user):
    return auth_headers(driver_user)

@pytest.fixture
def make_headers():
    return auth_headers

@pytest.fixture
def user_factory(db_session):
    async def _create(coyno_id: str, role: UserRole = UserRole.DRIVER, department_id: int = None, **kwargs):
        return await create_user(db_session, coyno_id, role, department_id, **kwargs)
    return _create
