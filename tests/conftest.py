"""Test configuration and fixtures"""

from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from fuelops.main import app
from fuelops.database import Base, get_db
from fuelops.models.user import User, UserRole
from fuelops.api.auth import get_password_hash, create_access_token
from fuelops.audit import Actor, EntityType, MutationInterceptor


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


async def _make_user(db, email, role, first_name, last_name):
    user = User(
        id=uuid4(),
        email=email,
        hashed_password=get_password_hash("testpass123"),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def test_admin_user(test_db):
    """Create an admin user"""
    return await _make_user(test_db, "admin@example.com", UserRole.ADMIN, "Anna", "Admin")


@pytest.fixture
async def test_manager(test_db):
    """Create a manager user"""
    return await _make_user(test_db, "manager@example.com", UserRole.MANAGER, "Ivan", "Petrov")


@pytest.fixture
async def test_viewer(test_db):
    """Create a read-only user"""
    return await _make_user(test_db, "viewer@example.com", UserRole.VIEWER, "Olga", "Viewer")


@pytest.fixture
def manager_actor(test_manager):
    return Actor.from_user(test_manager, ip_address="10.0.0.1", user_agent="pytest")


@pytest.fixture
def admin_actor(test_admin_user):
    return Actor.from_user(test_admin_user)


@pytest.fixture
async def test_customer(test_db, manager_actor):
    """Create a customer through the audited write path"""
    mutation = await MutationInterceptor(test_db).create(
        EntityType.CUSTOMER,
        {
            "name": "Northern Fuel LLC",
            "inn": "7701234567",
            "contact_person": "Sergey Ivanov",
            "phone": "+7 495 000-00-00",
            "module": "wholesale",
        },
        manager_actor,
    )
    return mutation.entity


@pytest.fixture
async def test_tariff(test_db, manager_actor):
    """Create a delivery tariff priced at 100 per kg"""
    mutation = await MutationInterceptor(test_db).create(
        EntityType.DELIVERY_COST,
        {
            "carrier_name": "TransOil",
            "from_entity_type": "base",
            "from_entity_id": uuid4(),
            "from_location": "Base No. 1",
            "to_entity_type": "warehouse",
            "to_entity_id": uuid4(),
            "to_location": "Warehouse North",
            "cost_per_kg": Decimal("100"),
            "distance": Decimal("250.5"),
        },
        manager_actor,
    )
    return mutation.entity


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def manager_client(client, test_manager):
    """Create manager authenticated test client"""
    token = create_access_token(test_manager)
    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest.fixture
async def admin_client(client, test_admin_user):
    """Create admin authenticated test client"""
    token = create_access_token(test_admin_user)
    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest.fixture
async def viewer_client(client, test_viewer):
    """Create read-only authenticated test client"""
    token = create_access_token(test_viewer)
    client.headers["Authorization"] = f"Bearer {token}"
    return client
