"""
Pytest configuration and fixtures.
"""

from decimal import Decimal
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

import app.models  # noqa: F401
from app.core.database import Base, get_db
from app.core.security import get_password_hash
from app.main import app
from app.models.lens import Lens
from app.models.patient import Patient
from app.models.user import User, UserRole


@pytest.fixture
async def test_engine(tmp_path):
    """Create a fresh SQLite database for each test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database session override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_user(
    db_session: AsyncSession,
    email: str,
    role: UserRole = UserRole.RECEPTIONIST,
) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash("testpassword123"),
        full_name="Test User",
        role=role,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


async def login(client: AsyncClient, email: str) -> dict:
    response = await client.post(
        "/api/v1/auth/login",
        json={
            "email": email,
            "password": "testpassword123",
        },
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a receptionist."""
    return await create_user(db_session, "test@example.com")


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an administrator."""
    return await create_user(db_session, "admin@example.com", UserRole.ADMIN)


@pytest.fixture
async def auth_headers(client: AsyncClient, test_user: User) -> dict:
    return await login(client, test_user.email)


@pytest.fixture
async def admin_headers(client: AsyncClient, admin_user: User) -> dict:
    return await login(client, admin_user.email)


@pytest.fixture
async def auth_client(
    client: AsyncClient,
    auth_headers: dict,
) -> AsyncClient:
    """Create authenticated test client."""
    client.headers.update(auth_headers)
    return client


@pytest.fixture
async def lens(db_session: AsyncSession) -> Lens:
    lens = Lens(
        identifier="PRG-1.67",
        description="Progresivo alto índice",
        brand="Essilor",
        price=Decimal("100.00"),
    )
    db_session.add(lens)
    await db_session.commit()
    await db_session.refresh(lens)
    return lens


@pytest.fixture
async def other_lens(db_session: AsyncSession) -> Lens:
    lens = Lens(
        identifier="MONO-1.50",
        description="Monofocal",
        brand="Hoya",
        price=Decimal("150.00"),
    )
    db_session.add(lens)
    await db_session.commit()
    await db_session.refresh(lens)
    return lens


@pytest.fixture
async def patient(db_session: AsyncSession) -> Patient:
    patient = Patient(
        first_name="Ana",
        last_name="Gómez",
        identification="1020304050",
        phone="3001234567",
        email="ana@example.com",
    )
    db_session.add(patient)
    await db_session.commit()
    await db_session.refresh(patient)
    return patient
