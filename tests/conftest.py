"""Pytest configuration and fixtures for backend tests."""

from collections.abc import AsyncGenerator
from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pawportal.core.security import create_access_token, hash_password
from pawportal.models import Base
from pawportal.models.application import Application
from pawportal.models.payment_proof import PaymentProof, PaymentProofStatus
from pawportal.models.pet import Pet
from pawportal.models.user import User, UserRole

# Test database URL - use SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(engine, db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client with dependency overrides."""
    from pawportal.core.database import get_db
    from pawportal.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# User Fixtures
# ============================================================================


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin user for testing."""
    user = User(
        email="admin@test.com",
        password_hash=hash_password("adminpass123"),
        full_name="Admin",
        role=UserRole.ADMIN,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def adopter_user(db_session: AsyncSession) -> User:
    """Create an adopter user for testing."""
    user = User(
        email="adopter@test.com",
        password_hash=hash_password("adopterpass123"),
        full_name="Ada Adopter",
        role=UserRole.ADOPTER,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _token_for(user: User) -> str:
    return create_access_token(
        data={
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
        }
    )


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    """HTTP headers with admin authentication."""
    return {"Authorization": f"Bearer {_token_for(admin_user)}"}


@pytest.fixture
def adopter_headers(adopter_user: User) -> dict[str, str]:
    """HTTP headers with adopter authentication."""
    return {"Authorization": f"Bearer {_token_for(adopter_user)}"}


# ============================================================================
# Factory Functions
# ============================================================================


class UserFactory:
    """Factory for creating test users."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session
        self._counter = 0

    async def create(
        self,
        email: str | None = None,
        full_name: str | None = None,
        role: UserRole = UserRole.ADOPTER,
        created_at: datetime | None = None,
    ) -> User:
        """Create a user with the given attributes."""
        self._counter += 1
        if email is None:
            email = f"user{self._counter}@test.com"

        user = User(
            email=email,
            password_hash=hash_password("testpass123"),
            full_name=full_name,
            role=role,
        )
        if created_at is not None:
            user.created_at = created_at
        self.db_session.add(user)
        await self.db_session.commit()
        await self.db_session.refresh(user)
        return user


class PetFactory:
    """Factory for creating test pets."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session
        self._counter = 0

    async def create(
        self,
        breed: str | None = "Aspin",
        status: str = "available",
        name: str | None = None,
    ) -> Pet:
        """Create a pet with the given attributes."""
        self._counter += 1
        pet = Pet(name=name or f"Pet {self._counter}", breed=breed, status=status)
        self.db_session.add(pet)
        await self.db_session.commit()
        await self.db_session.refresh(pet)
        return pet


class ApplicationFactory:
    """Factory for creating test adoption applications."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def create(
        self,
        pet: Pet,
        status: str = "pending",
        created_at: datetime | None = None,
    ) -> Application:
        """Create an application for a pet."""
        application = Application(pet_id=pet.id, status=status)
        if created_at is not None:
            application.created_at = created_at
        self.db_session.add(application)
        await self.db_session.commit()
        await self.db_session.refresh(application)
        return application


class PaymentProofFactory:
    """Factory for creating test payment proofs."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def create(
        self,
        user: User | None = None,
        amount: int = 20,
        status: PaymentProofStatus = PaymentProofStatus.APPROVED,
        reference: str | None = None,
        created_at: datetime | None = None,
    ) -> PaymentProof:
        """Create a payment proof with the given attributes."""
        proof = PaymentProof(
            user_id=user.id if user else None,
            amount=amount,
            status=status,
            reference=reference,
        )
        if created_at is not None:
            proof.created_at = created_at
        self.db_session.add(proof)
        await self.db_session.commit()
        await self.db_session.refresh(proof)
        return proof


@pytest.fixture
def user_factory(db_session: AsyncSession) -> UserFactory:
    """Factory fixture for creating test users."""
    return UserFactory(db_session)


@pytest.fixture
def pet_factory(db_session: AsyncSession) -> PetFactory:
    """Factory fixture for creating test pets."""
    return PetFactory(db_session)


@pytest.fixture
def application_factory(db_session: AsyncSession) -> ApplicationFactory:
    """Factory fixture for creating test applications."""
    return ApplicationFactory(db_session)


@pytest.fixture
def payment_proof_factory(db_session: AsyncSession) -> PaymentProofFactory:
    """Factory fixture for creating test payment proofs."""
    return PaymentProofFactory(db_session)
