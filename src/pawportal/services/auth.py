"""Authentication service for admin login and token management."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pawportal.core.security import create_access_token, hash_password, verify_password
from pawportal.models.user import User, UserRole
from pawportal.schemas.auth import TokenResponse
from pawportal.services.periods import to_utc, utc_now


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    """Authenticate a user by email and password."""
    stmt = select(User).where(User.email == email)
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()

    if user is None:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user


def create_user_token(user: User) -> TokenResponse:
    """Create a JWT token for an authenticated user."""
    token_data = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
    }
    access_token = create_access_token(data=token_data)
    return TokenResponse(access_token=access_token)


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Get a user by their ID."""
    stmt = select(User).where(User.id == user_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Get a user by their email."""
    stmt = select(User).where(User.email == email)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def create_admin_user(db: AsyncSession, email: str, password: str) -> User:
    """Create an admin user."""
    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name="Administrator",
        role=UserRole.ADMIN,
        is_verified=True,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


def is_currently_suspended(user: User, now: datetime | None = None) -> bool:
    """Return True while a suspension is in force.

    A suspension without ``suspended_until`` lasts until it is lifted.
    """
    if not user.is_suspended:
        return False
    if user.suspended_until is None:
        return True
    moment = to_utc(now) if now is not None else utc_now()
    return to_utc(user.suspended_until) > moment
