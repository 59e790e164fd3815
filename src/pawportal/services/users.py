"""Admin user directory service."""

from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pawportal.models.user import User, UserRole
from pawportal.schemas.user import BulkAction
from pawportal.services.periods import to_utc, utc_now

DEFAULT_SUSPENSION_DAYS = 7


async def get_directory_users(
    db: AsyncSession,
    q: str | None = None,
    role: str | None = None,
) -> list[User]:
    """List non-admin users, newest first.

    ``role`` narrows to one role (``all`` or empty keeps every role, an
    unknown role matches nobody). ``q`` is a case-insensitive substring
    matched against full name, email and id.
    """
    stmt = (
        select(User)
        .where(User.role != UserRole.ADMIN)
        .order_by(User.created_at.desc(), User.id.desc())
    )

    role_filter = (role or "all").strip().lower()
    if role_filter != "all":
        try:
            stmt = stmt.where(User.role == UserRole(role_filter))
        except ValueError:
            return []

    result = await db.execute(stmt)
    users = list(result.scalars().all())

    needle = (q or "").strip().lower()
    if needle:
        users = [
            user
            for user in users
            if needle in f"{user.full_name or ''} {user.email or ''} {user.id}".lower()
        ]
    return users


async def apply_bulk_action(
    db: AsyncSession,
    user_ids: list[int],
    action: BulkAction,
    days: int = DEFAULT_SUSPENSION_DAYS,
    now: datetime | None = None,
) -> list[User]:
    """Apply a verification or suspension action to several users.

    Admin accounts and unknown ids are skipped. Returns the updated users.
    """
    if not user_ids:
        return []

    stmt = select(User).where(User.id.in_(user_ids), User.role != UserRole.ADMIN)
    result = await db.execute(stmt)
    users = list(result.scalars().all())

    moment = to_utc(now) if now is not None else utc_now()
    for user in users:
        if action == BulkAction.VERIFY:
            user.is_verified = True
        elif action == BulkAction.UNVERIFY:
            user.is_verified = False
        elif action == BulkAction.SUSPEND:
            user.is_suspended = True
            # Columns hold naive UTC timestamps
            user.suspended_until = (moment + timedelta(days=days)).replace(tzinfo=None)
        elif action == BulkAction.UNSUSPEND:
            user.is_suspended = False
            user.suspended_until = None

    await db.flush()
    for user in users:
        await db.refresh(user)
    return users
