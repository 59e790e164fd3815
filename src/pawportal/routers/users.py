"""Admin user directory router."""

from fastapi import APIRouter, Query

from pawportal.core.deps import AdminUser, DbSession
from pawportal.schemas.user import (
    BulkActionRequest,
    BulkActionResponse,
    DirectoryUserListResponse,
    DirectoryUserResponse,
)
from pawportal.services import users as users_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=DirectoryUserListResponse)
async def list_users(
    admin: AdminUser,
    db: DbSession,
    q: str | None = Query(None, description="Search name, email or id"),
    role: str = Query("all", description="Role filter, or 'all'"),
) -> DirectoryUserListResponse:
    """List non-admin users (admin only)."""
    users = await users_service.get_directory_users(db, q=q, role=role)
    return DirectoryUserListResponse(
        items=[DirectoryUserResponse.model_validate(user) for user in users]
    )


@router.post("/bulk", response_model=BulkActionResponse)
async def bulk_update_users(
    admin: AdminUser,
    db: DbSession,
    request: BulkActionRequest,
) -> BulkActionResponse:
    """Verify, unverify, suspend or unsuspend several users (admin only)."""
    users = await users_service.apply_bulk_action(
        db=db,
        user_ids=request.user_ids,
        action=request.action,
        days=request.days,
    )
    await db.commit()
    return BulkActionResponse(
        updated=len(users),
        items=[DirectoryUserResponse.model_validate(user) for user in users],
    )
