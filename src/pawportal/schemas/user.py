"""Admin user directory schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from pawportal.models.user import UserRole


class BulkAction(str, Enum):
    """Actions an admin can apply to several users at once."""

    VERIFY = "verify"
    UNVERIFY = "unverify"
    SUSPEND = "suspend"
    UNSUSPEND = "unsuspend"


class DirectoryUserResponse(BaseModel):
    """A row of the admin user table."""

    id: int
    full_name: str | None
    email: str
    role: UserRole
    is_verified: bool
    is_suspended: bool
    suspended_until: datetime | None
    created_at: datetime
    id_image_url: str | None

    model_config = {"from_attributes": True}


class DirectoryUserListResponse(BaseModel):
    """Response schema for the admin user table."""

    items: list[DirectoryUserResponse]


class BulkActionRequest(BaseModel):
    """Request schema for a bulk user action."""

    action: BulkAction
    user_ids: list[int] = Field(..., min_length=1)
    days: int = Field(7, ge=1, le=365)


class BulkActionResponse(BaseModel):
    """Users changed by a bulk action."""

    updated: int
    items: list[DirectoryUserResponse]
