"""Core application components package."""

from .config import settings
from .database import get_db
from .deps import (
    AdminUser,
    CurrentUser,
    DashboardSourceDep,
    DbSession,
    get_current_user,
    get_dashboard_source,
    require_admin,
)
from .security import create_access_token, decode_access_token, hash_password, verify_password
from .version import get_version

__all__ = [
    "settings",
    "get_db",
    "AdminUser",
    "CurrentUser",
    "DashboardSourceDep",
    "DbSession",
    "get_current_user",
    "get_dashboard_source",
    "require_admin",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "verify_password",
    "get_version",
]
