"""Admin analytics dashboard endpoint."""

from fastapi import APIRouter, Query

from pawportal.core.deps import AdminUser, DashboardSourceDep
from pawportal.schemas.dashboard import DashboardResponse
from pawportal.services.dashboard import build_dashboard_report

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    admin: AdminUser,
    source: DashboardSourceDep,
    period: str = Query("weekly", description="weekly (days of week) or monthly (daily points)"),
    month: str | None = Query(None, description="Month as YYYY-MM, defaults to current month"),
    week: str | None = Query(None, description="ISO week as YYYY-Www within the month"),
) -> DashboardResponse:
    """
    Get the admin dashboard report.

    Series are always complete: every day or weekday of the selected period
    is present, zero when nothing happened. Invalid month or week values fall
    back to the current month and its last week.
    """
    report = await build_dashboard_report(source, period=period, month=month, week=week)
    return DashboardResponse.model_validate(report)
