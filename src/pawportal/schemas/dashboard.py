"""Admin dashboard schemas."""

from pydantic import BaseModel

from pawportal.services.dashboard import ReportPeriod


class SeriesPoint(BaseModel):
    """A single labelled value in a chart series."""

    label: str
    value: int

    model_config = {"from_attributes": True}


class DashboardKpisResponse(BaseModel):
    """Headline KPI figures."""

    total_pets: int
    available_pets: int
    pending_applications: int
    approval_rate: int
    approved_applications: int
    total_users: int

    model_config = {"from_attributes": True}


class DashboardResponse(BaseModel):
    """Complete dashboard payload for one period selection."""

    period: ReportPeriod
    month: str
    week: str
    week_options: list[str]
    month_options: list[str]
    users_series: list[SeriesPoint]
    approved_series: list[SeriesPoint]
    users_total: int
    approved_total: int
    weekly_users: list[SeriesPoint]
    weekly_approved: list[SeriesPoint]
    kpis: DashboardKpisResponse
    top_breeds: list[SeriesPoint]
    degraded: list[str]

    model_config = {"from_attributes": True}
