"""Income report schemas."""

from datetime import date, datetime

from pydantic import BaseModel


class IncomeRowResponse(BaseModel):
    """An approved payment in the income report."""

    id: int
    created_at: datetime
    amount: int
    credits: int
    reference: str | None
    user_id: int | None
    user_email: str
    user_name: str | None

    model_config = {"from_attributes": True}


class IncomeSummaryResponse(BaseModel):
    """Totals over the report rows."""

    count: int
    amount: int
    credits: int

    model_config = {"from_attributes": True}


class IncomeReportResponse(BaseModel):
    """Income report for an optional date range."""

    start_date: date | None
    end_date: date | None
    period_label: str
    generated_at: datetime
    summary: IncomeSummaryResponse
    rows: list[IncomeRowResponse]
