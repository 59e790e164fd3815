"""Printable income report endpoints."""

from datetime import date, datetime, timezone

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from pawportal.core.deps import AdminUser, DbSession
from pawportal.schemas.income import (
    IncomeReportResponse,
    IncomeRowResponse,
    IncomeSummaryResponse,
)
from pawportal.services import income as income_service

router = APIRouter(prefix="/api/income", tags=["income"])


async def _load_rows(
    db: DbSession, start_date: date | None, end_date: date | None
) -> list[income_service.IncomeRow]:
    rows = await income_service.get_income_rows(db)
    return income_service.filter_income_rows(rows, start_date, end_date)


@router.get("", response_model=IncomeReportResponse)
async def get_income_report(
    admin: AdminUser,
    db: DbSession,
    start_date: date | None = Query(None, description="First day to include"),
    end_date: date | None = Query(None, description="Last day to include"),
) -> IncomeReportResponse:
    """Get approved payments and their totals (admin only)."""
    rows = await _load_rows(db, start_date, end_date)
    summary = income_service.summarize_income(rows)
    return IncomeReportResponse(
        start_date=start_date,
        end_date=end_date,
        period_label=income_service.period_label(start_date, end_date),
        generated_at=datetime.now(timezone.utc),
        summary=IncomeSummaryResponse.model_validate(summary),
        rows=[IncomeRowResponse.model_validate(row) for row in rows],
    )


@router.get("/export/csv")
async def export_income_csv(
    admin: AdminUser,
    db: DbSession,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
) -> StreamingResponse:
    """Export the income report as CSV (admin only)."""
    rows = await _load_rows(db, start_date, end_date)
    csv_content = income_service.render_income_csv(rows)

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    filename = f"income_{timestamp}.csv"

    return StreamingResponse(
        iter([csv_content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/export/pdf")
async def export_income_pdf(
    admin: AdminUser,
    db: DbSession,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
) -> StreamingResponse:
    """Export the printable income report as PDF (admin only)."""
    rows = await _load_rows(db, start_date, end_date)
    generated_at = datetime.now(timezone.utc)
    pdf_content = income_service.render_income_pdf(
        rows,
        income_service.summarize_income(rows),
        income_service.period_label(start_date, end_date),
        generated_at,
    )

    filename = f"income_{generated_at.strftime('%Y%m%d_%H%M%S')}.pdf"

    return StreamingResponse(
        iter([pdf_content]),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
