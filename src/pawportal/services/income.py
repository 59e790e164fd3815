"""Income report over approved payment proofs."""

import csv
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from io import BytesIO, StringIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Flowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pawportal.core.config import settings
from pawportal.models.payment_proof import PaymentProof, PaymentProofStatus
from pawportal.models.user import User
from pawportal.services.periods import to_utc, utc_midnight

CSV_HEADERS = ["Date", "Payer", "Email", "Reference", "Amount", "Credits"]


@dataclass(frozen=True)
class IncomeRow:
    """An approved payment with the payer's contact details."""

    id: int
    created_at: datetime
    amount: int
    reference: str | None
    user_id: int | None
    user_email: str
    user_name: str | None

    @property
    def credits(self) -> int:
        return listing_credits(self.amount)


@dataclass(frozen=True)
class IncomeSummary:
    """Totals printed at the bottom of the report."""

    count: int
    amount: int
    credits: int


def listing_credits(
    amount: int | float,
    unit_amount: int | None = None,
    max_credits: int | None = None,
) -> int:
    """Listing credits bought by one payment: one per unit, capped."""
    unit_amount = unit_amount or settings.credit_unit_amount
    max_credits = settings.max_credits_per_proof if max_credits is None else max_credits
    return min(max(0, int(amount // unit_amount)), max_credits)


async def get_income_rows(db: AsyncSession) -> list[IncomeRow]:
    """Get all approved payment proofs, newest first."""
    stmt = (
        select(PaymentProof, User.email, User.full_name)
        .outerjoin(User, PaymentProof.user_id == User.id)
        .where(PaymentProof.status == PaymentProofStatus.APPROVED)
        .order_by(PaymentProof.created_at.desc(), PaymentProof.id.desc())
    )
    result = await db.execute(stmt)
    return [
        IncomeRow(
            id=proof.id,
            created_at=to_utc(proof.created_at),
            amount=proof.amount,
            reference=proof.reference,
            user_id=proof.user_id,
            user_email=email or "",
            user_name=full_name,
        )
        for proof, email, full_name in result.all()
    ]


def filter_income_rows(
    rows: Iterable[IncomeRow],
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[IncomeRow]:
    """Keep rows whose UTC day lies within ``[start_date, end_date]``.

    Both bounds are whole calendar days and either may be omitted.
    """
    lower = utc_midnight(start_date) if start_date else None
    upper = (
        utc_midnight(end_date + timedelta(days=1))
        if end_date and end_date < date.max
        else None
    )
    kept: list[IncomeRow] = []
    for row in rows:
        moment = to_utc(row.created_at)
        if lower is not None and moment < lower:
            continue
        if upper is not None and moment >= upper:
            continue
        kept.append(row)
    return kept


def summarize_income(rows: Iterable[IncomeRow]) -> IncomeSummary:
    """Count rows and total their amounts and credits."""
    count = amount = credits = 0
    for row in rows:
        count += 1
        amount += row.amount
        credits += row.credits
    return IncomeSummary(count=count, amount=amount, credits=credits)


def _format_day(value: date) -> str:
    return value.strftime("%b %d, %Y")


def period_label(start_date: date | None, end_date: date | None) -> str:
    """Human readable description of the report period."""
    if start_date and end_date:
        return f"{_format_day(start_date)} – {_format_day(end_date)}"
    if start_date:
        return f"From {_format_day(start_date)}"
    if end_date:
        return f"Up to {_format_day(end_date)}"
    return "All records"


def render_income_csv(rows: Iterable[IncomeRow]) -> str:
    """Render report rows as CSV."""
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADERS)
    for row in rows:
        writer.writerow([
            row.created_at.isoformat(),
            row.user_name or "",
            row.user_email,
            row.reference or "",
            row.amount,
            row.credits,
        ])
    content = output.getvalue()
    output.close()
    return content


def render_income_pdf(
    rows: list[IncomeRow],
    summary: IncomeSummary,
    period: str,
    generated_at: datetime,
) -> bytes:
    """Render the printable income report as a PDF document."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter)
    elements: list[Flowable] = []
    styles = getSampleStyleSheet()

    elements.append(Paragraph("<b>PawPortal Income Report</b>", styles["Title"]))
    elements.append(Spacer(1, 0.2 * inch))

    metadata_text = f"""
    <b>Period:</b> {period}<br/>
    <b>Generated:</b> {generated_at.strftime('%Y-%m-%d %H:%M:%S UTC')}
    """
    elements.append(Paragraph(metadata_text, styles["Normal"]))
    elements.append(Spacer(1, 0.3 * inch))

    summary_text = (
        f"<b>Summary</b><br/>Payments: {summary.count}<br/>"
        f"Total amount: {summary.amount}<br/>Listing credits: {summary.credits}"
    )
    elements.append(Paragraph(summary_text, styles["Heading2"]))
    elements.append(Spacer(1, 0.2 * inch))

    if rows:
        table_data = [list(CSV_HEADERS)]
        for row in rows:
            table_data.append([
                row.created_at.strftime("%Y-%m-%d %H:%M"),
                row.user_name or "",
                row.user_email,
                row.reference or "",
                str(row.amount),
                str(row.credits),
            ])

        col_widths = [1.2 * inch, 1.3 * inch, 1.8 * inch, 1.2 * inch, 0.7 * inch, 0.7 * inch]
        table = Table(table_data, colWidths=col_widths)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('ALIGN', (4, 0), (-1, -1), 'RIGHT'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 10),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
            ('FONTSIZE', (0, 1), (-1, -1), 8),
        ]))
        elements.append(table)
    else:
        elements.append(Paragraph("No approved payments in this period.", styles["Normal"]))

    doc.build(elements)
    pdf_content = buffer.getvalue()
    buffer.close()
    return pdf_content
