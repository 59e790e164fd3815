"""Admin analytics dashboard report.

Resolves the requested period into UTC windows, reads raw rows from an
injected ``DashboardSource`` and reduces them to zero-filled chart series,
KPI figures and a ranked breed list.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pawportal.core.config import settings
from pawportal.services.buckets import (
    Bucket,
    Granularity,
    approval_rate,
    count_buckets,
    reduce_top_categories,
    series_total,
)
from pawportal.services.periods import (
    DAY_OF_WEEK_LABELS,
    day_of_month_labels,
    month_options,
    resolve_month,
    resolve_week,
    rolling_week_labels,
    rolling_week_window,
    to_utc,
    utc_now,
    week_options_for_month,
)
from pawportal.services.report_rows import DashboardSource, FetchResult, KpiCounts
from pawportal.services.statuses import is_approved_status

logger = logging.getLogger(__name__)


class ReportPeriod(str, Enum):
    """Chart period selector."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: str | None) -> "ReportPeriod":
        """Parse a query value; anything but ``monthly`` means weekly."""
        if value and value.strip().lower() == cls.MONTHLY.value:
            return cls.MONTHLY
        return cls.WEEKLY


@dataclass(frozen=True)
class DashboardKpis:
    """Headline figures shown above the charts."""

    total_pets: int = 0
    available_pets: int = 0
    pending_applications: int = 0
    approval_rate: int = 0
    approved_applications: int = 0
    total_users: int = 0


@dataclass(frozen=True)
class DashboardReport:
    """Everything the dashboard page renders for one request."""

    period: ReportPeriod
    month: str
    week: str
    week_options: list[str]
    month_options: list[str]
    users_series: list[Bucket]
    approved_series: list[Bucket]
    users_total: int
    approved_total: int
    weekly_users: list[Bucket]
    weekly_approved: list[Bucket]
    kpis: DashboardKpis
    top_breeds: list[Bucket]
    degraded: list[str] = field(default_factory=list)


def build_kpis(counts: KpiCounts) -> DashboardKpis:
    """Derive KPI card values from raw counters.

    Adopted pets are excluded from the pet totals. The approval rate comes
    from reviewed payment proofs, falling back to application decisions when
    no proof has been approved yet.
    """
    listed_pets = max(0, counts.total_pets - counts.adopted_pets)
    rate = approval_rate(counts.approved_proofs, counts.rejected_proofs) or approval_rate(
        counts.approved_applications, counts.rejected_applications
    )
    return DashboardKpis(
        total_pets=listed_pets,
        available_pets=listed_pets,
        pending_applications=counts.pending_applications,
        approval_rate=rate,
        approved_applications=counts.approved_proofs,
        total_users=counts.total_users,
    )


async def build_dashboard_report(
    source: DashboardSource,
    period: str | ReportPeriod | None = None,
    month: str | None = None,
    week: str | None = None,
    now: datetime | None = None,
    *,
    weeks_to_fetch: int | None = None,
    trend_weeks: int | None = None,
    month_option_count: int | None = None,
    top_breeds_limit: int | None = None,
) -> DashboardReport:
    """Build the dashboard report for a period selection.

    Malformed ``month``/``week`` values fall back to the current month and
    that month's last week. Failed reads are reported in ``degraded`` and
    otherwise treated as empty, so every series is always complete.
    """
    now = to_utc(now) if now is not None else utc_now()
    selected_period = period if isinstance(period, ReportPeriod) else ReportPeriod.parse(period)
    if weeks_to_fetch is None:
        weeks_to_fetch = settings.dashboard_weeks_to_fetch
    if trend_weeks is None:
        trend_weeks = settings.dashboard_trend_weeks
    if month_option_count is None:
        month_option_count = settings.dashboard_month_options
    if top_breeds_limit is None:
        top_breeds_limit = settings.dashboard_top_breeds

    month_window = resolve_month(month, now)
    week_window = resolve_week(week, month_window, now)

    if selected_period == ReportPeriod.MONTHLY:
        series_window = month_window
        labels = day_of_month_labels(month_window)
        granularity = Granularity.DAY_OF_MONTH
    else:
        series_window = week_window
        labels = list(DAY_OF_WEEK_LABELS)
        granularity = Granularity.DAY_OF_WEEK

    fetches: list[FetchResult] = []

    users = await source.users_created_between(series_window)
    approved = await source.approved_applications_between(series_window)
    fetches += [users, approved]

    users_series = count_buckets(
        labels, (row.created_at for row in users.rows), granularity, series_window
    )
    approved_series = count_buckets(
        labels,
        (row.created_at for row in approved.rows if is_approved_status(row.status)),
        granularity,
        series_window,
    )

    trend_labels = rolling_week_labels(now, weeks_to_fetch)
    # [-0:] would keep the whole list
    trend_labels = trend_labels[-trend_weeks:] if trend_weeks > 0 else []
    trend_window = rolling_week_window(now, len(trend_labels))
    trend_users = await source.users_created_between(trend_window)
    trend_approved = await source.approved_applications_between(trend_window)
    fetches += [trend_users, trend_approved]
    weekly_users = count_buckets(
        trend_labels,
        (row.created_at for row in trend_users.rows),
        Granularity.ISO_WEEK,
        trend_window,
    )
    weekly_approved = count_buckets(
        trend_labels,
        (row.created_at for row in trend_approved.rows if is_approved_status(row.status)),
        Granularity.ISO_WEEK,
        trend_window,
    )

    kpi_result = await source.kpi_counts()
    fetches.append(kpi_result)
    kpis = build_kpis(kpi_result.rows[0] if kpi_result.rows else KpiCounts())

    breeds = await source.top_breeds(top_breeds_limit)
    fetches.append(breeds)
    if breeds.rows:
        top_breeds = reduce_top_categories(breeds.rows, top_breeds_limit)
    else:
        pet_breeds = await source.pet_breeds()
        fetches.append(pet_breeds)
        top_breeds = reduce_top_categories(pet_breeds.rows, top_breeds_limit)

    degraded = list(dict.fromkeys(r.error.series for r in fetches if r.error is not None))
    if degraded:
        logger.info(f"Dashboard rendered with degraded series: {', '.join(degraded)}")

    return DashboardReport(
        period=selected_period,
        month=month_window.label,
        week=week_window.label,
        week_options=week_options_for_month(month_window),
        month_options=month_options(now, month_option_count),
        users_series=users_series,
        approved_series=approved_series,
        users_total=series_total(users_series),
        approved_total=series_total(approved_series),
        weekly_users=weekly_users,
        weekly_approved=weekly_approved,
        kpis=kpis,
        top_breeds=top_breeds,
        degraded=degraded,
    )
