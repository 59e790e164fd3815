"""Tests for the dashboard report service, its SQL source and router."""

from datetime import date, datetime, timedelta, timezone

import pytest
from conftest import ApplicationFactory, PaymentProofFactory, PetFactory, UserFactory
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from pawportal.core.deps import get_dashboard_source
from pawportal.models.payment_proof import PaymentProofStatus
from pawportal.models.user import User
from pawportal.services.buckets import Bucket
from pawportal.services.dashboard import (
    DashboardKpis,
    ReportPeriod,
    build_dashboard_report,
    build_kpis,
)
from pawportal.services.dashboard_source import SqlDashboardSource
from pawportal.services.periods import DAY_OF_WEEK_LABELS, Window, to_utc, week_window
from pawportal.services.report_rows import (
    ApplicationStatusRow,
    CategoryCount,
    FetchResult,
    KpiCounts,
    UserCreatedRow,
)

UTC = timezone.utc
NOW = datetime(2024, 1, 17, 10, 0, tzinfo=UTC)


class FakeDashboardSource:
    """In-memory source whose window filtering is deliberately loose.

    It returns rows from a day before the window up to and including its
    end, like an upstream query with sloppy boundaries.
    """

    def __init__(
        self,
        users: list[datetime | date] | None = None,
        applications: list[tuple[datetime, str]] | None = None,
        breeds: list[CategoryCount] | None = None,
        pet_breeds: list[str | None] | None = None,
        kpis: KpiCounts | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.users = users or []
        self.applications = applications or []
        self.breeds = breeds or []
        self.pet_breeds_rows = pet_breeds or []
        self.kpis = kpis or KpiCounts()
        self.failing = failing or set()

    @staticmethod
    def _loosely_inside(window: Window, value: datetime | date) -> bool:
        return window.start - timedelta(days=1) <= to_utc(value) <= window.end

    async def users_created_between(self, window: Window) -> FetchResult[UserCreatedRow]:
        if "new_users" in self.failing:
            return FetchResult.failure("new_users", "connection reset")
        return FetchResult.success(
            [UserCreatedRow.from_timestamp(t) for t in self.users if self._loosely_inside(window, t)]
        )

    async def approved_applications_between(
        self, window: Window
    ) -> FetchResult[ApplicationStatusRow]:
        if "approved_applications" in self.failing:
            return FetchResult.failure("approved_applications", "timeout")
        return FetchResult.success(
            [
                ApplicationStatusRow.from_values(created_at, status)
                for created_at, status in self.applications
                if self._loosely_inside(window, created_at)
            ]
        )

    async def top_breeds(self, limit: int) -> FetchResult[CategoryCount]:
        if "top_breeds" in self.failing:
            return FetchResult.failure("top_breeds", "rpc missing")
        return FetchResult.success(self.breeds[:limit])

    async def pet_breeds(self) -> FetchResult[str | None]:
        return FetchResult.success(self.pet_breeds_rows)

    async def kpi_counts(self) -> FetchResult[KpiCounts]:
        if "kpis" in self.failing:
            return FetchResult.failure("kpis", "permission denied")
        return FetchResult.success([self.kpis])


class TestReportPeriod:
    """Tests for period parsing."""

    def test_parse(self):
        assert ReportPeriod.parse("monthly") == ReportPeriod.MONTHLY
        assert ReportPeriod.parse(" MONTHLY ") == ReportPeriod.MONTHLY
        assert ReportPeriod.parse(None) == ReportPeriod.WEEKLY
        assert ReportPeriod.parse("yearly") == ReportPeriod.WEEKLY


class TestBuildKpis:
    """Tests for KPI derivation."""

    def test_adopted_pets_are_excluded_and_rate_uses_proofs(self):
        kpis = build_kpis(
            KpiCounts(
                total_pets=10,
                adopted_pets=3,
                pending_applications=4,
                approved_proofs=3,
                rejected_proofs=1,
                total_users=20,
            )
        )

        assert kpis == DashboardKpis(
            total_pets=7,
            available_pets=7,
            pending_applications=4,
            approval_rate=75,
            approved_applications=3,
            total_users=20,
        )

    def test_rate_falls_back_to_application_decisions(self):
        kpis = build_kpis(KpiCounts(approved_applications=1, rejected_applications=1))

        assert kpis.approval_rate == 50

    def test_more_adopted_than_total_never_goes_negative(self):
        assert build_kpis(KpiCounts(total_pets=1, adopted_pets=4)).total_pets == 0

    def test_empty_counts(self):
        assert build_kpis(KpiCounts()) == DashboardKpis()


class TestBuildDashboardReport:
    """Tests for the dashboard report service."""

    async def test_weekly_defaults_to_last_week_of_current_month(self):
        source = FakeDashboardSource(
            users=[
                datetime(2024, 1, 31, 10, 0, tzinfo=UTC),  # Wednesday of 2024-W05
                datetime(2024, 2, 5, 0, 0, tzinfo=UTC),  # exactly at the window end
                datetime(2024, 1, 28, 23, 59, 59, tzinfo=UTC),  # just before the window
                datetime(2024, 1, 16, 8, 0, tzinfo=UTC),
            ]
        )

        report = await build_dashboard_report(source, now=NOW)

        assert report.period == ReportPeriod.WEEKLY
        assert report.month == "2024-01"
        assert report.week == "2024-W05"
        assert report.week_options == ["2024-W01", "2024-W02", "2024-W03", "2024-W04", "2024-W05"]
        assert [b.label for b in report.users_series] == list(DAY_OF_WEEK_LABELS)
        assert {b.label: b.value for b in report.users_series}["Wed"] == 1
        assert report.users_total == 1
        assert report.degraded == []

    async def test_weekly_with_selected_week(self):
        source = FakeDashboardSource(users=[datetime(2024, 1, 16, 8, 0, tzinfo=UTC)])

        report = await build_dashboard_report(
            source, period="weekly", month="2024-01", week="2024-W03", now=NOW
        )

        assert report.week == "2024-W03"
        assert report.users_series[1] == Bucket("Tue", 1)

    async def test_monthly_series_has_one_point_per_day(self):
        source = FakeDashboardSource(
            users=[datetime(2024, 2, 29, 12, 0), datetime(2024, 3, 1, 0, 0)],
            applications=[
                (datetime(2024, 2, 10, 9, 0), "Approved "),
                (datetime(2024, 2, 11, 9, 0), "pending"),
                (datetime(2024, 2, 12, 9, 0), "adopted"),
            ],
        )

        report = await build_dashboard_report(source, period="monthly", month="2024-02", now=NOW)

        assert report.period == ReportPeriod.MONTHLY
        assert len(report.users_series) == 29
        assert report.users_series[-1] == Bucket("02-29", 1)
        assert report.users_total == 1
        assert report.approved_total == 2
        approved = {b.label: b.value for b in report.approved_series}
        assert approved["02-10"] == 1
        assert approved["02-11"] == 0
        assert approved["02-12"] == 1

    async def test_malformed_selection_falls_back_to_defaults(self):
        report = await build_dashboard_report(
            FakeDashboardSource(), period="weekly", month="2024-99", week="nope", now=NOW
        )

        assert report.month == "2024-01"
        assert report.week == "2024-W05"

    async def test_week_outside_selected_month_falls_back(self):
        report = await build_dashboard_report(
            FakeDashboardSource(), month="2024-01", week="2024-W20", now=NOW
        )

        assert report.week == "2024-W05"

    async def test_trailing_weekly_trend(self):
        source = FakeDashboardSource(
            users=[datetime(2024, 1, 16, 8, 0, tzinfo=UTC), datetime(2024, 1, 31, tzinfo=UTC)],
            applications=[(datetime(2024, 1, 2, 9, 0, tzinfo=UTC), "completed")],
        )

        report = await build_dashboard_report(source, now=NOW)

        assert len(report.weekly_users) == 12
        assert report.weekly_users[-1] == Bucket("2024-W03", 1)
        assert sum(b.value for b in report.weekly_users) == 1
        assert {b.label: b.value for b in report.weekly_approved}["2024-W01"] == 1

    async def test_failed_fetch_still_yields_complete_series(self):
        source = FakeDashboardSource(
            users=[datetime(2024, 1, 31, 10, 0, tzinfo=UTC)],
            failing={"new_users", "kpis"},
        )

        report = await build_dashboard_report(source, now=NOW)

        assert report.degraded == ["new_users", "kpis"]
        assert [b.value for b in report.users_series] == [0] * 7
        assert len(report.weekly_users) == 12
        assert report.kpis == DashboardKpis()

    async def test_top_breeds_from_aggregated_counts(self):
        source = FakeDashboardSource(
            breeds=[CategoryCount("Husky", 2), CategoryCount("Aspin", 4)],
            pet_breeds=["Pug"],
        )

        report = await build_dashboard_report(source, now=NOW)

        assert report.top_breeds == [Bucket("Aspin", 4), Bucket("Husky", 2)]

    async def test_top_breeds_fall_back_to_pet_breeds(self):
        source = FakeDashboardSource(pet_breeds=["Aspin", "Husky", "Aspin"])

        report = await build_dashboard_report(source, now=NOW)

        assert report.top_breeds == [Bucket("Aspin", 2), Bucket("Husky", 1)]

    async def test_month_options(self):
        report = await build_dashboard_report(FakeDashboardSource(), now=NOW)

        assert len(report.month_options) == 18
        assert report.month_options[-1] == "2024-01"

    async def test_explicit_zero_limits_are_honoured(self):
        source = FakeDashboardSource(
            users=[datetime(2024, 1, 16, 8, 0, tzinfo=UTC)],
            breeds=[CategoryCount("Aspin", 4)],
            pet_breeds=["Aspin"],
        )

        report = await build_dashboard_report(
            source, now=NOW, trend_weeks=0, month_option_count=0, top_breeds_limit=0
        )

        assert report.weekly_users == []
        assert report.weekly_approved == []
        assert report.month_options == []
        assert report.top_breeds == []

    async def test_custom_trend_length(self):
        report = await build_dashboard_report(
            FakeDashboardSource(), now=NOW, weeks_to_fetch=60, trend_weeks=4
        )

        assert [b.label for b in report.weekly_users] == [
            "2023-W52", "2024-W01", "2024-W02", "2024-W03",
        ]


class BrokenSession:
    """Stands in for a session whose connection has gone away."""

    def __init__(self) -> None:
        self.rolled_back = False

    async def execute(self, stmt):
        raise OperationalError("SELECT 1", {}, Exception("server has gone away"))

    async def rollback(self) -> None:
        self.rolled_back = True


class TestSqlDashboardSource:
    """Tests for the SQLAlchemy dashboard source."""

    async def test_users_created_between(
        self, db_session: AsyncSession, user_factory: UserFactory
    ):
        await user_factory.create(created_at=datetime(2024, 1, 31, 10, 0))
        await user_factory.create(created_at=datetime(2024, 2, 5, 0, 0))
        await user_factory.create(created_at=datetime(2024, 1, 28, 23, 59, 59))

        result = await SqlDashboardSource(db_session).users_created_between(
            week_window("2024-W05")
        )

        assert result.ok
        assert [row.created_at for row in result.rows] == [
            datetime(2024, 1, 31, 10, 0, tzinfo=UTC)
        ]

    async def test_approved_applications_use_canonical_statuses(
        self,
        db_session: AsyncSession,
        pet_factory: PetFactory,
        application_factory: ApplicationFactory,
    ):
        pet = await pet_factory.create()
        inside = datetime(2024, 1, 30, 9, 0)
        for status in ("Approved", "accepted", " COMPLETED ", "pending", "rejected"):
            await application_factory.create(pet, status=status, created_at=inside)
        await application_factory.create(pet, status="approved", created_at=datetime(2024, 3, 1))

        result = await SqlDashboardSource(db_session).approved_applications_between(
            week_window("2024-W05")
        )

        assert result.ok
        assert sorted(row.status for row in result.rows) == [" COMPLETED ", "Approved", "accepted"]

    async def test_top_breeds_and_pet_breeds(
        self,
        db_session: AsyncSession,
        pet_factory: PetFactory,
        application_factory: ApplicationFactory,
    ):
        aspin = await pet_factory.create(breed="Aspin")
        husky = await pet_factory.create(breed="Husky")
        await pet_factory.create(breed="  ")
        await pet_factory.create(breed=None)
        await application_factory.create(aspin)
        await application_factory.create(aspin)
        await application_factory.create(husky)

        source = SqlDashboardSource(db_session)
        breeds = await source.top_breeds(10)
        pet_breeds = await source.pet_breeds()

        assert breeds.rows == [CategoryCount("Aspin", 2), CategoryCount("Husky", 1)]
        assert pet_breeds.rows == ["Aspin", "Husky"]

    async def test_top_breeds_group_padded_and_blank_breeds(
        self,
        db_session: AsyncSession,
        pet_factory: PetFactory,
        application_factory: ApplicationFactory,
    ):
        for breed in ("Lab", " Lab ", "Lab", "Lab", "Lab", None, "", "  "):
            pet = await pet_factory.create(breed=breed)
            await application_factory.create(pet)

        breeds = await SqlDashboardSource(db_session).top_breeds(10)
        report = await build_dashboard_report(
            SqlDashboardSource(db_session), now=NOW, top_breeds_limit=10
        )

        assert CategoryCount("Lab", 5) in breeds.rows
        assert report.top_breeds == [Bucket("Lab", 5), Bucket("Unknown", 3)]

    async def test_kpi_counts(
        self,
        db_session: AsyncSession,
        admin_user: User,
        user_factory: UserFactory,
        pet_factory: PetFactory,
        application_factory: ApplicationFactory,
        payment_proof_factory: PaymentProofFactory,
    ):
        adopter = await user_factory.create()
        adopted = await pet_factory.create(status="adopted")
        listed = await pet_factory.create()
        await pet_factory.create()
        await application_factory.create(adopted, status="Adopted")
        await application_factory.create(adopted, status="approved")
        await application_factory.create(listed, status="pending")
        await application_factory.create(listed, status="declined")
        await payment_proof_factory.create(adopter, status=PaymentProofStatus.APPROVED)
        await payment_proof_factory.create(adopter, status=PaymentProofStatus.APPROVED)
        await payment_proof_factory.create(adopter, status=PaymentProofStatus.REJECTED)
        await payment_proof_factory.create(adopter, status=PaymentProofStatus.PENDING)

        result = await SqlDashboardSource(db_session).kpi_counts()

        assert result.ok
        assert result.rows == [
            KpiCounts(
                total_pets=3,
                adopted_pets=1,
                pending_applications=1,
                approved_applications=2,
                rejected_applications=1,
                approved_proofs=2,
                rejected_proofs=1,
                total_users=1,
            )
        ]

    async def test_database_errors_become_failed_results(self):
        session = BrokenSession()
        source = SqlDashboardSource(session)  # type: ignore[arg-type]

        result = await source.users_created_between(week_window("2024-W05"))

        assert not result.ok
        assert result.rows == []
        assert result.error is not None
        assert result.error.series == "new_users"
        assert session.rolled_back

    async def test_full_report_against_database(
        self,
        db_session: AsyncSession,
        user_factory: UserFactory,
        pet_factory: PetFactory,
        application_factory: ApplicationFactory,
    ):
        await user_factory.create(created_at=datetime(2024, 2, 14, 9, 0))
        pet = await pet_factory.create(breed="Beagle")
        await application_factory.create(pet, status="approved", created_at=datetime(2024, 2, 1))

        report = await build_dashboard_report(
            SqlDashboardSource(db_session), period="monthly", month="2024-02", now=NOW
        )

        assert report.users_total == 1
        assert report.approved_total == 1
        assert report.approved_series[0] == Bucket("02-01", 1)
        assert report.top_breeds == [Bucket("Beagle", 1)]
        assert report.degraded == []


class TestDashboardRouter:
    """Tests for the dashboard endpoint."""

    async def test_monthly_dashboard_as_admin(
        self, client: AsyncClient, admin_user: User, admin_headers: dict
    ):
        response = await client.get(
            "/api/dashboard",
            headers=admin_headers,
            params={"period": "monthly", "month": "2024-02"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["period"] == "monthly"
        assert data["month"] == "2024-02"
        assert len(data["users_series"]) == 29
        assert data["users_series"][0] == {"label": "02-01", "value": 0}
        assert len(data["weekly_users"]) == 12
        assert data["degraded"] == []

    async def test_weekly_dashboard_is_default(
        self, client: AsyncClient, admin_user: User, admin_headers: dict
    ):
        response = await client.get(
            "/api/dashboard", headers=admin_headers, params={"month": "bogus", "week": "bogus"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["period"] == "weekly"
        assert [p["label"] for p in data["users_series"]] == list(DAY_OF_WEEK_LABELS)
        assert data["week"] in data["week_options"]

    async def test_degraded_source_is_reported(
        self, client: AsyncClient, admin_user: User, admin_headers: dict
    ):
        from pawportal.main import app

        app.dependency_overrides[get_dashboard_source] = lambda: FakeDashboardSource(
            failing={"kpis"}
        )

        response = await client.get("/api/dashboard", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["degraded"] == ["kpis"]
        assert data["kpis"]["approval_rate"] == 0

    async def test_dashboard_as_adopter(
        self, client: AsyncClient, adopter_user: User, adopter_headers: dict
    ):
        response = await client.get("/api/dashboard", headers=adopter_headers)

        assert response.status_code == 403

    @pytest.mark.parametrize("path", ["/api/dashboard", "/api/income", "/api/users"])
    async def test_admin_endpoints_require_authentication(self, client: AsyncClient, path: str):
        response = await client.get(path)

        # HTTPBearer answers 403 on older FastAPI releases, 401 on newer ones
        assert response.status_code in (401, 403)
