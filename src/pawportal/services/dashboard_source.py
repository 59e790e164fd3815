"""SQLAlchemy-backed data source for the admin dashboard report."""

import logging
from datetime import datetime

from sqlalchemy import Select, distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pawportal.models.application import Application
from pawportal.models.payment_proof import PaymentProof, PaymentProofStatus
from pawportal.models.pet import Pet
from pawportal.models.user import User, UserRole
from pawportal.services.periods import Window, to_utc
from pawportal.services.report_rows import (
    ApplicationStatusRow,
    CategoryCount,
    FetchResult,
    KpiCounts,
    UserCreatedRow,
)
from pawportal.services.statuses import (
    APPROVED_APPLICATION_STATUSES,
    PENDING_APPLICATION_STATUSES,
    REJECTED_APPLICATION_STATUSES,
)

logger = logging.getLogger(__name__)

_normalized_status = func.lower(func.trim(Application.status))


def _db_time(value: datetime) -> datetime:
    """Columns hold naive UTC timestamps."""
    return to_utc(value).replace(tzinfo=None)


class SqlDashboardSource:
    """Reads dashboard rows through an async SQLAlchemy session.

    Database errors never propagate: they are logged and returned as a failed
    ``FetchResult`` so the report can still be rendered.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _failed(self, series: str, exc: SQLAlchemyError) -> FetchResult:
        logger.warning(f"Dashboard query for {series} failed: {exc}")
        # Leave the session usable for the remaining queries
        await self.db.rollback()
        return FetchResult.failure(series, str(exc))

    async def _count(self, stmt: Select) -> int:
        result = await self.db.execute(stmt)
        return int(result.scalar_one() or 0)

    async def users_created_between(self, window: Window) -> FetchResult[UserCreatedRow]:
        """New user accounts created inside the window."""
        stmt = select(User.created_at).where(
            User.created_at >= _db_time(window.start),
            User.created_at < _db_time(window.end),
        )
        try:
            result = await self.db.execute(stmt)
            rows = [UserCreatedRow.from_timestamp(value) for value in result.scalars().all()]
        except SQLAlchemyError as e:
            return await self._failed("new_users", e)
        return FetchResult.success(rows)

    async def approved_applications_between(
        self, window: Window
    ) -> FetchResult[ApplicationStatusRow]:
        """Applications in an approved status created inside the window."""
        stmt = select(Application.created_at, Application.status).where(
            _normalized_status.in_(sorted(APPROVED_APPLICATION_STATUSES)),
            Application.created_at >= _db_time(window.start),
            Application.created_at < _db_time(window.end),
        )
        try:
            result = await self.db.execute(stmt)
            rows = [
                ApplicationStatusRow.from_values(row.created_at, row.status)
                for row in result.all()
            ]
        except SQLAlchemyError as e:
            return await self._failed("approved_applications", e)
        return FetchResult.success(rows)

    async def top_breeds(self, limit: int) -> FetchResult[CategoryCount]:
        """Breeds ranked by how many applications their pets received."""
        application_count = func.count(Application.id)
        breed = func.trim(Pet.breed).label("breed")
        stmt = (
            select(breed, application_count.label("count"))
            .join(Application, Application.pet_id == Pet.id)
            .group_by(breed)
            .order_by(application_count.desc())
            .limit(limit)
        )
        try:
            result = await self.db.execute(stmt)
            rows = [CategoryCount(category=row.breed, count=int(row.count)) for row in result.all()]
        except SQLAlchemyError as e:
            return await self._failed("top_breeds", e)
        return FetchResult.success(rows)

    async def pet_breeds(self) -> FetchResult[str | None]:
        """One entry per listed pet with a non-blank breed."""
        stmt = select(Pet.breed).where(Pet.breed.is_not(None)).order_by(Pet.id)
        try:
            result = await self.db.execute(stmt)
            rows = [breed for breed in result.scalars().all() if breed and breed.strip()]
        except SQLAlchemyError as e:
            return await self._failed("pet_breeds", e)
        return FetchResult.success(rows)

    async def kpi_counts(self) -> FetchResult[KpiCounts]:
        """All-time counters behind the KPI cards."""
        try:
            counts = KpiCounts(
                total_pets=await self._count(select(func.count(Pet.id))),
                adopted_pets=await self._count(
                    select(func.count(distinct(Application.pet_id))).where(
                        _normalized_status.in_(sorted(APPROVED_APPLICATION_STATUSES))
                    )
                ),
                pending_applications=await self._count(
                    select(func.count(Application.id)).where(
                        _normalized_status.in_(sorted(PENDING_APPLICATION_STATUSES))
                    )
                ),
                approved_applications=await self._count(
                    select(func.count(Application.id)).where(
                        _normalized_status.in_(sorted(APPROVED_APPLICATION_STATUSES))
                    )
                ),
                rejected_applications=await self._count(
                    select(func.count(Application.id)).where(
                        _normalized_status.in_(sorted(REJECTED_APPLICATION_STATUSES))
                    )
                ),
                approved_proofs=await self._count(
                    select(func.count(PaymentProof.id)).where(
                        PaymentProof.status == PaymentProofStatus.APPROVED
                    )
                ),
                rejected_proofs=await self._count(
                    select(func.count(PaymentProof.id)).where(
                        PaymentProof.status == PaymentProofStatus.REJECTED
                    )
                ),
                total_users=await self._count(
                    select(func.count(User.id)).where(User.role != UserRole.ADMIN)
                ),
            )
        except SQLAlchemyError as e:
            return await self._failed("kpis", e)
        return FetchResult.success([counts])
