"""Typed rows and fetch results exchanged between report sources and aggregators."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Generic, Protocol, TypeVar

from pawportal.services.periods import Window, to_utc

RowT = TypeVar("RowT")


@dataclass(frozen=True)
class UserCreatedRow:
    """A user account creation event."""

    created_at: datetime

    @classmethod
    def from_timestamp(cls, value: datetime | date) -> UserCreatedRow:
        return cls(created_at=to_utc(value))


@dataclass(frozen=True)
class ApplicationStatusRow:
    """An adoption application with its current status."""

    created_at: datetime
    status: str

    @classmethod
    def from_values(cls, created_at: datetime | date, status: str | None) -> ApplicationStatusRow:
        return cls(created_at=to_utc(created_at), status=status or "")


@dataclass(frozen=True)
class CategoryCount:
    """A pre-aggregated ``(category, count)`` pair."""

    category: str | None
    count: int


@dataclass(frozen=True)
class KpiCounts:
    """Raw counters behind the dashboard KPI cards."""

    total_pets: int = 0
    adopted_pets: int = 0
    pending_applications: int = 0
    approved_applications: int = 0
    rejected_applications: int = 0
    approved_proofs: int = 0
    rejected_proofs: int = 0
    total_users: int = 0


@dataclass(frozen=True)
class FetchError:
    """Why a source read failed."""

    series: str
    message: str


@dataclass(frozen=True)
class FetchResult(Generic[RowT]):
    """Outcome of one source read: rows, or the error that prevented them.

    Failed reads carry no rows, so reducing either outcome yields the same
    zero-filled output while the error stays visible to the caller.
    """

    rows: list[RowT] = field(default_factory=list)
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, rows: list[RowT]) -> FetchResult[RowT]:
        return cls(rows=list(rows))

    @classmethod
    def failure(cls, series: str, message: str) -> FetchResult[RowT]:
        return cls(rows=[], error=FetchError(series=series, message=message))


class DashboardSource(Protocol):
    """Read access the dashboard report needs from the data store."""

    async def users_created_between(self, window: Window) -> FetchResult[UserCreatedRow]: ...

    async def approved_applications_between(
        self, window: Window
    ) -> FetchResult[ApplicationStatusRow]: ...

    async def top_breeds(self, limit: int) -> FetchResult[CategoryCount]: ...

    async def pet_breeds(self) -> FetchResult[str | None]: ...

    async def kpi_counts(self) -> FetchResult[KpiCounts]: ...
