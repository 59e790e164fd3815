"""UTC calendar math for the admin reports.

Covers ISO-8601 week labels (``YYYY-Www``), month labels (``YYYY-MM``),
day labels (``MM-DD`` and ``Mon``..``Sun``) and the half-open windows that
report queries are issued for.

Every datetime returned from this module is timezone-aware UTC. Naive
datetimes coming in (SQLite and MySQL drivers hand them out) are taken to be
UTC already. Parsers return None for malformed labels instead of raising, so
callers can fall back to defaults.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

DAY_OF_WEEK_LABELS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_MONTH_LABEL_RE = re.compile(r"^(\d{4})-(\d{2})$")
_WEEK_LABEL_RE = re.compile(r"^(\d{4})-W(\d{2})$")


@dataclass(frozen=True)
class Window:
    """Half-open UTC interval ``[start, end)``."""

    start: datetime
    end: datetime
    label: str = ""

    def contains(self, value: datetime | date) -> bool:
        """Return True if ``value`` falls inside the window."""
        moment = to_utc(value)
        return self.start <= moment < self.end

    def days(self) -> Iterator[date]:
        """Yield every UTC calendar day that starts inside the window."""
        cursor = self.start
        while cursor < self.end:
            yield cursor.date()
            cursor += timedelta(days=1)


def to_utc(value: datetime | date) -> datetime:
    """Normalize a date or datetime to an aware UTC datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return utc_midnight(value)


def utc_midnight(day: date) -> datetime:
    """Return 00:00 UTC of a calendar day."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _utc_date(value: datetime | date) -> date:
    if isinstance(value, datetime):
        return to_utc(value).date()
    return value


# ISO week calculus


def date_to_week_label(value: datetime | date) -> str:
    """Return the ISO-8601 week label of a UTC date.

    Late-December days can belong to week 01 of the next year and early
    January days to week 52/53 of the previous one, so the week-year is
    taken from the ISO calendar rather than from the date itself.
    """
    iso_year, iso_week, _ = _utc_date(value).isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def parse_week_label(label: str | None) -> tuple[int, int] | None:
    """Parse ``YYYY-Www`` into ``(year, week)``; None when malformed.

    Week 53 is only accepted for ISO years that actually have one.
    """
    if not label:
        return None
    match = _WEEK_LABEL_RE.match(label.strip())
    if match is None:
        return None
    year, week = int(match.group(1)), int(match.group(2))
    try:
        date.fromisocalendar(year, week, 1)
    except ValueError:
        return None
    return year, week


def week_label_to_monday(label: str) -> datetime:
    """Return Monday 00:00 UTC of the labelled ISO week.

    Raises:
        ValueError: If the label is not a valid ISO week label.
    """
    parsed = parse_week_label(label)
    if parsed is None:
        raise ValueError(f"Invalid ISO week label: {label!r}")
    year, week = parsed
    return utc_midnight(date.fromisocalendar(year, week, 1))


def monday_of(value: datetime | date) -> datetime:
    """Return Monday 00:00 UTC of the week containing ``value``."""
    day = _utc_date(value)
    return utc_midnight(day - timedelta(days=day.weekday()))


def week_window(label: str) -> Window:
    """Return the 7-day window of an ISO week label."""
    start = week_label_to_monday(label)
    return Window(start=start, end=start + timedelta(days=7), label=label)


# Month labels


def month_label(value: datetime | date) -> str:
    """Return the ``YYYY-MM`` label of a UTC date."""
    day = _utc_date(value)
    return f"{day.year:04d}-{day.month:02d}"


def parse_month_label(label: str | None) -> tuple[int, int] | None:
    """Parse ``YYYY-MM`` into ``(year, month)``; None when malformed."""
    if not label:
        return None
    match = _MONTH_LABEL_RE.match(label.strip())
    if match is None:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    # 9999-12 has no following month to close the window with
    if not 1 <= month <= 12 or year < 1 or (year, month) == (9999, 12):
        return None
    return year, month


def _first_of_next_month(start: datetime) -> datetime:
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def _first_of_previous_month(start: datetime) -> datetime:
    if start.month == 1:
        return start.replace(year=start.year - 1, month=12)
    return start.replace(month=start.month - 1)


def month_window(year: int, month: int) -> Window:
    """Return the window covering a calendar month."""
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    return Window(start=start, end=_first_of_next_month(start), label=f"{year:04d}-{month:02d}")


# Window resolution


def resolve_month(month: str | None, now: datetime | None = None) -> Window:
    """Resolve an optional month label into its window.

    Missing or malformed labels resolve to the current UTC month.
    """
    parsed = parse_month_label(month)
    if parsed is None:
        current = to_utc(now) if now is not None else utc_now()
        parsed = (current.year, current.month)
    return month_window(*parsed)


def week_options_for_month(month: Window) -> list[str]:
    """Return the distinct ISO week labels overlapping a month, in order."""
    return list(dict.fromkeys(date_to_week_label(day) for day in month.days()))


def resolve_week(week: str | None, month: Window, now: datetime | None = None) -> Window:
    """Resolve an optional week label against the weeks of a month.

    A label that is not one of the month's weeks falls back to the month's
    last week.
    """
    options = week_options_for_month(month)
    candidate = week.strip() if week else None
    if candidate and candidate in options:
        label = candidate
    elif options:
        label = options[-1]
    else:
        label = date_to_week_label(to_utc(now) if now is not None else utc_now())
    return week_window(label)


def month_options(now: datetime | None = None, count: int = 18) -> list[str]:
    """Return the last ``count`` month labels, oldest first, ending this month."""
    current = to_utc(now) if now is not None else utc_now()
    cursor = datetime(current.year, current.month, 1, tzinfo=timezone.utc)
    labels: list[str] = []
    for _ in range(max(count, 0)):
        labels.append(month_label(cursor))
        cursor = _first_of_previous_month(cursor)
    labels.reverse()
    return labels


# Label sets


def day_of_month_label(value: datetime | date) -> str:
    """Return the ``MM-DD`` label of a UTC date."""
    day = _utc_date(value)
    return f"{day.month:02d}-{day.day:02d}"


def day_of_week_label(value: datetime | date) -> str:
    """Return the ``Mon``..``Sun`` label of a UTC date."""
    return DAY_OF_WEEK_LABELS[_utc_date(value).weekday()]


def day_of_month_labels(window: Window) -> list[str]:
    """Return one ``MM-DD`` label per UTC day of the window."""
    return [day_of_month_label(day) for day in window.days()]


def rolling_week_labels(now: datetime | None = None, count: int = 60) -> list[str]:
    """Return ``count`` consecutive ISO week labels ending with the current week."""
    current_monday = monday_of(to_utc(now) if now is not None else utc_now())
    return [
        date_to_week_label(current_monday - timedelta(weeks=offset))
        for offset in range(count - 1, -1, -1)
    ]


def rolling_week_window(now: datetime | None = None, count: int = 60) -> Window:
    """Return the window spanning the rolling weeks of ``rolling_week_labels``."""
    current_monday = monday_of(to_utc(now) if now is not None else utc_now())
    start = current_monday - timedelta(weeks=max(count, 1) - 1)
    return Window(start=start, end=current_monday + timedelta(days=7))
