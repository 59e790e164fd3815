"""Zero-filled bucket counting and small report reductions."""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from pawportal.services.periods import (
    Window,
    date_to_week_label,
    day_of_month_label,
    day_of_week_label,
)
from pawportal.services.report_rows import CategoryCount

UNKNOWN_CATEGORY = "Unknown"


class Granularity(str, Enum):
    """How timestamps are labelled when counted."""

    DAY_OF_MONTH = "day_of_month"
    DAY_OF_WEEK = "day_of_week"
    ISO_WEEK = "iso_week"


_LABELLERS: dict[Granularity, Callable[[datetime | date], str]] = {
    Granularity.DAY_OF_MONTH: day_of_month_label,
    Granularity.DAY_OF_WEEK: day_of_week_label,
    Granularity.ISO_WEEK: date_to_week_label,
}


@dataclass(frozen=True)
class Bucket:
    """A labelled count in a chart series."""

    label: str
    value: int


def label_for(value: datetime | date, granularity: Granularity) -> str:
    """Label a timestamp the same way the matching label set is generated."""
    return _LABELLERS[granularity](value)


def count_buckets(
    labels: Iterable[str],
    timestamps: Iterable[datetime | date],
    granularity: Granularity,
    window: Window | None = None,
) -> list[Bucket]:
    """Count timestamps into a zero-filled series ordered like ``labels``.

    Timestamps outside ``window`` or whose label is not in ``labels`` are
    dropped; the label set never grows.
    """
    counts = dict.fromkeys(labels, 0)
    for timestamp in timestamps:
        if window is not None and not window.contains(timestamp):
            continue
        label = label_for(timestamp, granularity)
        if label in counts:
            counts[label] += 1
    return [Bucket(label=label, value=value) for label, value in counts.items()]


def series_total(buckets: Iterable[Bucket]) -> int:
    """Sum the values of a series."""
    return sum(bucket.value for bucket in buckets)


def approval_rate(approved: int, rejected: int) -> int:
    """Percentage of decisions that were approvals, rounded half up.

    Returns 0 when there are no decisions.
    """
    approved = max(approved, 0)
    total = approved + max(rejected, 0)
    if total == 0:
        return 0
    return (approved * 200 + total) // (2 * total)


def _category_label(value: str | None) -> str:
    if value is None:
        return UNKNOWN_CATEGORY
    text = str(value).strip()
    return text or UNKNOWN_CATEGORY


def reduce_top_categories(
    rows: Sequence[CategoryCount] | Sequence[str | None],
    limit: int | None = None,
) -> list[Bucket]:
    """Rank categories by count, highest first.

    ``rows`` is either pre-aggregated ``CategoryCount`` pairs, whose
    non-positive counts are dropped, or raw occurrences that are tallied
    first. Categories with the same label are summed into one entry. Ties
    keep the order in which categories first appeared.
    """
    if not rows:
        return []

    tally: dict[str, int] = {}
    if isinstance(rows[0], CategoryCount):
        # Blank and missing categories arrive as separate groups; merge them
        for row in rows:
            if isinstance(row, CategoryCount) and row.count > 0:
                key = _category_label(row.category)
                tally[key] = tally.get(key, 0) + int(row.count)
    else:
        for occurrence in rows:
            key = _category_label(occurrence)  # type: ignore[arg-type]
            tally[key] = tally.get(key, 0) + 1
    items = [Bucket(label=label, value=value) for label, value in tally.items()]

    # sorted() is stable, also with reverse=True
    ranked = sorted(items, key=lambda bucket: bucket.value, reverse=True)
    if limit is not None:
        return ranked[:limit]
    return ranked
