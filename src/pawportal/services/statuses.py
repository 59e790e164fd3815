"""Canonical status vocabularies shared by every report query.

Application and pet statuses are free text written by several clients over
time, so every comparison goes through ``normalize_status`` and the
allow-lists below.
"""

APPROVED_APPLICATION_STATUSES: frozenset[str] = frozenset(
    {"approved", "accepted", "completed", "adopted"}
)

REJECTED_APPLICATION_STATUSES: frozenset[str] = frozenset(
    {
        "rejected",
        "declined",
        "denied",
        "cancelled",
        "canceled",
        "withdrawn",
        "failed",
        "closed",
    }
)

PENDING_APPLICATION_STATUSES: frozenset[str] = frozenset({"pending"})


def normalize_status(status: str | None) -> str:
    """Lower-case and trim a status value; None becomes an empty string."""
    return (status or "").strip().lower()


def is_approved_status(status: str | None) -> bool:
    """Return True if an application status counts as approved."""
    return normalize_status(status) in APPROVED_APPLICATION_STATUSES

