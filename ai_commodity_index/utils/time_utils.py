"""
Time helpers shared by the scoring and index code.

All datetimes handled by the core are timezone-aware UTC. Naive values
coming from the store or CSV files are interpreted as UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

# Trailing windows for league-table periods; "all" has no cutoff.
PERIOD_DAYS: dict[str, int] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
}


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime, or convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: str) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware UTC datetime.

    Date-only strings are treated as midnight UTC.

    Raises:
        ValueError: If ``value`` is not a valid ISO date/datetime.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def period_cutoff(period: str, now: datetime) -> Optional[datetime]:
    """Return the start of the trailing window for ``period``.

    Args:
        period: One of ``"7d"``, ``"30d"``, ``"90d"``, ``"all"``.
        now:    Reference time.

    Returns:
        ``now - N days``, or ``None`` for ``"all"``.

    Raises:
        ValueError: For an unknown period string.
    """
    if period == "all":
        return None
    days = PERIOD_DAYS.get(period)
    if days is None:
        raise ValueError(
            f"Unknown period '{period}'. Expected one of {sorted(PERIOD_DAYS) + ['all']}."
        )
    return now - timedelta(days=days)
