"""
Duration arithmetic for time entries.

A time entry is either running (no end time) or stopped (end time set and
duration fixed). Durations are kept as whole microseconds so that sums are
exact and independent of ordering.
"""

import datetime
from typing import Iterable, Optional

from productivity.domain.errors import ValidationError

ZERO = datetime.timedelta(0)


def to_microseconds(duration: datetime.timedelta) -> int:
    """Convert a timedelta to an integer number of microseconds (exact)"""
    return (duration.days * 86400 + duration.seconds) * 1_000_000 + duration.microseconds


def from_microseconds(value: Optional[int]) -> datetime.timedelta:
    return datetime.timedelta(microseconds=int(value or 0))


def to_local_naive(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    """
    Convert an offset-aware datetime to naive local time.

    Naive values are assumed to be local already and pass through unchanged.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def compute_duration(start_time: datetime.datetime,
                     end_time: Optional[datetime.datetime]) -> datetime.timedelta:
    """
    Derive the duration of an entry from its bounds.

    Args:
        start_time: When the entry started
        end_time: When the entry stopped, or None while running

    Returns:
        end_time - start_time, or zero for a running entry

    Raises:
        ValidationError: if end_time precedes start_time
    """
    if end_time is None:
        return ZERO
    if end_time < start_time:
        raise ValidationError(
            f"end_time {end_time.isoformat()} precedes start_time {start_time.isoformat()}"
        )
    return end_time - start_time


def elapsed(start_time: datetime.datetime, end_time: Optional[datetime.datetime],
            now: datetime.datetime) -> datetime.timedelta:
    """Elapsed time of an entry; running entries are measured against `now`"""
    if end_time is not None:
        return end_time - start_time
    return max(now - start_time, ZERO)


def sum_durations(durations: Iterable[datetime.timedelta]) -> datetime.timedelta:
    """Exact sum of in-memory durations, e.g. the entries of a loaded task"""
    return from_microseconds(sum(to_microseconds(d) for d in durations))
