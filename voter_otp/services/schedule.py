"""
Predicates deciding whether an election is open at a given instant.

The eligibility checker takes one of these as ``is_election_open``. The
default, ``always_open``, performs no schedule check at all.
"""
from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo


def always_open(election, now: datetime) -> bool:
    return True


def _minutes(value: time | None, default: int) -> int:
    if value is None:
        return default
    return value.hour * 60 + value.minute


def _to_local(now: datetime, tz: ZoneInfo | None) -> datetime:
    if tz is None:
        return now
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).replace(tzinfo=None)


def voting_window(tz_name: str | None = None):
    """
    Build a predicate honouring the election's start/end dates and times.

    ``now`` is naive UTC; it is shifted to ``tz_name`` before comparing with
    the election's local dates. Boundaries are inclusive to the minute:

    * a day strictly between start and end date is open all day
    * a single-day election is open from start_time to end_time
    * the first day of a multi-day election opens at start_time
    * the last day of a multi-day election closes after end_time

    Elections without start/end dates are treated as closed.
    """
    tz = ZoneInfo(tz_name) if tz_name else None

    def is_open(election, now: datetime) -> bool:
        if election.start_date is None or election.end_date is None:
            return False

        local = _to_local(now, tz)
        today = local.date()
        now_minutes = local.hour * 60 + local.minute
        start_minutes = _minutes(election.start_time, 0)
        end_minutes = _minutes(election.end_time, 23 * 60 + 59)
        start, end = election.start_date, election.end_date

        if start < today < end:
            return True
        if today == start == end:
            return start_minutes <= now_minutes <= end_minutes
        if today == start and start < end:
            return now_minutes >= start_minutes
        if today == end and start < end:
            return now_minutes <= end_minutes
        return False

    return is_open
