"""Tests for the election schedule predicates."""

from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from voter_otp.services.schedule import always_open, voting_window


def election(start, end, start_time=time(8, 0), end_time=time(17, 0)):
    return SimpleNamespace(start_date=start, end_date=end, start_time=start_time, end_time=end_time)


MULTI_DAY = election(date(2026, 3, 10), date(2026, 3, 12))
SAME_DAY = election(date(2026, 3, 10), date(2026, 3, 10))


def test_always_open_ignores_schedule():
    assert always_open(SAME_DAY, datetime(1999, 1, 1)) is True


@pytest.mark.parametrize("now, expected", [
    (datetime(2026, 3, 10, 7, 59), False),   # first day, before opening
    (datetime(2026, 3, 10, 8, 0), True),     # first day, opening minute
    (datetime(2026, 3, 10, 23, 30), True),   # first day, late evening
    (datetime(2026, 3, 11, 3, 0), True),     # middle day, any hour
    (datetime(2026, 3, 12, 17, 0), True),    # last day, closing minute
    (datetime(2026, 3, 12, 17, 1), False),   # last day, after closing
    (datetime(2026, 3, 9, 12, 0), False),    # before the range
    (datetime(2026, 3, 13, 12, 0), False),   # after the range
])
def test_multi_day_window(now, expected):
    assert voting_window()(MULTI_DAY, now) is expected


@pytest.mark.parametrize("now, expected", [
    (datetime(2026, 3, 10, 7, 59), False),
    (datetime(2026, 3, 10, 8, 0), True),
    (datetime(2026, 3, 10, 12, 0), True),
    (datetime(2026, 3, 10, 17, 0), True),
    (datetime(2026, 3, 10, 17, 1), False),
])
def test_same_day_window(now, expected):
    assert voting_window()(SAME_DAY, now) is expected


def test_missing_times_cover_whole_days():
    open_all_day = election(date(2026, 3, 10), date(2026, 3, 10), start_time=None, end_time=None)
    is_open = voting_window()

    assert is_open(open_all_day, datetime(2026, 3, 10, 0, 0))
    assert is_open(open_all_day, datetime(2026, 3, 10, 23, 59))


def test_missing_dates_mean_closed():
    assert voting_window()(election(None, None), datetime(2026, 3, 10, 12, 0)) is False


def test_utc_now_is_shifted_to_election_timezone():
    # 12:30 UTC is 07:30 in Bogota (UTC-5), before the 08:00 opening
    is_open = voting_window("America/Bogota")
    assert is_open(SAME_DAY, datetime(2026, 3, 10, 12, 30)) is False
    assert is_open(SAME_DAY, datetime(2026, 3, 10, 13, 0)) is True
