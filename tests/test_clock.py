"""Tests for time helpers."""

from datetime import date, datetime, timedelta, timezone

from wealthline.clock import add_months, month_end, month_ends_between, to_utc_naive


def test_date_means_end_of_day():
    assert to_utc_naive(date(2024, 2, 29)) == datetime(2024, 2, 29, 23, 59, 59, 999999)


def test_aware_datetimes_are_converted_to_utc():
    aware = datetime(2024, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=3)))

    assert to_utc_naive(aware) == datetime(2023, 12, 31, 22, 0)


def test_month_end_handles_leap_years():
    assert month_end(2024, 2).day == 29
    assert month_end(2023, 2).day == 28


def test_add_months_clamps_day():
    assert add_months(datetime(2024, 1, 31, 8, 0), 1) == datetime(2024, 2, 29, 8, 0)
    assert add_months(datetime(2024, 11, 30), 3) == datetime(2025, 2, 28)


def test_month_ends_between_crosses_years_and_excludes_now():
    ends = list(month_ends_between(datetime(2023, 11, 20), datetime(2024, 2, 29, 23, 59, 59, 999999)))

    assert ends == [month_end(2023, 11), month_end(2023, 12), month_end(2024, 1)]
