"""
Tests for calendar period helpers and lookback windows.
"""

from datetime import date, datetime

import pytest

from trade_insight.analytics.windows import (
    WindowError,
    is_within_window,
    parse_window,
    resolve_window_start,
)
from trade_insight.models import BucketGranularity, LookbackWindow
from trade_insight.periods import (
    month_bounds,
    month_key,
    period_of,
    quarter_bounds,
    quarter_key,
    quarter_of,
    to_date,
)


class TestPeriods:
    """Tests for month and quarter helpers."""

    def test_to_date_accepts_common_inputs(self):
        assert to_date(datetime(2024, 3, 5, 23, 59)) == date(2024, 3, 5)
        assert to_date("2024-03-05") == date(2024, 3, 5)
        assert to_date("2024-03-05T10:00:00Z") == date(2024, 3, 5)

    def test_to_date_rejects_other_types(self):
        with pytest.raises(TypeError):
            to_date(20240305)

    def test_quarters(self):
        assert quarter_of(date(2024, 1, 1)) == 1
        assert quarter_of(date(2024, 3, 31)) == 1
        assert quarter_of(date(2024, 4, 1)) == 2
        assert quarter_of(date(2024, 12, 31)) == 4

    def test_keys(self):
        assert month_key(date(2024, 2, 10)) == "2024-02"
        assert quarter_key(date(2024, 8, 1)) == "2024-Q3"

    def test_month_bounds_leap_year(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
        assert month_bounds(2023, 2) == (date(2023, 2, 1), date(2023, 2, 28))

    def test_quarter_bounds(self):
        assert quarter_bounds(2024, 2) == (date(2024, 4, 1), date(2024, 6, 30))
        assert quarter_bounds(2024, 4) == (date(2024, 10, 1), date(2024, 12, 31))

    def test_quarter_bounds_invalid(self):
        with pytest.raises(ValueError):
            quarter_bounds(2024, 5)

    def test_period_of(self):
        assert period_of(date(2024, 5, 17), BucketGranularity.QUARTER) == (
            "2024-Q2", 2024, 2, date(2024, 4, 1), date(2024, 6, 30),
        )
        assert period_of(date(2024, 5, 17), BucketGranularity.MONTH) == (
            "2024-05", 2024, 5, date(2024, 5, 1), date(2024, 5, 31),
        )


class TestWindows:
    """Tests for lookback window resolution."""

    def test_parse_window(self):
        assert parse_window("ytd") == LookbackWindow.YEAR_TO_DATE
        assert parse_window(" 6m ") == LookbackWindow.SIX_MONTHS
        assert parse_window(LookbackWindow.ALL) == LookbackWindow.ALL

    def test_unknown_window(self):
        with pytest.raises(WindowError):
            parse_window("10Y")

    def test_missing_reference_time(self):
        with pytest.raises(WindowError):
            resolve_window_start(LookbackWindow.ONE_YEAR, None)

    def test_window_error_is_value_error(self):
        assert issubclass(WindowError, ValueError)

    def test_ytd(self):
        assert resolve_window_start("YTD", date(2024, 6, 1)) == date(2024, 1, 1)

    def test_all_has_no_start(self):
        assert resolve_window_start("ALL", date(2024, 6, 1)) is None

    def test_calendar_month_subtraction(self):
        """Month arithmetic clamps to the end of shorter months."""
        assert resolve_window_start("1M", date(2024, 3, 31)) == date(2024, 2, 29)
        assert resolve_window_start("6M", date(2024, 8, 31)) == date(2024, 2, 29)

    def test_year_subtraction_from_leap_day(self):
        assert resolve_window_start("1Y", date(2024, 2, 29)) == date(2023, 2, 28)
        assert resolve_window_start("5Y", datetime(2024, 6, 1, 15, 0)) == date(2019, 6, 1)

    def test_every_window_resolves(self):
        reference = date(2024, 6, 1)
        for window in LookbackWindow:
            start = resolve_window_start(window, reference)
            assert start is None or start <= reference

    def test_is_within_window(self):
        start = date(2024, 1, 1)

        assert is_within_window(date(2024, 1, 1), start)
        assert not is_within_window(datetime(2023, 12, 31, 23, 59), start)
        assert is_within_window(date(1990, 1, 1), None)
