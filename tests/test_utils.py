from datetime import date

import pytest

from mortgage_calc.utils import (
    add_months,
    current_month,
    float_from_str,
    months_between,
    normalize_to_month_start,
    parse_iso_date,
    parse_year_month,
)


class TestParseYearMonth:
    def test_valid(self):
        assert parse_year_month("2024-03") == date(2024, 3, 1)

    def test_day_is_ignored(self):
        assert parse_year_month("2024-03-27") == date(2024, 3, 1)

    @pytest.mark.parametrize("value", ["2024", "2024-13", "march", ""])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_year_month(value)


class TestParseIsoDate:
    def test_browser_timestamp(self):
        assert parse_iso_date("2024-03-15T23:59:59.000Z") == date(2024, 3, 15)

    def test_plain_date(self):
        assert parse_iso_date("2024-03-15") == date(2024, 3, 15)

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_iso_date("15/03/2024")


class TestMonths:
    def test_add_months_across_years(self):
        assert add_months(date(2024, 11, 1), 3) == date(2025, 2, 1)

    def test_add_months_normalizes_day(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 1)

    def test_months_between(self):
        assert months_between(date(2024, 3, 1), date(2025, 1, 31)) == 10
        assert months_between(date(2024, 3, 1), date(2024, 2, 1)) == -1

    def test_normalize(self):
        assert normalize_to_month_start(date(2024, 3, 15)) == date(2024, 3, 1)
        assert current_month(date(2024, 3, 15)) == date(2024, 3, 1)


class TestFloatFromStr:
    def test_thousands_separator(self):
        assert float_from_str("300,000") == 300000.0

    def test_empty_is_zero(self):
        assert float_from_str("  ") == 0.0

    def test_invalid(self):
        with pytest.raises(ValueError):
            float_from_str("abc")
