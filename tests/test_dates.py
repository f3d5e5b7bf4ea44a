from datetime import date, datetime

import pandas as pd
import pytest

from datadash.config import EngineConfig
from datadash.dates import month_key, month_name, normalize_date, parse_month_name, week_start


@pytest.mark.parametrize("value, expected", [
    ("2024-03-15", "2024-03-15"),
    ("01/03/2024", "2024-03-01"),
    ("01-03-2024", "2024-03-01"),
    ("12/25/2024", "2024-12-25"),
    ("2024/3/5", "2024-03-05"),
    ("05/06/24", "2024-06-05"),
    ("05/06/85", "1985-06-05"),
    (45292, "2024-01-01"),
    (45292.75, "2024-01-01"),
    (datetime(2024, 2, 29, 13, 30), "2024-02-29"),
    (date(2023, 12, 31), "2023-12-31"),
    (pd.Timestamp("2024-07-04"), "2024-07-04"),
])
def test_normalize_date_formats(value, expected):
    assert normalize_date(value) == expected


@pytest.mark.parametrize("value", [
    None,
    "",
    "   ",
    "not a date",
    "March",
    "2024-02-30",
    "31/04/2024",
    "13/25/2024",
    "12345",
    0,
    -5,
    100000,
    float("nan"),
    True,
])
def test_normalize_date_rejects(value):
    assert normalize_date(value) is None


def test_day_first_wins_when_both_readings_are_valid():
    assert normalize_date("02/03/2024") == "2024-03-02"


def test_hyphenated_day_month_does_not_fall_back_to_month_first():
    assert normalize_date("12-25-2024") is None


def test_year_bounds_come_from_config():
    cfg = EngineConfig(min_year=2000, max_year=2030)
    assert normalize_date("1999-12-31", cfg) is None
    assert normalize_date("2030-01-01", cfg) == "2030-01-01"


def test_two_digit_year_pivot_is_configurable():
    cfg = EngineConfig(two_digit_year_pivot=50)
    assert normalize_date("01/01/45", cfg) == "2045-01-01"
    assert normalize_date("01/01/55", cfg) == "1955-01-01"


def test_normalize_is_idempotent():
    for raw in ["01/03/2024", 45397, "2024/3/5"]:
        once = normalize_date(raw)
        assert normalize_date(once) == once


def test_week_start_is_sunday():
    # 2024-03-15 is a Friday
    assert week_start("2024-03-15") == "2024-03-10"
    assert week_start("2024-03-10") == "2024-03-10"
    assert week_start("2024-03-16") == "2024-03-10"


def test_month_helpers():
    assert month_key("2024-03-15") == "2024-03"
    assert month_name("2024-03-15") == "March"
    assert parse_month_name("mar") == 3
    assert parse_month_name(" December ") == 12
    assert parse_month_name("Smarch") is None


@pytest.mark.parametrize("value, expected", [
    ("25/12/2024", "2024-12-25"),
    ("13-01-2024", "2024-01-13"),
    ("31/01/2024", "2024-01-31"),
    ("12/25/2024", "2024-12-25"),
])
def test_unambiguous_day_and_month_orders(value, expected):
    assert normalize_date(value) == expected


@pytest.mark.parametrize("value", ["12:30", "10:45:00", "9:05 PM"])
def test_times_without_a_date_are_rejected(value):
    assert normalize_date(value) is None


def test_free_form_dates_with_a_year_still_parse():
    assert normalize_date("15 March 2024") == "2024-03-15"
