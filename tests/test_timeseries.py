import pytest

from datadash.config import EngineConfig
from datadash.errors import ConfigError
from datadash.timeseries import Granularity, SeriesSource, bucketize, bucketize_many


def test_month_buckets(sales_rows):
    points = bucketize(sales_rows, "Quantity", "month", date_column="Date")
    assert [(p.bucket_key, p.total, p.auxiliary_count) for p in points] == [
        ("2024-03", 14.0, 2),
        ("2024-04", 25.0, 2),
        ("2024-05", 0.0, 1),
    ]


def test_bucket_total_matches_rows_with_valid_dates():
    rows = [
        {"Date": "2024-01-05", "Qty": 1},
        {"Date": "garbage 1", "Qty": 100},
        {"Date": "2024-01-20", "Qty": 2},
    ]
    points = bucketize(rows, "Qty", Granularity.MONTH, date_column="Date")
    assert sum(p.total for p in points) == 3.0


def test_week_buckets_start_on_sunday():
    rows = [
        {"Date": "2024-03-09", "Qty": 1},  # Saturday
        {"Date": "2024-03-10", "Qty": 2},  # Sunday
        {"Date": "2024-03-16", "Qty": 3},  # Saturday
    ]
    points = bucketize(rows, "Qty", "week", date_column="Date")
    assert [(p.bucket_key, p.total) for p in points] == [("2024-03-03", 1.0), ("2024-03-10", 5.0)]


def test_day_buckets_are_sorted():
    rows = [{"Date": "2024-03-02", "Qty": 1}, {"Date": "2024-03-01", "Qty": 2}]
    assert [p.bucket_key for p in bucketize(rows, "Qty", "day", date_column="Date")] == ["2024-03-01", "2024-03-02"]


def test_date_column_is_detected():
    rows = [{"Order Date": "2024-02-01", "Qty": 4}]
    assert bucketize(rows, "Qty")[0].bucket_key == "2024-02"


def test_no_date_column_gives_no_points():
    assert bucketize([{"Name": "x", "Qty": 1}], "Qty") == ()


def test_unknown_granularity():
    with pytest.raises(ConfigError):
        bucketize([], "Qty", "fortnight")


def test_many_series_share_union_of_keys():
    a = [{"Date": "2024-01-10", "Qty": 5}, {"Date": "2024-03-01", "Qty": 1}]
    b = [{"Date": "2024-02-14", "Qty": 7}]
    aligned = bucketize_many({
        "a": SeriesSource(a, "Qty", "Date"),
        "b": SeriesSource(b, "Qty", "Date"),
    })
    assert aligned.keys == ("2024-01", "2024-02", "2024-03")
    assert aligned.totals("a") == (5.0, 0.0, 1.0)
    assert aligned.totals("b") == (0.0, 7.0, 0.0)
    assert aligned.series["b"][0].auxiliary_count == 0


def test_many_with_no_sources():
    aligned = bucketize_many({})
    assert aligned.keys == ()
    assert aligned.series == {}


def test_unsupported_calendar():
    with pytest.raises(ConfigError):
        bucketize_many({}, "month", calendar="fiscal-india")


def test_two_digit_years_follow_config():
    rows = [{"Date": "15/06/45", "Qty": 2}]
    assert bucketize(rows, "Qty")[0].bucket_key == "1945-06"
    cfg = EngineConfig(two_digit_year_pivot=50)
    assert bucketize(rows, "Qty", config=cfg)[0].bucket_key == "2045-06"
    aligned = bucketize_many({"a": SeriesSource(rows, "Qty")}, "month", config=cfg)
    assert aligned.keys == ("2045-06",)


def test_time_of_day_column_is_not_bucketed():
    assert bucketize([{"Time": "10:45", "Qty": 1}, {"Time": "12:30", "Qty": 2}], "Qty") == ()
