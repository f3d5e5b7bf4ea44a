import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from .config import CALENDARS, DEFAULT_ENGINE_CONFIG, EngineConfig
from .dates import month_key, normalize_date, week_start
from .errors import ConfigError
from .schema import classify
from .utils import lenient_number

log = logging.getLogger("datadash.timeseries")

Row = Mapping[str, Any]


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def parse(cls, value: Union[str, "Granularity"]) -> "Granularity":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigError(f"Unknown granularity: {value}")


@dataclass(frozen=True)
class TimeSeriesPoint:
    bucket_key: str
    total: float
    auxiliary_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SeriesSource:
    rows: Sequence[Row]
    value_column: Optional[str]
    date_column: Optional[str] = None


@dataclass(frozen=True)
class AlignedSeries:
    keys: Tuple[str, ...]
    series: Dict[str, Tuple[TimeSeriesPoint, ...]]

    def totals(self, series_id: str) -> Tuple[float, ...]:
        return tuple(p.total for p in self.series.get(series_id, ()))


def bucket_key(canonical: str, granularity: Granularity) -> str:
    if granularity == Granularity.DAY:
        return canonical
    if granularity == Granularity.WEEK:
        return week_start(canonical)
    return month_key(canonical)


def _bucket_frame(rows: Sequence[Row], value_column: Optional[str], granularity: Granularity,
                  date_column: Optional[str], cfg: EngineConfig) -> pd.DataFrame:
    if date_column is None and rows:
        date_column = classify(rows, config=cfg).date_column
    if date_column is None:
        return pd.DataFrame({"key": [], "value": []})

    keys, values = [], []
    for r in rows:
        canonical = normalize_date(r.get(date_column), cfg)
        if canonical is None:
            continue
        keys.append(bucket_key(canonical, granularity))
        values.append(lenient_number(r.get(value_column)) if value_column else 0.0)
    return pd.DataFrame({"key": keys, "value": values})


def _points(df: pd.DataFrame) -> Dict[str, TimeSeriesPoint]:
    if df.empty:
        return {}
    grouped = df.groupby("key", sort=True)["value"].agg(["sum", "size"])
    return {
        str(k): TimeSeriesPoint(bucket_key=str(k), total=float(total), auxiliary_count=int(size))
        for k, total, size in grouped.itertuples(name=None)
    }


def bucketize(rows: Sequence[Row], value_column: Optional[str], granularity: Union[str, Granularity] = Granularity.MONTH,
              date_column: Optional[str] = None, config: Optional[EngineConfig] = None) -> Tuple[TimeSeriesPoint, ...]:
    """Per-bucket totals of ``value_column``; rows whose date does not parse are skipped."""
    g = Granularity.parse(granularity)
    points = _points(_bucket_frame(rows, value_column, g, date_column, config or DEFAULT_ENGINE_CONFIG))
    return tuple(points[k] for k in sorted(points))


def bucketize_many(sources: Mapping[str, SeriesSource], granularity: Union[str, Granularity] = Granularity.MONTH,
                   calendar: Optional[str] = None, config: Optional[EngineConfig] = None) -> AlignedSeries:
    """Bucket several datasets onto the union of their bucket keys, zero-filling gaps."""
    cfg = config or DEFAULT_ENGINE_CONFIG
    calendar = calendar or cfg.calendar
    if calendar not in CALENDARS:
        raise ConfigError(f"Unsupported calendar: {calendar}")
    g = Granularity.parse(granularity)

    per_source = {
        sid: _points(_bucket_frame(src.rows, src.value_column, g, src.date_column, cfg))
        for sid, src in sources.items()
    }
    keys = tuple(sorted(set().union(*[p.keys() for p in per_source.values()]))) if per_source else ()

    series = {}
    for sid, points in per_source.items():
        series[sid] = tuple(points.get(k) or TimeSeriesPoint(k, 0.0, 0) for k in keys)
    log.debug(f"Aligned {len(series)} series on {len(keys)} {g.value} buckets")
    return AlignedSeries(keys=keys, series=series)
