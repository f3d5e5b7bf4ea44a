from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .config import EngineConfig
from .constants import UNKNOWN_GROUP
from .dates import normalize_date
from .utils import as_text, lenient_number

Row = Mapping[str, Any]

ORDERINGS = ("total", "key", "none")


@dataclass(frozen=True)
class AggregationRow:
    group_key: str
    total: float
    count: int
    average: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def group_key(value: Any) -> str:
    return as_text(value) or UNKNOWN_GROUP


def _frame(rows: Sequence[Row], category_column: str, value_column: Optional[str]) -> pd.DataFrame:
    keys = [group_key(r.get(category_column)) for r in rows]
    if value_column is None:
        values = [1.0] * len(rows)
    else:
        values = [lenient_number(r.get(value_column)) for r in rows]
    return pd.DataFrame({"key": keys, "value": values})


def _reduce(df: pd.DataFrame, order: str) -> Tuple[AggregationRow, ...]:
    if order not in ORDERINGS:
        raise ValueError(f"Unknown ordering '{order}', expected one of {ORDERINGS}")
    if df.empty:
        return ()

    # sort=False keeps first-seen group order, which the stable sort preserves on ties
    grouped = df.groupby("key", sort=False)["value"].agg(["sum", "size"]).reset_index()
    if order == "total":
        grouped = grouped.sort_values("sum", ascending=False, kind="stable")
    elif order == "key":
        grouped = grouped.sort_values("key", kind="stable")

    out = []
    for key, total, count in grouped[["key", "sum", "size"]].itertuples(index=False, name=None):
        total = float(total)
        count = int(count)
        out.append(AggregationRow(group_key=str(key), total=total, count=count,
                                  average=total / count if count else 0.0))
    return tuple(out)


def aggregate_by_category(rows: Sequence[Row], category_column: str, value_column: str,
                          order: str = "total") -> Tuple[AggregationRow, ...]:
    """Group ``rows`` by ``category_column`` and sum ``value_column`` per group."""
    return _reduce(_frame(rows, category_column, value_column), order)


def aggregate_by_column(rows: Sequence[Row], column: str, order: str = "total") -> Tuple[AggregationRow, ...]:
    """Row counts per value of ``column``; used when no numeric column exists."""
    return _reduce(_frame(rows, column, None), order)


def grand_total(rows: Sequence[Row], value_column: str) -> float:
    return float(sum(lenient_number(r.get(value_column)) for r in rows))


def unique_values(rows: Sequence[Row], column: str) -> List[str]:
    return sorted({as_text(r.get(column)) for r in rows} - {""})


def date_span(rows: Sequence[Row], date_column: Optional[str], config: Optional[EngineConfig] = None) -> Tuple[str, str]:
    if not date_column:
        return "", ""
    dates = [d for d in (normalize_date(r.get(date_column), config) for r in rows) if d]
    if not dates:
        return "", ""
    return min(dates), max(dates)
