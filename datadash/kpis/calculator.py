"""Named KPI computation on top of column lookup and filtering.

A KPI never raises on dirty or incomplete uploads: a column it cannot
resolve yields ``no_data`` with a reason, and a filter that removes every
row yields ``empty``. Both are distinct from a genuine zero.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..aggregate import grand_total
from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..filters import EMPTY_STATE, FilterEngine, FilterState, derive_filtered_rows
from ..schema import ColumnRegistry, classify
from ..utils import as_text, lenient_number
from .base import STATUS_EMPTY, STATUS_NO_DATA, STATUS_OK, KPISpec, KPIValue, Reducer, Row
from .formatting import format_value

log = logging.getLogger("datadash.kpis")


def sum_of(alias: str) -> Reducer:
    def reduce(rows, cols):
        return grand_total(rows, cols[alias])
    return reduce


def mean_of(alias: str) -> Reducer:
    def reduce(rows, cols):
        return grand_total(rows, cols[alias]) / len(rows) if rows else 0.0
    return reduce


def count_rows() -> Reducer:
    def reduce(rows, cols):
        return float(len(rows))
    return reduce


def distinct_of(alias: str) -> Reducer:
    def reduce(rows, cols):
        return float(len({as_text(r.get(cols[alias])) for r in rows} - {""}))
    return reduce


def difference_of(minuend: str, subtrahend: str) -> Reducer:
    def reduce(rows, cols):
        return grand_total(rows, cols[minuend]) - grand_total(rows, cols[subtrahend])
    return reduce


def ratio_percent(numerator: str, denominator: str) -> Reducer:
    """100 * sum(numerator) / sum(denominator); 0.0 when the denominator sums to zero."""
    def reduce(rows, cols):
        den = grand_total(rows, cols[denominator])
        if den == 0:
            return 0.0
        return grand_total(rows, cols[numerator]) / den * 100.0
    return reduce


def on_claim_rows(reducer: Reducer, eligible: str = "eligible", received: str = "received") -> Reducer:
    """Apply ``reducer`` only to rows with a positive eligible or received amount."""
    def reduce(rows, cols):
        e, r = cols[eligible], cols[received]
        kept = [row for row in rows if lenient_number(row.get(e)) > 0 or lenient_number(row.get(r)) > 0]
        return reducer(kept, cols)
    return reduce


def unpack_source(source: Any, config: Optional[EngineConfig] = None) -> Tuple[Sequence[Row], ColumnRegistry]:
    if hasattr(source, "rows") and hasattr(source, "columns"):
        return source.rows, source.columns
    rows = list(source or [])
    return rows, classify(rows, config=config)


class KPICalculator:
    def __init__(self, filter_engine: Optional[FilterEngine] = None, config: Optional[EngineConfig] = None,
                 currency: Optional[str] = None):
        self.filter_engine = filter_engine
        self.cfg = config or (filter_engine.cfg if filter_engine else DEFAULT_ENGINE_CONFIG)
        self.currency = currency or self.cfg.currency

    def _state(self, state: Optional[FilterState]) -> FilterState:
        if state is not None:
            return state
        if self.filter_engine is not None:
            return self.filter_engine.state
        return EMPTY_STATE

    def resolve(self, registry: ColumnRegistry, spec: KPISpec) -> Tuple[Dict[str, str], List[str], List[str]]:
        resolved, missing, ambiguous = {}, [], []
        for alias, (role, keywords) in spec.required.items():
            m = registry.match(role, keywords, strict=True)
            if not m.found:
                missing.append(alias)
                continue
            resolved[alias] = m.column
            if m.ambiguous:
                ambiguous.append(f"{alias}: {m.column} (also {', '.join(m.alternatives)})")
        return resolved, missing, ambiguous

    def filtered(self, source: Any, state: Optional[FilterState] = None) -> List[Row]:
        rows, registry = unpack_source(source, self.cfg)
        return derive_filtered_rows(rows, self._state(state), registry, self.cfg)

    def compute(self, source: Any, spec: KPISpec, state: Optional[FilterState] = None) -> KPIValue:
        rows, registry = unpack_source(source, self.cfg)
        if not rows:
            return KPIValue(spec.name, spec.label, STATUS_EMPTY, reason="Dataset is empty")

        cols, missing, ambiguous = self.resolve(registry, spec)
        used = tuple(sorted(cols.items()))

        if missing:
            keywords = [spec.required[a][1][0] for a in missing]
            reason = f"Missing required column(s): {', '.join(keywords)}"
            log.warning(f"KPI {spec.name}: {reason}")
            return KPIValue(spec.name, spec.label, STATUS_NO_DATA, reason=reason, used_columns=used)

        filtered = derive_filtered_rows(rows, self._state(state), registry, self.cfg)
        if not filtered:
            return KPIValue(spec.name, spec.label, STATUS_EMPTY, reason="No rows match the current filters",
                            used_columns=used,
                            ambiguous=tuple(ambiguous))

        value = float(spec.reducer(filtered, cols))
        return KPIValue(
            name=spec.name,
            label=spec.label,
            status=STATUS_OK,
            value=round(value, 4),
            display=format_value(value, spec.format_hint, self.currency),
            used_columns=used,
            ambiguous=tuple(ambiguous),
        )

    def compute_all(self, source: Any, specs: Iterable[KPISpec], state: Optional[FilterState] = None) -> Dict[str, KPIValue]:
        return {spec.name: self.compute(source, spec, state) for spec in specs}
