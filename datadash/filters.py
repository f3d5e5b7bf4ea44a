"""Composable dashboard filters.

A :class:`FilterState` is an immutable value. The :class:`FilterEngine` holds
exactly one of them and only ever swaps it for a new one, so every filtered
view is a pure function of ``(rows, state)``.
"""
import logging
import re
from collections import abc
from dataclasses import InitVar, dataclass, fields, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .constants import MONTH_NAMES
from .dates import month_key, month_name, normalize_date, parse_month_name
from .errors import FilterStateError
from .schema import ROLE_RULES, ColumnRegistry, ColumnRole, classify, resolve_role
from .utils import as_text

log = logging.getLogger("datadash.filters")

Row = Mapping[str, Any]

_MONTH_KEY_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

COMPONENTS = ("date_range", "selected_months", "selected_values", "drill_down")


@dataclass(frozen=True)
class DateRange:
    start: str = ""
    end: str = ""
    config: InitVar[Optional[EngineConfig]] = None

    def __post_init__(self, config):
        start = self._bound(self.start, "start", config)
        end = self._bound(self.end, "end", config)
        if not start and not end:
            raise FilterStateError("Date range needs a start or an end")
        if start and end and start > end:
            raise FilterStateError("Start date cannot be after end date")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @staticmethod
    def _bound(value: Any, which: str, config: Optional[EngineConfig]) -> str:
        if value in (None, ""):
            return ""
        canonical = normalize_date(value, config)
        if canonical is None:
            raise FilterStateError(f"Invalid {which} date: {value!r}")
        return canonical

    def contains(self, canonical: str) -> bool:
        if self.start and canonical < self.start:
            return False
        if self.end and canonical > self.end:
            return False
        return True


def _coerce_range(value: Any, config: Optional[EngineConfig] = None) -> Optional[DateRange]:
    if value is None or isinstance(value, DateRange):
        return value
    if isinstance(value, Mapping):
        if not value.get("start") and not value.get("end"):
            return None
        return DateRange(value.get("start", ""), value.get("end", ""), config)
    if isinstance(value, (tuple, list)) and len(value) == 2:
        if not value[0] and not value[1]:
            return None
        return DateRange(value[0], value[1], config)
    raise FilterStateError(f"date_range must be a DateRange, mapping or (start, end) pair, got {value!r}")


def _coerce_list(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, abc.Iterable):
        raise FilterStateError(f"{what} must be a list of values, got {value!r}")
    return list(value)


def _coerce_month(value: Any) -> str:
    text = as_text(value)
    if _MONTH_KEY_RE.match(text):
        return text
    n = parse_month_name(text)
    if n is None:
        raise FilterStateError(f"Unknown month: {value!r}")
    return MONTH_NAMES[n - 1]


def _month_order(month: str) -> Tuple[int, Any]:
    # calendar names first, then YYYY-MM keys
    if _MONTH_KEY_RE.match(month):
        return 1, month
    return 0, MONTH_NAMES.index(month)


def _coerce_pairs(value: Any, what: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return value
    if isinstance(value, (tuple, list)):
        try:
            return dict(value)
        except (TypeError, ValueError):
            pass
    raise FilterStateError(f"{what} must be a mapping, got {value!r}")


@dataclass(frozen=True)
class FilterState:
    date_range: Optional[DateRange] = None
    selected_months: Tuple[str, ...] = ()
    selected_values: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    drill_down: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self):
        months = tuple(sorted({_coerce_month(m) for m in _coerce_list(self.selected_months, "selected_months")},
                              key=_month_order))

        values = []
        for key, vals in _coerce_pairs(self.selected_values, "selected_values").items():
            cleaned = tuple(sorted({t for t in (as_text(v) for v in _coerce_list(vals, f"selected_values[{key!r}]")) if t}))
            if cleaned:
                values.append((str(key), cleaned))

        drill = [(str(k), as_text(v)) for k, v in _coerce_pairs(self.drill_down, "drill_down").items()]

        object.__setattr__(self, "date_range", _coerce_range(self.date_range))
        object.__setattr__(self, "selected_months", months)
        object.__setattr__(self, "selected_values", tuple(sorted(values)))
        object.__setattr__(self, "drill_down", tuple(sorted(drill)))

    @property
    def is_active(self) -> bool:
        return bool(self.date_range or self.selected_months or self.selected_values or self.drill_down)

    @property
    def values_map(self) -> Dict[str, Tuple[str, ...]]:
        return dict(self.selected_values)

    @property
    def drill_down_map(self) -> Dict[str, str]:
        return dict(self.drill_down)

    def with_date_range(self, start: Any = "", end: Any = "", config: Optional[EngineConfig] = None) -> "FilterState":
        if start in (None, "") and end in (None, ""):
            return replace(self, date_range=None)
        return replace(self, date_range=DateRange(start, end, config))

    def with_months(self, months: Iterable[str]) -> "FilterState":
        return replace(self, selected_months=tuple(months))

    def with_values(self, key: str, values: Iterable[Any]) -> "FilterState":
        current = self.values_map
        current[key] = tuple(_coerce_list(values, f"selected_values[{key!r}]"))
        return replace(self, selected_values=current)

    def with_drill_down(self, key: str, value: Any) -> "FilterState":
        current = self.drill_down_map
        current[key] = value
        return replace(self, drill_down=current)

    def without_drill_down(self, key: Optional[str] = None) -> "FilterState":
        if key is None:
            return replace(self, drill_down=())
        current = self.drill_down_map
        current.pop(key, None)
        return replace(self, drill_down=current)

    def reset(self, component: str) -> "FilterState":
        if component not in COMPONENTS:
            raise FilterStateError(f"Unknown filter component: {component}")
        empty = {f.name: f.default for f in fields(self)}
        return replace(self, **{component: empty[component]})

    def cleared(self) -> "FilterState":
        return FilterState()

    def to_dict(self) -> Dict[str, Any]:
        dr = self.date_range
        return {
            "date_range": {"start": dr.start, "end": dr.end} if dr else None,
            "selected_months": list(self.selected_months),
            "selected_values": {k: list(v) for k, v in self.selected_values},
            "drill_down": dict(self.drill_down),
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "FilterState":
        data = data or {}
        unknown = set(data) - set(COMPONENTS)
        if unknown:
            raise FilterStateError(f"Unknown filter components: {sorted(unknown)}")
        return cls(**data)


EMPTY_STATE = FilterState()


def has_active_filters(state: FilterState) -> bool:
    return state.is_active


def _month_number(value: Any) -> Optional[int]:
    text = as_text(value)
    if text.isdigit() and 1 <= int(text) <= 12:
        return int(text)
    return parse_month_name(text)


def _month_column(registry: ColumnRegistry, date_col: Optional[str]) -> Optional[str]:
    """Column named exactly "Month", else a categorical column containing "month".

    Numeric columns such as "Months Since Purchase" only qualify on an exact name.
    """
    keywords = ROLE_RULES["month"][1]
    exact = [m for m in (registry.match(None, (kw,), strict=True) for kw in keywords) if m.exact]
    m = exact[0] if exact else registry.match(ColumnRole.CATEGORICAL, keywords, strict=True)
    return m.column if m.column != date_col else None


def _month_matcher(month_col: Optional[str], date_col: Optional[str], selected: Sequence[str],
                   cfg: EngineConfig) -> Callable[[Row], bool]:
    names = {m for m in selected if not _MONTH_KEY_RE.match(m)}
    keys = {m for m in selected if _MONTH_KEY_RE.match(m)}

    def matches(row: Row) -> bool:
        if month_col:
            raw = row.get(month_col)
            if as_text(raw) in keys:
                return True
            n = _month_number(raw)
            if n is not None and MONTH_NAMES[n - 1] in names:
                return True
        if date_col:
            canonical = normalize_date(row.get(date_col), cfg)
            if canonical and (month_name(canonical) in names or month_key(canonical) in keys):
                return True
        return False
    return matches


def _in_range(value: Any, date_range: DateRange, cfg: EngineConfig) -> bool:
    canonical = normalize_date(value, cfg)
    return canonical is not None and date_range.contains(canonical)


def derive_filtered_rows(rows: Sequence[Row], state: FilterState, columns: Optional[ColumnRegistry] = None,
                         config: Optional[EngineConfig] = None) -> List[Row]:
    """Rows satisfying every active predicate group of ``state``.

    Groups apply in a fixed order (date range, months, categorical values,
    drill-down) and each one only narrows. A group whose column does not
    exist in this dataset is not applied to it.
    """
    if not isinstance(state, FilterState):
        raise FilterStateError(f"Expected FilterState, got {type(state).__name__}")
    if not state.is_active or not rows:
        return list(rows)

    cfg = config or DEFAULT_ENGINE_CONFIG
    registry = columns or classify(rows, config=cfg)
    out = list(rows)
    date_col = registry.date_column

    if state.date_range and date_col:
        out = [r for r in out if _in_range(r.get(date_col), state.date_range, cfg)]

    if state.selected_months:
        month_col = _month_column(registry, date_col)
        if month_col or date_col:
            matches = _month_matcher(month_col, date_col, state.selected_months, cfg)
            out = [r for r in out if matches(r)]

    for key, values in state.selected_values:
        col = resolve_role(registry, key)
        if col is None:
            log.debug(f"No column for selection '{key}'; selection not applied")
            continue
        wanted = {v.casefold() for v in values}
        out = [r for r in out if as_text(r.get(col)).casefold() in wanted]

    for key, value in state.drill_down:
        if key not in registry:
            log.debug(f"Drill-down column '{key}' not in dataset; constraint not applied")
            continue
        out = [r for r in out if as_text(r.get(key)) == value]

    log.debug(f"Filters applied: {len(rows)} -> {len(out)} rows")
    return out


StateListener = Callable[[FilterState, FilterState], None]


class FilterEngine:
    def __init__(self, state: Optional[FilterState] = None, config: Optional[EngineConfig] = None):
        self.cfg = config or DEFAULT_ENGINE_CONFIG
        self._state = state or EMPTY_STATE
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> FilterState:
        return self._state

    @property
    def has_active_filters(self) -> bool:
        return has_active_filters(self._state)

    def replace(self, new_state: FilterState) -> FilterState:
        if not isinstance(new_state, FilterState):
            raise FilterStateError(f"Expected FilterState, got {type(new_state).__name__}")
        old = self._state
        if new_state == old:
            return old
        self._state = new_state
        for listener in list(self._listeners):
            listener(old, new_state)
        return new_state

    def update(self, **components: Any) -> FilterState:
        unknown = set(components) - set(COMPONENTS)
        if unknown:
            raise FilterStateError(f"Unknown filter components: {sorted(unknown)}")
        if "date_range" in components:
            components["date_range"] = _coerce_range(components["date_range"], self.cfg)
        return self.replace(replace(self._state, **components))

    def clear(self) -> FilterState:
        return self.replace(EMPTY_STATE)

    def reset_filter(self, component: str) -> FilterState:
        return self.replace(self._state.reset(component))

    def set_date_range(self, start: Any = "", end: Any = "") -> FilterState:
        return self.replace(self._state.with_date_range(start, end, self.cfg))

    def set_months(self, months: Iterable[str]) -> FilterState:
        return self.replace(self._state.with_months(months))

    def set_values(self, key: str, values: Iterable[Any]) -> FilterState:
        return self.replace(self._state.with_values(key, values))

    def add_drill_down(self, key: str, value: Any) -> FilterState:
        return self.replace(self._state.with_drill_down(key, value))

    def remove_drill_down(self, key: str) -> FilterState:
        return self.replace(self._state.without_drill_down(key))

    def clear_drill_down(self) -> FilterState:
        return self.replace(self._state.without_drill_down())

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def derive(self, rows: Sequence[Row], columns: Optional[ColumnRegistry] = None) -> List[Row]:
        return derive_filtered_rows(rows, self._state, columns, self.cfg)
