"""Column role inference and keyword-driven column lookup.

Uploaded sheets carry no declared schema, so every chart and KPI asks the
:class:`ColumnRegistry` built by :func:`classify` for "the best column" for
a semantic role.
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .dates import normalize_date
from .utils import is_empty, parse_number

log = logging.getLogger("datadash.schema")

Row = Mapping[str, Any]


class ColumnRole(str, Enum):
    NUMERIC = "numeric"
    DATE = "date"
    CATEGORICAL = "categorical"


# semantic role -> (column role or None for any, keywords in priority order)
ROLE_RULES: Dict[str, Tuple[Optional[ColumnRole], Tuple[str, ...]]] = {
    "date": (ColumnRole.DATE, ("date",)),
    "month": (None, ("month", "months")),
    "year": (None, ("year",)),
    "quantity": (ColumnRole.NUMERIC, ("quantity", "qty", "units")),
    "price": (ColumnRole.NUMERIC, ("price", "rate")),
    "revenue": (ColumnRole.NUMERIC, ("total+revenue", "revenue", "sales", "amount")),
    "value": (ColumnRole.NUMERIC, ("price", "revenue", "quantity", "amount")),
    "eligible": (ColumnRole.NUMERIC, ("eligible",)),
    "received": (ColumnRole.NUMERIC, ("received",)),
    "buyer_type": (ColumnRole.CATEGORICAL, ("buyer+type",)),
    "buyer_name": (ColumnRole.CATEGORICAL, ("name", "buyer", "customer")),
    "category": (ColumnRole.CATEGORICAL, ("name", "product", "category", "type")),
    "state": (ColumnRole.CATEGORICAL, ("state",)),
    "district": (ColumnRole.CATEGORICAL, ("district",)),
}

# dataset kind -> name keywords, checked in order
KIND_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("claims", ("mda", "claim")),
    ("stock", ("stock",)),
    ("revenue", ("revenue",)),
)


def _squash(text: str) -> str:
    return re.sub(r"\s+", "", str(text).strip().lower())


def _keyword_hit(column: str, keyword: str) -> Tuple[bool, bool]:
    """Return (exact, contains) for ``keyword`` against ``column``."""
    name = _squash(column)
    parts = [_squash(p) for p in keyword.split("+") if p.strip()]
    if not parts:
        return False, False
    if len(parts) == 1:
        return name == parts[0], parts[0] in name
    contains = all(p in name for p in parts)
    return name == "".join(parts), contains


@dataclass(frozen=True)
class ColumnMatch:
    column: Optional[str]
    keyword: Optional[str] = None
    exact: bool = False
    fallback: bool = False
    alternatives: Tuple[str, ...] = ()

    @property
    def found(self) -> bool:
        return self.column is not None

    @property
    def ambiguous(self) -> bool:
        return bool(self.alternatives)


@dataclass(frozen=True)
class ColumnRegistry:
    """The guessed schema of one dataset: column -> role, in row-key order."""

    roles: Tuple[Tuple[str, ColumnRole], ...]
    excluded: Tuple[str, ...] = ()
    sample_size: int = 0
    _index: Dict[str, ColumnRole] = field(default_factory=dict, compare=False, repr=False, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "_index", dict(self.roles))

    def __contains__(self, column: str) -> bool:
        return column in self._index

    def __len__(self) -> int:
        return len(self.roles)

    @property
    def names(self) -> List[str]:
        return [c for c, _ in self.roles]

    def role_of(self, column: str) -> Optional[ColumnRole]:
        return self._index.get(column)

    def columns(self, role: Optional[ColumnRole] = None) -> List[str]:
        if role is None:
            return self.names
        return [c for c, r in self.roles if r == role]

    def chartable(self, role: Optional[ColumnRole] = None) -> List[str]:
        return [c for c in self.columns(role) if c not in self.excluded]

    def match(self, role: Optional[ColumnRole], keywords: Sequence[str], strict: bool = False,
              candidates: Optional[Iterable[str]] = None) -> ColumnMatch:
        pool = list(candidates) if candidates is not None else self.columns(role)
        if candidates is not None and role is not None:
            pool = [c for c in pool if self.role_of(c) == role]

        for kw in keywords:
            exact = [c for c in pool if _keyword_hit(c, kw)[0]]
            if exact:
                return self._pick(exact, kw, True)
            contains = [c for c in pool if _keyword_hit(c, kw)[1]]
            if contains:
                return self._pick(contains, kw, False)

        if strict or not pool:
            return ColumnMatch(None)
        return ColumnMatch(pool[0], fallback=True)

    def _pick(self, hits: List[str], keyword: str, exact: bool) -> ColumnMatch:
        chosen, others = hits[0], tuple(hits[1:])
        if others:
            log.warning(f"Ambiguous column for keyword '{keyword}': chose '{chosen}' over {list(others)}")
        return ColumnMatch(chosen, keyword=keyword, exact=exact, alternatives=others)

    def best(self, role: Optional[ColumnRole], keywords: Sequence[str], strict: bool = False) -> Optional[str]:
        return self.match(role, keywords, strict=strict).column

    @property
    def date_column(self) -> Optional[str]:
        return self.best(ColumnRole.DATE, ROLE_RULES["date"][1])

    def to_dict(self) -> Dict[str, str]:
        return {c: r.value for c, r in self.roles}


def column_names(rows: Iterable[Row]) -> List[str]:
    seen: Dict[str, None] = {}
    for row in rows:
        for k in row.keys():
            if k not in seen:
                seen[k] = None
    return list(seen)


def _majority(hits: int, total: int) -> bool:
    return total > 0 and hits * 2 > total


def _classify_column(name: str, values: List[Any], cfg: EngineConfig) -> ColumnRole:
    lname = str(name).lower()
    if any(k in lname for k in cfg.date_name_keywords):
        return ColumnRole.DATE

    non_empty = [v for v in values if not is_empty(v)]
    if not non_empty:
        return ColumnRole.CATEGORICAL

    numeric_hits = sum(1 for v in non_empty if parse_number(v) is not None)
    if _majority(numeric_hits, len(non_empty)):
        return ColumnRole.NUMERIC

    date_hits = sum(1 for v in non_empty if normalize_date(v, cfg) is not None)
    if _majority(date_hits, len(non_empty)):
        return ColumnRole.DATE

    return ColumnRole.CATEGORICAL


def classify(rows: Sequence[Row], sample_size: Optional[int] = None,
             config: Optional[EngineConfig] = None) -> ColumnRegistry:
    cfg = config or DEFAULT_ENGINE_CONFIG
    n = sample_size if sample_size is not None else cfg.sample_size
    sample = list(rows[:n]) if n > 0 else []
    cols = column_names(rows)

    roles = []
    for c in cols:
        values = [row.get(c) for row in sample]
        roles.append((c, _classify_column(c, values, cfg)))

    excluded = tuple(c for c in cols if any(x in str(c).lower() for x in cfg.excluded_chart_columns))
    return ColumnRegistry(roles=tuple(roles), excluded=excluded, sample_size=len(sample))


def find_best_column(rows: Sequence[Row], role: Optional[ColumnRole], keywords: Sequence[str],
                     strict: bool = False, config: Optional[EngineConfig] = None) -> Optional[str]:
    return classify(rows, config=config).best(role, keywords, strict=strict)


def resolve_role(registry: ColumnRegistry, semantic_role: str, strict: bool = True) -> Optional[str]:
    """Map a semantic role from ROLE_RULES (or a literal column name) to a column."""
    if semantic_role in registry:
        return semantic_role
    rule = ROLE_RULES.get(semantic_role)
    if rule is None:
        return None
    role, keywords = rule
    return registry.best(role, keywords, strict=strict)


def infer_dataset_kind(name: str, registry: Optional[ColumnRegistry] = None) -> str:
    lname = str(name or "").lower()
    for kind, keywords in KIND_RULES:
        if any(k in lname for k in keywords):
            return kind
    if registry is not None:
        if registry.best(ColumnRole.NUMERIC, ("eligible",), strict=True) and \
                registry.best(ColumnRole.NUMERIC, ("received",), strict=True):
            return "claims"
        if registry.best(ColumnRole.NUMERIC, ("stock",), strict=True):
            return "stock"
    return "sales"
