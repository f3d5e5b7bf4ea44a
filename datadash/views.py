"""Chart-ready views over the active datasets and the current filter state."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .aggregate import AggregationRow, aggregate_by_category, aggregate_by_column, grand_total
from .config import EngineConfig
from .datasets import Dataset, DatasetRegistry
from .filters import FilterEngine, FilterState
from .kpis import KPICalculator, KPIConfig, KPIResult, engine_for, get_kpi
from .schema import ROLE_RULES, ColumnRegistry, ColumnRole, classify
from .timeseries import AlignedSeries, Granularity, SeriesSource, bucketize_many

log = logging.getLogger("datadash.views")

Row = Mapping[str, Any]


@dataclass(frozen=True)
class ChartData:
    title: str
    category_column: Optional[str]
    value_column: Optional[str]
    groups: Tuple[AggregationRow, ...] = ()

    @property
    def has_data(self) -> bool:
        return bool(self.groups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "category_column": self.category_column,
            "value_column": self.value_column,
            "groups": [g.to_dict() for g in self.groups],
            "has_data": self.has_data,
        }


def category_breakdown(rows: Sequence[Row], columns: Optional[ColumnRegistry] = None,
                       config: Optional[EngineConfig] = None) -> ChartData:
    """Value totals per category, or row counts when the data has no numeric column."""
    registry = columns or classify(rows, config=config)
    value_col = registry.best(ColumnRole.NUMERIC, ROLE_RULES["value"][1])
    cat_col = registry.match(ColumnRole.CATEGORICAL, ROLE_RULES["category"][1],
                             candidates=registry.chartable(ColumnRole.CATEGORICAL)).column
    if cat_col is None:
        return ChartData("No categorical column", None, value_col)

    if value_col is None:
        return ChartData(f"Count by {cat_col}", cat_col, None, aggregate_by_column(rows, cat_col))
    return ChartData(f"{value_col} by {cat_col}", cat_col, value_col,
                     aggregate_by_category(rows, cat_col, value_col))


@dataclass(frozen=True)
class DatasetCard:
    dataset_id: str
    label: str
    color: str
    active: bool
    row_count: int
    has_quantity: bool
    total_quantity: float
    display: str


class Dashboard:
    """Derived views for every active dataset under one filter engine.

    Filtered rows are memoised per ``(dataset_id, state)``; any filter change or
    dataset add/remove/activation drops the memo.
    """

    def __init__(self, registry: DatasetRegistry, filter_engine: Optional[FilterEngine] = None,
                 config: Optional[EngineConfig] = None):
        self.cfg = config or registry.cfg
        self.registry = registry
        self.filters = filter_engine or FilterEngine(config=self.cfg)
        self.calc = KPICalculator(self.filters, self.cfg)
        self._memo: Dict[Tuple[str, FilterState], List[Row]] = {}
        self._unsubscribe = [
            self.filters.subscribe(lambda old, new: self.invalidate()),
            self.registry.subscribe(lambda event, dataset_id: self.invalidate()),
        ]

    def close(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
        self.invalidate()

    def invalidate(self) -> None:
        if self._memo:
            log.debug(f"Dropping {len(self._memo)} memoised views")
        self._memo.clear()

    def filtered_rows(self, dataset: Dataset) -> List[Row]:
        key = (dataset.id, self.filters.state)
        if key not in self._memo:
            self._memo[key] = self.filters.derive(dataset.rows, dataset.columns)
        return self._memo[key]

    def dataset_cards(self) -> List[DatasetCard]:
        spec = get_kpi("total_quantity")
        cards = []
        for ds in self.registry.datasets:
            kpi = self.calc.compute(ds, spec)
            cards.append(DatasetCard(
                dataset_id=ds.id,
                label=ds.label,
                color=self.registry.color_of(ds.id),
                active=self.registry.is_active(ds.id),
                row_count=len(self.filtered_rows(ds)),
                has_quantity=kpi.has_data,
                total_quantity=kpi.value or 0.0,
                display=kpi.display,
            ))
        return cards

    def trend(self, granularity: Optional[str] = None, keywords: Sequence[str] = ROLE_RULES["quantity"][1]) -> Tuple[AlignedSeries, Dict[str, Dict[str, str]]]:
        """Aligned per-dataset series of the best ``keywords`` column, plus name and colour per series."""
        g = Granularity.parse(granularity or self.cfg.default_granularity)
        colors = self.registry.colors()
        sources, meta = {}, {}
        for ds in self.registry.active:
            value_col = ds.columns.best(ColumnRole.NUMERIC, keywords, strict=True)
            if value_col is None:
                log.info(f"Trend skips '{ds.display_name}': no column for {list(keywords)}")
                continue
            sources[ds.id] = SeriesSource(self.filtered_rows(ds), value_col, ds.columns.date_column)
            meta[ds.id] = {"name": ds.canonical_name, "label": ds.label, "color": colors[ds.id],
                           "value_column": value_col}
        return bucketize_many(sources, g, config=self.cfg), meta

    def breakdown(self, dataset_id: str) -> ChartData:
        ds = self.registry.get(dataset_id)
        return category_breakdown(self.filtered_rows(ds), ds.columns, self.cfg)

    def total(self, dataset_id: str, keywords: Sequence[str]) -> Optional[float]:
        ds = self.registry.get(dataset_id)
        col = ds.columns.best(ColumnRole.NUMERIC, keywords, strict=True)
        if col is None:
            return None
        return grand_total(self.filtered_rows(ds), col)

    def kpis(self, dataset_id: str, kpi_config: Optional[KPIConfig] = None) -> KPIResult:
        ds = self.registry.get(dataset_id)
        kcfg = kpi_config or KPIConfig(currency=self.cfg.currency)
        engine = engine_for(ds, config=kcfg, calculator=self.calc)
        log.debug(f"KPI engine '{engine.mode_name}' for '{ds.display_name}'")
        return engine.compute(ds)
