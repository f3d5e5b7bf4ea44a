"""Schema-agnostic analytics over uploaded tabular business data."""
from .aggregate import AggregationRow, aggregate_by_category, aggregate_by_column, grand_total
from .config import EngineConfig, configure_logging, load_config
from .datasets import Dataset, DatasetRegistry, assign_color, canonical_name
from .dates import normalize_date
from .errors import ConfigError, DatadashError, DatasetNotFoundError, FilterStateError
from .filters import DateRange, FilterEngine, FilterState, derive_filtered_rows, has_active_filters
from .kpis import KPICalculator, KPIValue, engine_for
from .schema import ColumnRegistry, ColumnRole, classify, find_best_column
from .timeseries import Granularity, TimeSeriesPoint, bucketize, bucketize_many
from .views import ChartData, Dashboard, category_breakdown

__version__ = "0.1.0"

__all__ = [
    "AggregationRow",
    "aggregate_by_category",
    "aggregate_by_column",
    "grand_total",
    "EngineConfig",
    "configure_logging",
    "load_config",
    "Dataset",
    "DatasetRegistry",
    "assign_color",
    "canonical_name",
    "normalize_date",
    "ConfigError",
    "DatadashError",
    "DatasetNotFoundError",
    "FilterStateError",
    "DateRange",
    "FilterEngine",
    "FilterState",
    "derive_filtered_rows",
    "has_active_filters",
    "KPICalculator",
    "KPIValue",
    "engine_for",
    "ColumnRegistry",
    "ColumnRole",
    "classify",
    "find_best_column",
    "Granularity",
    "TimeSeriesPoint",
    "bucketize",
    "bucketize_many",
    "ChartData",
    "Dashboard",
    "category_breakdown",
]
