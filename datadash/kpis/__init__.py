from .base import STATUS_EMPTY, STATUS_NO_DATA, STATUS_OK, KPIConfig, KPIEngineBase, KPIResult, KPISpec, KPIValue
from .calculator import KPICalculator
from .definitions import KPI_DEFINITIONS, get_kpi
from .registry import engine_for, get_engine, register

__all__ = [
    "STATUS_EMPTY",
    "STATUS_NO_DATA",
    "STATUS_OK",
    "KPIConfig",
    "KPIEngineBase",
    "KPIResult",
    "KPISpec",
    "KPIValue",
    "KPICalculator",
    "KPI_DEFINITIONS",
    "get_kpi",
    "engine_for",
    "get_engine",
    "register",
]
