from typing import Dict, Type

from .base import KPIEngineBase
from .claims import ClaimsKPIEngine
from .sales import SalesKPIEngine
from .universal import UniversalKPIEngine

_REGISTRY: Dict[str, Type[KPIEngineBase]] = {}


def register(name: str, engine_cls):
    _REGISTRY[name] = engine_cls
    return engine_cls


def registered() -> Dict[str, Type[KPIEngineBase]]:
    return dict(_REGISTRY)


def get_engine(name: str, **kwargs) -> KPIEngineBase:
    name = (name or 'universal').lower()
    cls = _REGISTRY.get(name)
    if cls:
        return cls(**kwargs)
    # fallback to universal
    cls = _REGISTRY.get('universal')
    if cls:
        return cls(**kwargs)
    raise KeyError('No KPI engine registered')


def engine_for(dataset, **kwargs) -> KPIEngineBase:
    """Engine for a dataset's inferred kind (claims, sales, ...)."""
    return get_engine(getattr(dataset, 'kind', None), **kwargs)


register('universal', UniversalKPIEngine)
register('sales', SalesKPIEngine)
register('claims', ClaimsKPIEngine)
