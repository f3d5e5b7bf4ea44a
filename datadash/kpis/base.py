from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..schema import ColumnRole

STATUS_OK = "ok"
STATUS_NO_DATA = "no_data"
STATUS_EMPTY = "empty"

Row = Mapping[str, Any]
Reducer = Callable[[Sequence[Row], Mapping[str, str]], float]
Requirement = Tuple[Optional[ColumnRole], Tuple[str, ...]]


@dataclass(frozen=True)
class KPISpec:
    name: str
    label: str
    # alias -> (column role, keywords in priority order)
    required: Mapping[str, Requirement]
    reducer: Reducer
    format_hint: str = "number"
    description: str = ""


@dataclass(frozen=True)
class KPIValue:
    name: str
    label: str
    status: str
    value: Optional[float] = None
    display: str = "No data"
    reason: str = ""
    used_columns: Tuple[Tuple[str, str], ...] = ()
    ambiguous: Tuple[str, ...] = ()

    @property
    def has_data(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["used_columns"] = dict(self.used_columns)
        out["ambiguous"] = list(self.ambiguous)
        return out


@dataclass
class KPIResult:
    mode: str
    computed: Dict[str, Any] = field(default_factory=dict)
    tables: Dict[str, Any] = field(default_factory=dict)
    charts: List[Dict[str, Any]] = field(default_factory=list)
    summary: str = ""
    warnings: List[str] = field(default_factory=list)
    used_columns: Dict[str, str] = field(default_factory=dict)
    kpis: Dict[str, KPIValue] = field(default_factory=dict)


@dataclass
class KPIConfig:
    max_items: int = 10
    currency: str = "INR"


class KPIEngineBase:
    mode_name: str = "base"

    def __init__(self, config: Optional[KPIConfig] = None, calculator=None):
        from .calculator import KPICalculator

        self.cfg = config or KPIConfig()
        self.calc = calculator or KPICalculator(currency=self.cfg.currency)

    def compute(self, dataset, state=None, config: Optional[KPIConfig] = None) -> KPIResult:
        raise NotImplementedError()
