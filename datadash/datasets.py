"""Uploaded dataset bookkeeping: identity, canonical naming and colours."""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import cached_property
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .errors import ConfigError, DatasetNotFoundError
from .schema import ColumnRegistry, classify, infer_dataset_kind
from .utils import stable_hash
from .validator import status_for, validate_rows

log = logging.getLogger("datadash.datasets")

Row = Mapping[str, Any]


@dataclass(frozen=True)
class NameRule:
    canonical: str
    all_of: Tuple[str, ...]
    none_of: Tuple[str, ...] = ()

    def matches(self, lowered: str) -> bool:
        return all(k in lowered for k in self.all_of) and not any(k in lowered for k in self.none_of)


# "lfom" contains "fom", so the most specific rules come first
NAME_RULES: Tuple[NameRule, ...] = (
    NameRule("POS LFOM", ("pos", "lfom")),
    NameRule("LFOM", ("lfom",)),
    NameRule("POS FOM", ("pos", "fom"), ("lfom",)),
    NameRule("FOM", ("fom",)),
)


def canonical_name(raw_name: str, rules: Sequence[NameRule] = NAME_RULES) -> str:
    lowered = str(raw_name or "").lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.canonical
    return raw_name


def dataset_label(raw_name: str) -> str:
    return f"{canonical_name(raw_name)} Sales"


def assign_color(raw_name: str, index: Optional[int] = None, strategy: Optional[str] = None,
                 config: Optional[EngineConfig] = None) -> str:
    cfg = config or DEFAULT_ENGINE_CONFIG
    strategy = strategy or cfg.color_strategy
    fixed = cfg.fixed_colors.get(canonical_name(raw_name))
    if fixed:
        return fixed

    palette = cfg.palette
    if strategy == "hash" or index is None:
        return palette[stable_hash(raw_name) % len(palette)]
    if strategy == "position":
        return palette[index % len(palette)]
    raise ConfigError(f"Unknown colour strategy: {strategy}")


@dataclass(frozen=True, eq=False)
class Dataset:
    id: str
    display_name: str
    rows: Tuple[Dict[str, Any], ...]
    # colour at registration; DatasetRegistry.color_of gives the one charts use now
    color: str
    status: str
    file_name: str = ""
    uploaded_at: str = ""
    warnings: Tuple[str, ...] = ()
    errors: Tuple[str, ...] = ()
    config: Optional[EngineConfig] = field(default=None, repr=False)

    @property
    def canonical_name(self) -> str:
        return canonical_name(self.display_name)

    @property
    def label(self) -> str:
        return dataset_label(self.display_name)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @cached_property
    def columns(self) -> ColumnRegistry:
        return classify(self.rows, config=self.config)

    @property
    def kind(self) -> str:
        return infer_dataset_kind(self.display_name, self.columns)


class DatasetRegistry:
    def __init__(self, config: Optional[EngineConfig] = None):
        self.cfg = config or DEFAULT_ENGINE_CONFIG
        self._datasets: Dict[str, Dataset] = {}
        self._active: List[str] = []
        self._subscribers: List[Callable[[str, str], None]] = []

    def __len__(self) -> int:
        return len(self._datasets)

    def __contains__(self, dataset_id: str) -> bool:
        return dataset_id in self._datasets

    def add(self, display_name: str, rows: Iterable[Row], file_name: Optional[str] = None,
            dataset_id: Optional[str] = None, active: bool = True) -> Dataset:
        rows = tuple(dict(r) for r in rows)
        warnings, errors = validate_rows(rows, self.cfg)
        ds = Dataset(
            id=dataset_id or uuid.uuid4().hex,
            display_name=display_name,
            rows=rows,
            color=assign_color(display_name, len(self._active), config=self.cfg),
            status=status_for(warnings, errors),
            file_name=file_name or display_name,
            uploaded_at=datetime.now(timezone.utc).isoformat(),
            warnings=tuple(warnings),
            errors=tuple(errors),
            config=self.cfg,
        )
        if ds.id in self._datasets:
            raise ValueError(f"Dataset id already registered: {ds.id}")
        self._datasets[ds.id] = ds
        if active:
            self._active.append(ds.id)
        if errors:
            log.warning(f"Dataset '{display_name}' failed validation: {errors}")
        log.info(f"Dataset added: name={display_name} rows={ds.row_count} status={ds.status}")
        self._notify("added", ds.id)
        return ds

    def remove(self, dataset_id: str) -> Dataset:
        ds = self.get(dataset_id)
        del self._datasets[dataset_id]
        self._active = [i for i in self._active if i != dataset_id]
        log.info(f"Dataset removed: name={ds.display_name}")
        self._notify("removed", dataset_id)
        return ds

    def get(self, dataset_id: str) -> Dataset:
        try:
            return self._datasets[dataset_id]
        except KeyError:
            raise DatasetNotFoundError(dataset_id)

    @property
    def datasets(self) -> List[Dataset]:
        return list(self._datasets.values())

    @property
    def active(self) -> List[Dataset]:
        return [ds for ds in self._datasets.values() if ds.id in self._active]

    def is_active(self, dataset_id: str) -> bool:
        return dataset_id in self._active

    def set_active(self, dataset_ids: Iterable[str]) -> None:
        ids = list(dict.fromkeys(dataset_ids))
        for i in ids:
            self.get(i)
        self._active = ids
        self._notify("active", "")

    def toggle(self, dataset_id: str) -> bool:
        self.get(dataset_id)
        if dataset_id in self._active:
            self._active.remove(dataset_id)
        else:
            self._active.append(dataset_id)
        self._notify("active", dataset_id)
        return dataset_id in self._active

    def set_active_all(self, active: bool = True) -> None:
        self._active = list(self._datasets) if active else []
        self._notify("active", "")

    def colors(self) -> Dict[str, str]:
        """Colour per active dataset, by position among active datasets (or name hash)."""
        return {
            ds.id: assign_color(ds.display_name, i, config=self.cfg)
            for i, ds in enumerate(self.active)
        }

    def color_of(self, dataset_id: str) -> str:
        """Current colour of a dataset; inactive ones keep their registration colour."""
        ds = self.get(dataset_id)
        return self.colors().get(ds.id, ds.color)

    def combine_active(self) -> List[Dict[str, Any]]:
        colors = self.colors()
        out = []
        for ds in self.active:
            for row in ds.rows:
                tagged = dict(row)
                tagged["__datasetId"] = ds.id
                tagged["__datasetName"] = ds.display_name
                tagged["__datasetColor"] = colors[ds.id]
                out.append(tagged)
        return out

    def subscribe(self, callback: Callable[[str, str], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def _notify(self, event: str, dataset_id: str) -> None:
        for cb in list(self._subscribers):
            cb(event, dataset_id)
