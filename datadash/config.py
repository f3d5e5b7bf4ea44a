import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .constants import DEFAULT_CONFIG
from .errors import ConfigError

COLOR_STRATEGIES = ("position", "hash")
CALENDARS = ("gregorian",)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if config_path:
        p = Path(config_path)
        if not p.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        text = p.read_text(encoding="utf-8", errors="ignore")
        if p.suffix.lower() in (".yaml", ".yml"):
            user_cfg = yaml.safe_load(text) or {}
        elif p.suffix.lower() == ".json":
            user_cfg = json.loads(text)
        else:
            raise ConfigError("Config must be .yaml/.yml or .json")
        if not isinstance(user_cfg, dict):
            raise ConfigError(f"Config root must be a mapping, got {type(user_cfg).__name__}")
        cfg = _deep_merge(cfg, user_cfg)

    if overrides:
        cfg = _deep_merge(cfg, overrides)
    return cfg


@dataclass
class EngineConfig:
    sample_size: int = DEFAULT_CONFIG["classify"]["sample_size"]
    date_name_keywords: List[str] = field(default_factory=lambda: list(DEFAULT_CONFIG["classify"]["date_name_keywords"]))
    excluded_chart_columns: List[str] = field(default_factory=lambda: list(DEFAULT_CONFIG["classify"]["excluded_chart_columns"]))
    two_digit_year_pivot: int = DEFAULT_CONFIG["dates"]["two_digit_year_pivot"]
    serial_min: float = DEFAULT_CONFIG["dates"]["serial_min"]
    serial_max: float = DEFAULT_CONFIG["dates"]["serial_max"]
    min_year: int = DEFAULT_CONFIG["dates"]["min_year"]
    max_year: int = DEFAULT_CONFIG["dates"]["max_year"]
    color_strategy: str = DEFAULT_CONFIG["colors"]["strategy"]
    palette: List[str] = field(default_factory=lambda: list(DEFAULT_CONFIG["colors"]["palette"]))
    fixed_colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CONFIG["colors"]["fixed"]))
    max_rows: int = DEFAULT_CONFIG["validation"]["max_rows"]
    small_dataset_rows: int = DEFAULT_CONFIG["validation"]["small_dataset_rows"]
    missing_warning_ratio: float = DEFAULT_CONFIG["validation"]["missing_warning_ratio"]
    calendar: str = DEFAULT_CONFIG["timeseries"]["calendar"]
    default_granularity: str = DEFAULT_CONFIG["timeseries"]["default_granularity"]
    currency: str = DEFAULT_CONFIG["currency"]
    log_level: str = DEFAULT_CONFIG["logging"]["level"]

    def __post_init__(self):
        if self.color_strategy not in COLOR_STRATEGIES:
            raise ConfigError(f"Unknown colour strategy: {self.color_strategy}")
        if self.calendar not in CALENDARS:
            raise ConfigError(f"Unsupported calendar: {self.calendar}")
        if not self.palette:
            raise ConfigError("Colour palette must not be empty")
        if self.sample_size < 1:
            raise ConfigError("sample_size must be positive")

    @classmethod
    def from_dict(cls, cfg: Optional[Dict[str, Any]] = None) -> "EngineConfig":
        merged = _deep_merge(copy.deepcopy(DEFAULT_CONFIG), cfg or {})
        return cls(
            sample_size=int(merged["classify"]["sample_size"]),
            date_name_keywords=list(merged["classify"]["date_name_keywords"]),
            excluded_chart_columns=list(merged["classify"]["excluded_chart_columns"]),
            two_digit_year_pivot=int(merged["dates"]["two_digit_year_pivot"]),
            serial_min=merged["dates"]["serial_min"],
            serial_max=merged["dates"]["serial_max"],
            min_year=int(merged["dates"]["min_year"]),
            max_year=int(merged["dates"]["max_year"]),
            color_strategy=merged["colors"]["strategy"],
            palette=list(merged["colors"]["palette"]),
            fixed_colors=dict(merged["colors"]["fixed"]),
            max_rows=int(merged["validation"]["max_rows"]),
            small_dataset_rows=int(merged["validation"]["small_dataset_rows"]),
            missing_warning_ratio=float(merged["validation"]["missing_warning_ratio"]),
            calendar=merged["timeseries"]["calendar"],
            default_granularity=merged["timeseries"]["default_granularity"],
            currency=merged["currency"],
            log_level=merged["logging"]["level"],
        )

    @classmethod
    def from_file(cls, config_path: Optional[str]) -> "EngineConfig":
        return cls.from_dict(load_config(config_path))


DEFAULT_ENGINE_CONFIG = EngineConfig()


def configure_logging(cfg: Optional[EngineConfig] = None) -> None:
    cfg = cfg or DEFAULT_ENGINE_CONFIG
    level = (cfg.log_level or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
