from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .schema import column_names
from .utils import is_empty

STATUS_VALID = "valid"
STATUS_WARNING = "warning"
STATUS_ERROR = "error"


def validate_rows(rows: Sequence[Mapping[str, Any]], config: Optional[EngineConfig] = None) -> Tuple[List[str], List[str]]:
    cfg = config or DEFAULT_ENGINE_CONFIG
    warnings = []
    errors = []

    if not rows:
        errors.append('Empty or unreadable table')
        return warnings, errors

    if len(rows) > cfg.max_rows:
        errors.append(f"Row count {len(rows)} exceeds max {cfg.max_rows}")

    if len(rows) < cfg.small_dataset_rows:
        warnings.append(f'Very small number of rows (<{cfg.small_dataset_rows})')

    # rows with differing key sets
    cols = column_names(rows)
    ragged = sum(1 for r in rows if len(r) != len(cols) or any(c not in r for c in cols))
    if ragged:
        warnings.append(f'{ragged} rows do not share the full column set')

    # mostly-empty columns
    many_missing = []
    for c in cols:
        missing = sum(1 for r in rows if is_empty(r.get(c)))
        if missing / len(rows) > cfg.missing_warning_ratio:
            many_missing.append(c)
    if many_missing:
        warnings.append(f'Columns with >{cfg.missing_warning_ratio:.0%} missing values: {many_missing[:10]}')

    return warnings, errors


def status_for(warnings: List[str], errors: List[str]) -> str:
    if errors:
        return STATUS_ERROR
    if warnings:
        return STATUS_WARNING
    return STATUS_VALID
