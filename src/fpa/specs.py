from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .engine import DEFAULT_CRITICAL_VALUE, DEFAULT_MIN_NC, ScanConfig
from .schemas import validate_scan_config_payload
from .stats import chi_square_critical_value


def default_scan_config_payload() -> dict[str, Any]:
    return {
        "schema_version": 1,
        "min_Nc": DEFAULT_MIN_NC,
        "cv": DEFAULT_CRITICAL_VALUE,
        "strict": False,
    }


def load_scan_config(path: str | Path | None) -> dict[str, Any]:
    """Read a JSON scan configuration; ``None`` gives the built-in defaults."""
    if path is None:
        return default_scan_config_payload()
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Scan config not found: {p}")
    with p.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"scan config must be a JSON object: {p}")
    validate_scan_config_payload(payload)
    return payload


def resolve_scan_config(
    payload: dict[str, Any],
    *,
    min_nc: float | None = None,
    cv: float | None = None,
    alpha: float | None = None,
    df: int | None = None,
    strict: bool | None = None,
) -> ScanConfig:
    """Merge explicit overrides over a config payload into a :class:`ScanConfig`.

    An explicit ``cv`` or ``alpha`` replaces whichever threshold the payload set.
    """
    if cv is not None and alpha is not None:
        raise ValueError("Use either cv or alpha, not both.")

    resolved_min_nc = float(min_nc if min_nc is not None else payload.get("min_Nc", DEFAULT_MIN_NC))

    if alpha is None and cv is None:
        alpha = payload.get("alpha")
        cv = payload.get("cv")
    if alpha is not None:
        resolved_df = int(df if df is not None else payload.get("df", 2))
        critical_value = chi_square_critical_value(float(alpha), resolved_df)
    else:
        critical_value = float(cv if cv is not None else DEFAULT_CRITICAL_VALUE)

    resolved_strict = bool(strict) if strict is not None else bool(payload.get("strict", False))
    return ScanConfig(min_nc=resolved_min_nc, critical_value=critical_value, strict=resolved_strict)
