import json
from pathlib import Path

import pytest

from fpa.engine import ScanConfig
from fpa.schemas import validate_scan_config_payload
from fpa.specs import default_scan_config_payload, load_scan_config, resolve_scan_config


def _write_config(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults_resolve_to_builtin_thresholds() -> None:
    config = resolve_scan_config(load_scan_config(None))
    assert config == ScanConfig(min_nc=20.0, critical_value=5.991, strict=False)
    validate_scan_config_payload(default_scan_config_payload())


def test_config_file_values_are_used(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "cfg.json", {"schema_version": 1, "min_Nc": 12, "cv": 3.5, "strict": True})
    config = resolve_scan_config(load_scan_config(path))
    assert config == ScanConfig(min_nc=12.0, critical_value=3.5, strict=True)


def test_explicit_values_override_config_file(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "cfg.json", {"schema_version": 1, "min_Nc": 12, "alpha": 0.01})
    payload = load_scan_config(path)
    config = resolve_scan_config(payload, min_nc=30.0, cv=4.0)
    assert config.min_nc == 30.0
    assert config.critical_value == 4.0
    assert resolve_scan_config(payload).critical_value == pytest.approx(9.210, abs=5e-4)


def test_alpha_and_df_derive_critical_value() -> None:
    config = resolve_scan_config(default_scan_config_payload(), alpha=0.05, df=1)
    assert config.critical_value == pytest.approx(3.841, abs=5e-4)


def test_cv_and_alpha_together_are_rejected() -> None:
    with pytest.raises(ValueError, match="not both"):
        resolve_scan_config(default_scan_config_payload(), cv=5.0, alpha=0.05)


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_scan_config(tmp_path / "absent.json")


@pytest.mark.parametrize(
    "payload, message",
    [
        ([1, 2], "JSON object"),
        ({"min_Nc": 10}, "schema_version"),
        ({"schema_version": 2}, "schema_version must be 1"),
        ({"schema_version": 1, "min_nc": 10}, "unknown keys"),
        ({"schema_version": 1, "min_Nc": -1}, "min_Nc"),
        ({"schema_version": 1, "alpha": 1.5}, "alpha"),
        ({"schema_version": 1, "df": 0}, "df"),
        ({"schema_version": 1, "cv": 5.0, "alpha": 0.05}, "not both"),
        ({"schema_version": 1, "strict": "yes"}, "strict"),
    ],
)
def test_invalid_config_payloads(tmp_path: Path, payload: object, message: str) -> None:
    path = _write_config(tmp_path / "cfg.json", payload)
    with pytest.raises(ValueError, match=message):
        load_scan_config(path)
