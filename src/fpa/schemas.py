from __future__ import annotations

from typing import Any


SCAN_CONFIG_KEYS = ("schema_version", "min_Nc", "cv", "alpha", "df", "strict")


def _ensure_type(payload: Any, expected: type, label: str) -> None:
    if not isinstance(payload, expected):
        raise ValueError(f"{label} must be {expected.__name__}.")


def _require_keys(payload: dict[str, Any], keys: list[str], label: str) -> None:
    missing = [k for k in keys if k not in payload]
    if missing:
        raise ValueError(f"{label} missing required keys: {', '.join(missing)}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_scan_config_payload(payload: dict[str, Any]) -> None:
    _ensure_type(payload, dict, "scan config payload")
    _require_keys(payload, ["schema_version"], "scan config payload")
    if int(payload["schema_version"]) != 1:
        raise ValueError("scan config schema_version must be 1.")
    unknown = sorted(k for k in payload if k not in SCAN_CONFIG_KEYS)
    if unknown:
        raise ValueError(f"scan config has unknown keys: {', '.join(unknown)}")

    if "min_Nc" in payload:
        if not _is_number(payload["min_Nc"]) or float(payload["min_Nc"]) < 0:
            raise ValueError("scan config min_Nc must be a number >= 0.")
    if "cv" in payload and not _is_number(payload["cv"]):
        raise ValueError("scan config cv must be a number.")
    if "alpha" in payload:
        if not _is_number(payload["alpha"]) or not (0.0 < float(payload["alpha"]) < 1.0):
            raise ValueError("scan config alpha must be in (0, 1).")
    if "df" in payload:
        if not isinstance(payload["df"], int) or isinstance(payload["df"], bool) or payload["df"] < 1:
            raise ValueError("scan config df must be an integer >= 1.")
    if "cv" in payload and "alpha" in payload:
        raise ValueError("scan config may set cv or alpha, not both.")
    if "strict" in payload and not isinstance(payload["strict"], bool):
        raise ValueError("scan config strict must be true or false.")


def validate_manifest_payload(payload: dict[str, Any], manifest_kind: str) -> None:
    _ensure_type(payload, dict, "manifest payload")
    if int(payload.get("schema_version", -1)) != 1:
        raise ValueError("manifest schema_version must be 1.")
    _require_keys(payload, ["command", "tool_version", "system"], "manifest payload")
    kind = manifest_kind.lower()
    if kind == "scan":
        _require_keys(
            payload,
            [
                "parameters",
                "input_path",
                "input_sha256",
                "output_path",
                "output_sha256",
                "num_pops",
                "n_sites",
                "n_private_alleles",
            ],
            "scan manifest",
        )
        _ensure_type(payload["parameters"], dict, "scan manifest parameters")
        _require_keys(payload["parameters"], ["min_Nc", "cv", "strict"], "scan manifest parameters")
    else:
        raise ValueError(f"Unknown manifest kind: {manifest_kind}")
