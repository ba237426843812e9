from __future__ import annotations

import os
import tempfile
from pathlib import Path

import numpy as np
import pandas as pd

from .io import OUTPUT_COLUMNS


NUMERIC_COLUMNS = (
    "site",
    "tot_cov",
    "ne_pops",
    "num_alleles",
    "id_pop",
    "focal_frequency",
    "total_frequency",
    "log_prob_pa",
    "MAF",
)

SUMMARY_COLUMNS = (
    "n_private_alleles",
    "n_sites",
    "mean_focal_frequency",
    "median_focal_frequency",
    "mean_total_frequency",
    "mean_log_prob_pa",
)


def read_private_alleles(path: str | Path) -> pd.DataFrame:
    """Load a private-allele table written by ``fpa``."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Private-allele table not found: {p}")
    df = pd.read_csv(p, sep="\t", dtype={"scaffold": str, "ref_nuc": str, "private_allele": str})
    missing = [c for c in OUTPUT_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{p} is missing columns: {', '.join(missing)}")
    for column in NUMERIC_COLUMNS:
        df[column] = pd.to_numeric(df[column], errors="coerce")
    return df


def summarize_private_alleles(df: pd.DataFrame, by: str = "id_pop") -> pd.DataFrame:
    """Per-population (or per-scaffold) counts and frequency summaries.

    Sites are counted as distinct ``(scaffold, site)`` pairs. Infinite
    ``log_prob_pa`` values are left out of the mean.
    """
    if by not in ("id_pop", "scaffold"):
        raise ValueError(f"Unsupported grouping column: {by}")
    if df.empty:
        return pd.DataFrame(columns=[by, *SUMMARY_COLUMNS])

    view = df.copy()
    view["_site_key"] = view["scaffold"].astype(str) + ":" + view["site"].astype(str)
    view["_finite_log_prob"] = view["log_prob_pa"].where(np.isfinite(view["log_prob_pa"]))

    grouped = view.groupby(by, sort=True)
    out = pd.DataFrame(
        {
            "n_private_alleles": grouped.size(),
            "n_sites": grouped["_site_key"].nunique(),
            "mean_focal_frequency": grouped["focal_frequency"].mean(),
            "median_focal_frequency": grouped["focal_frequency"].median(),
            "mean_total_frequency": grouped["total_frequency"].mean(),
            "mean_log_prob_pa": grouped["_finite_log_prob"].mean(),
        }
    ).reset_index()
    return out[[by, *SUMMARY_COLUMNS]]


def _configure_plotting_env() -> None:
    # Matplotlib needs a writable config/cache dir on read-only homes.
    cache_root = Path(tempfile.gettempdir()) / "fpa_cache" / "matplotlib"
    cache_root.mkdir(parents=True, exist_ok=True)
    os.environ.setdefault("MPLCONFIGDIR", str(cache_root))


def _save_placeholder(path: Path, title: str, subtitle: str) -> None:
    import matplotlib.pyplot as plt

    fig = plt.figure(figsize=(8, 5))
    ax = fig.add_subplot(111)
    ax.axis("off")
    ax.text(0.5, 0.62, title, ha="center", va="center", fontsize=14, fontweight="bold")
    ax.text(0.5, 0.45, subtitle, ha="center", va="center", fontsize=10, wrap=True)
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)


def plot_private_alleles(df: pd.DataFrame, out_path: str | Path, *, bins: int = 20) -> Path:
    _configure_plotting_env()
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    if df.empty:
        _save_placeholder(out, "Private alleles", "No private alleles in the input table.")
        return out

    counts = df.groupby("id_pop").size().sort_index()
    freqs = df["focal_frequency"].dropna().to_numpy(dtype=float)

    fig, axes = plt.subplots(1, 2, figsize=(12, 5))
    axes[0].bar([str(int(x)) for x in counts.index], counts.to_numpy(), color="#4C72B0")
    axes[0].set_title("Private alleles per population")
    axes[0].set_xlabel("Population")
    axes[0].set_ylabel("Count")

    axes[1].hist(freqs, bins=bins, range=(0.0, 1.0), color="#DD8452", edgecolor="black", linewidth=0.5)
    axes[1].set_title("Frequency in focal population")
    axes[1].set_xlabel("focal_frequency")
    axes[1].set_ylabel("Private alleles")

    fig.tight_layout()
    fig.savefig(out)
    plt.close(fig)
    return out
