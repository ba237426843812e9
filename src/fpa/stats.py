from __future__ import annotations

import numpy as np
from scipy import stats


def detection_probability(p: float, nc_focal: float, nc_other: float) -> float:
    """Probability that a private allele of total frequency ``p`` is seen as private.

    The focal sample of ``nc_focal`` chromosomes must hold at least one copy
    while the ``nc_other`` chromosomes of the remaining populations hold none:

        (1 - (1 - p)^nc_focal) * (1 - p)^nc_other

    Out-of-range frequencies give NaN rather than raising.
    """
    q = np.float64(1.0) - np.float64(p)
    with np.errstate(invalid="ignore", over="ignore"):
        absent_focal = np.power(q, np.float64(nc_focal))
        absent_other = np.power(q, np.float64(nc_other))
        prob = (1.0 - absent_focal) * absent_other
    return float(prob)


def log10_detection_probability(p: float, nc_focal: float, nc_other: float) -> float:
    prob = detection_probability(p, nc_focal, nc_other)
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.log10(prob))


def chi_square_critical_value(alpha: float, df: int = 2) -> float:
    """Upper-tail chi-square quantile used to call a population polymorphic.

    ``alpha=0.05`` with two degrees of freedom gives 5.991.
    """
    if not (0.0 < alpha < 1.0):
        raise ValueError("alpha must be in (0, 1).")
    if int(df) < 1:
        raise ValueError("df must be >= 1.")
    return float(stats.chi2.isf(alpha, int(df)))
