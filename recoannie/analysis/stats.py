# recoannie/analysis/stats.py
from __future__ import annotations

import math
from typing import Iterable

import numpy as np
from scipy.special import betainc


def mean_and_var(data: Iterable[float], sample_cutoff: int | None = None) -> tuple[float, float]:
    """
    Single-pass (Welford) sample mean and variance of the first
    `sample_cutoff` values of `data`.

    Returns (nan, nan) for no samples and (x, 0.0) for a single sample;
    otherwise the variance uses an n - 1 denominator.
    """
    if sample_cutoff is not None and sample_cutoff <= 0:
        return math.nan, math.nan

    n = 0
    mean = 0.0
    m2 = 0.0
    for x in data:
        n += 1
        delta = float(x) - mean
        mean += delta / n
        m2 += delta * (float(x) - mean)
        if n == sample_cutoff:
            break

    if n == 0:
        return math.nan, math.nan
    if n == 1:
        return mean, 0.0
    return mean, m2 / (n - 1)


def variance_ratio(var_a: float, var_b: float) -> float:
    """F = larger variance / smaller variance (1.0 when both are zero)."""
    if math.isnan(var_a) or math.isnan(var_b):
        return math.nan
    hi, lo = max(var_a, var_b), min(var_a, var_b)
    if hi == 0.0:
        return 1.0
    if lo == 0.0:
        return math.inf
    return hi / lo


def f_test_probability(var_a: float, var_b: float, num_samples: int) -> float:
    """
    Probability Q that two sample variances, each from `num_samples`
    samples, differ as much as observed. Q is close to 0 when the
    variances agree and close to 1 when they clearly do not.

    Both degrees of freedom are num_samples - 1, so the two-tailed
    F-test significance is 2 * I_x(nu, nu) with nu = (num_samples - 1) / 2
    and x = 1 / (1 + F). Q is its complement.
    """
    f = variance_ratio(var_a, var_b)
    if math.isnan(f):
        return math.nan
    if math.isinf(f):
        return 1.0

    nu = (num_samples - 1) / 2.0
    significance = 2.0 * float(betainc(nu, nu, 1.0 / (1.0 + f)))
    significance = min(significance, 1.0)
    return max(0.0, 1.0 - significance)


def nanargmin(values: np.ndarray) -> int | None:
    """Index of the smallest non-NaN value, or None if all are NaN."""
    values = np.asarray(values, dtype=float)
    if values.size == 0 or np.all(np.isnan(values)):
        return None
    return int(np.nanargmin(values))
