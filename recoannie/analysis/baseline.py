# recoannie/analysis/baseline.py
"""
ZE3RA baseline estimate for a RawChannel.

See section 2.2 of https://arxiv.org/pdf/1106.0808.pdf. The leading
samples of every minibuffer give a mean and a variance. Adjacent
minibuffers are compared with an F-test on their variances; minibuffers
whose variance is consistent with a neighbour (Q below the critical
value) are free of pulses near their start and are averaged into the
baseline. When none pass, the minibuffer closest to passing is used.

Q is the complement of the two-tailed F-test significance, so a pair
passes only when its sample variances are nearly identical. On real
noise that is rare, and the nearest-miss minibuffer is the usual
result; `BaselineEstimate.used_fallback` records which path was taken.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from recoannie.config import BaselineSettings
from recoannie.core.channel import RawChannel

from .stats import f_test_probability, mean_and_var, nanargmin

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BaselineEstimate:
    """
    Result of the ZE3RA baseline estimate.

    - mean / std_dev: baseline level and spread (ADC counts)
    - passing: minibuffers that entered the average
    - used_fallback: True if no minibuffer passed the F-test
    """
    mean: float
    std_dev: float
    passing: tuple[int, ...]
    used_fallback: bool
    minibuffer_means: tuple[float, ...] = ()
    minibuffer_variances: tuple[float, ...] = ()
    pair_q: tuple[float, ...] = ()


def minibuffer_q_values(pair_q: np.ndarray, num_minibuffers: int) -> np.ndarray:
    """
    Per-minibuffer Q: the smaller Q of the (at most two) adjacent pairs
    that contain the minibuffer. NaN pairs are ignored; NaN if no pair
    is usable.
    """
    q = np.full(num_minibuffers, np.nan)
    for j, value in enumerate(pair_q):
        if math.isnan(value):
            continue
        for mb in (j, j + 1):
            if math.isnan(q[mb]) or value < q[mb]:
                q[mb] = value
    return q


def ze3ra_estimate(
    channel: RawChannel, settings: BaselineSettings | None = None
) -> BaselineEstimate:
    settings = settings or BaselineSettings()
    n_samples = settings.num_baseline_samples

    means = np.empty(channel.num_minibuffers)
    variances = np.empty(channel.num_minibuffers)
    for mb, samples in enumerate(channel.minibuffers()):
        means[mb], variances[mb] = mean_and_var(samples, n_samples)

    pair_q = np.array(
        [
            f_test_probability(variances[j], variances[j + 1], n_samples)
            for j in range(channel.num_minibuffers - 1)
        ],
        dtype=float,
    )
    mb_q = minibuffer_q_values(pair_q, channel.num_minibuffers)

    passing = tuple(int(mb) for mb in np.flatnonzero(mb_q < settings.q_critical))

    if passing:
        idx = list(passing)
        mean = float(np.mean(means[idx]))
        std_dev = float(np.mean(np.sqrt(variances[idx])))
        used_fallback = False
    else:
        # Adopt the minibuffer closest to passing; a lone minibuffer has no
        # pair to compare with and is used as-is
        best = nanargmin(mb_q)
        if best is None:
            finite = np.flatnonzero(~np.isnan(means))
            best = int(finite[0]) if finite.size else 0
        mean = float(means[best])
        std_dev = float(np.sqrt(variances[best]))
        used_fallback = True
        logger.debug(
            "Channel %d: no minibuffer passed the F-test, using minibuffer %d",
            channel.channel_number, best,
        )

    return BaselineEstimate(
        mean=mean,
        std_dev=std_dev,
        passing=passing,
        used_fallback=used_fallback,
        minibuffer_means=tuple(float(m) for m in means),
        minibuffer_variances=tuple(float(v) for v in variances),
        pair_q=tuple(float(q) for q in pair_q),
    )


def ze3ra_baseline(channel: RawChannel, settings: BaselineSettings | None = None) -> float:
    """Baseline (ADC counts) of `channel`."""
    return ze3ra_estimate(channel, settings).mean
