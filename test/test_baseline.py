# test/test_baseline.py
import math

import numpy as np
import pytest

from recoannie.analysis.baseline import minibuffer_q_values, ze3ra_baseline, ze3ra_estimate
from recoannie.config import BaselineSettings
from recoannie.core.channel import RawChannel

# 25 samples of integer noise around zero
NOISE = np.array([0, 1, -1, 2, -2, 1, 0, -1, 3, -3, 0, 1, -1, 2, -2, 1, 0, -1, 3, -3, 0, 1, -1, 2, -2])


def _channel(minibuffers):
    return RawChannel(
        channel_number=0,
        data=np.concatenate(minibuffers),
        num_minibuffers=len(minibuffers),
    )


def test_identical_variance_all_minibuffers_pass():
    offsets = [300, 301, 299, 302, 300]
    ch = _channel([off + NOISE for off in offsets])

    est = ze3ra_estimate(ch)
    assert est.passing == (0, 1, 2, 3, 4)
    assert not est.used_fallback
    assert est.mean == pytest.approx(ch.data.mean())
    assert est.std_dev == pytest.approx(np.std(NOISE, ddof=1))
    assert ze3ra_baseline(ch) == pytest.approx(est.mean)


def test_single_noisy_minibuffer_is_excluded():
    mbs = [300 + NOISE for _ in range(5)]
    mbs[2] = 300 + 10 * NOISE
    ch = _channel(mbs)

    est = ze3ra_estimate(ch)
    assert est.passing == (0, 1, 3, 4)
    assert est.mean == pytest.approx(300 + NOISE.mean())


def test_noisy_first_minibuffer_is_excluded():
    mbs = [300 + NOISE for _ in range(4)]
    mbs[0] = 300 + 10 * NOISE
    est = ze3ra_estimate(_channel(mbs))
    assert est.passing == (1, 2, 3)


def test_only_leading_samples_are_used():
    # A large pulse after sample 25 does not disturb the estimate
    tail = np.full(25, 300)
    tail[5:10] = 900
    mbs = [np.concatenate([300 + NOISE, tail]) for _ in range(3)]
    est = ze3ra_estimate(_channel(mbs))
    assert est.passing == (0, 1, 2)
    assert est.mean == pytest.approx(300 + NOISE.mean())


def test_constant_minibuffers_pass_with_zero_spread():
    ch = _channel([np.full(30, 250) for _ in range(3)])
    est = ze3ra_estimate(ch)
    assert est.passing == (0, 1, 2)
    assert est.mean == pytest.approx(250.0)
    assert est.std_dev == 0.0


def test_fallback_when_no_minibuffer_passes():
    mbs = [300 + NOISE, 200 + 10 * NOISE, 100 + 100 * NOISE]
    ch = _channel(mbs)

    est = ze3ra_estimate(ch)
    assert est.passing == ()
    assert est.used_fallback
    assert math.isfinite(est.mean)
    assert est.mean == pytest.approx(est.minibuffer_means[0])


def test_single_minibuffer_uses_its_own_statistics():
    ch = _channel([300 + NOISE])
    est = ze3ra_estimate(ch)
    assert est.used_fallback
    assert est.pair_q == ()
    assert est.mean == pytest.approx(300 + NOISE.mean())
    assert est.std_dev == pytest.approx(np.std(NOISE, ddof=1))


def test_settings_change_sample_count():
    mbs = [np.concatenate([300 + NOISE[:5], np.full(20, 400)]) for _ in range(2)]
    ch = _channel(mbs)

    est = ze3ra_estimate(ch, BaselineSettings(num_baseline_samples=5))
    assert est.mean == pytest.approx(300 + NOISE[:5].mean())


def test_minibuffer_q_values_takes_best_adjacent_pair():
    q = minibuffer_q_values(np.array([0.5, 0.1, np.nan]), 4)
    assert q[0] == 0.5
    assert q[1] == pytest.approx(0.1)
    assert q[2] == pytest.approx(0.1)
    assert math.isnan(q[3])


def test_gaussian_noise_usually_takes_the_nearest_miss_path():
    rng = np.random.default_rng(20160501)
    estimates = []
    for _ in range(50):
        mbs = [np.rint(rng.normal(300.0, 2.0, 40)).astype(np.int16) for _ in range(8)]
        estimates.append(ze3ra_estimate(_channel(mbs)))

    fallbacks = sum(est.used_fallback for est in estimates)
    assert fallbacks >= 40
    for est in estimates:
        assert est.mean == pytest.approx(300.0, abs=2.5)
        assert math.isfinite(est.std_dev)
