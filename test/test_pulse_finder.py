# test/test_pulse_finder.py
import numpy as np
import pytest

from recoannie.analysis.pulse_finder import PulseFinder, find_pulses
from recoannie.config import PulseFinderSettings
from recoannie.core.channel import RawChannel


def _mb(values, size=16, base=300):
    out = np.full(size, base)
    for i, v in values.items():
        out[i] = v
    return out


def test_single_pulse_observables():
    finder = PulseFinder()
    s = finder.settings
    samples = _mb({3: 310, 4: 320, 5: 312})

    pulses = finder.find_in_minibuffer(samples, 300.0)
    assert len(pulses) == 1
    p = pulses[0]
    assert p.start_time == 3 * s.ns_per_sample
    assert p.raw_amplitude == 320
    assert p.amplitude == pytest.approx(20 * s.adc_to_volt)
    assert p.charge == pytest.approx(42 * s.adc_to_volt * s.ns_per_sample / s.impedance_ohm)


def test_threshold_is_strict():
    finder = PulseFinder(PulseFinderSettings(threshold_adc=7))
    assert finder.find_in_minibuffer(_mb({4: 307}), 300.0) == []
    assert len(finder.find_in_minibuffer(_mb({4: 308}), 300.0)) == 1


def test_separate_pulses_are_time_ordered():
    samples = _mb({2: 340, 3: 330, 9: 350})
    pulses = PulseFinder().find_in_minibuffer(samples, 300.0)
    assert [p.start_time for p in pulses] == [4, 18]


def test_min_separation_merges_close_pulses():
    samples = _mb({2: 340, 3: 330, 5: 350})
    assert len(PulseFinder().find_in_minibuffer(samples, 300.0)) == 2

    merged = PulseFinder(PulseFinderSettings(min_separation=1)).find_in_minibuffer(samples, 300.0)
    assert len(merged) == 1
    assert merged[0].start_time == 4
    assert merged[0].raw_amplitude == 350


def test_pulses_do_not_cross_minibuffers():
    mb0 = _mb({14: 340, 15: 345})
    mb1 = _mb({0: 342, 1: 320})
    ch = RawChannel(channel_number=0, data=np.concatenate([mb0, mb1]), num_minibuffers=2)

    found = find_pulses(ch, 300.0)
    assert len(found) == 2
    assert [p.start_time for p in found[0]] == [28]
    assert [p.start_time for p in found[1]] == [0]


def test_quiet_and_nan_baseline_give_no_pulses():
    finder = PulseFinder()
    assert finder.find_in_minibuffer(_mb({}), 300.0) == []
    assert finder.find_in_minibuffer(_mb({3: 900}), float("nan")) == []


def test_find_pulses_one_list_per_minibuffer():
    ch = RawChannel(channel_number=1, data=np.full(40, 300), num_minibuffers=4)
    assert find_pulses(ch, 300.0) == [[], [], [], []]


def test_rejects_2d_samples():
    with pytest.raises(ValueError):
        PulseFinder().find_in_minibuffer(np.zeros((2, 2)), 0.0)
