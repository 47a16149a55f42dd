# recoannie/analysis/pulse_finder.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from recoannie.config import PulseFinderSettings
from recoannie.core.channel import RawChannel
from recoannie.core.pulse import RecoPulse

logger = logging.getLogger(__name__)


def _excursions(above: np.ndarray) -> list[tuple[int, int]]:
    """[start, stop) index ranges of the runs of True in `above`."""
    if above.size == 0:
        return []
    edges = np.diff(np.concatenate(([0], above.astype(np.int8), [0])))
    starts = np.flatnonzero(edges == 1)
    stops = np.flatnonzero(edges == -1)
    return list(zip(starts.tolist(), stops.tolist()))


@dataclass(frozen=True, slots=True)
class PulseFinder:
    """
    Finds pulses above a fixed threshold over the baseline.

    Each minibuffer is searched independently; a pulse still above
    threshold at the end of a minibuffer ends there.
    """
    settings: PulseFinderSettings = field(default_factory=PulseFinderSettings)

    @property
    def charge_per_adc_sample(self) -> float:
        """nC contributed by one ADC count above baseline held for one sample."""
        s = self.settings
        return s.adc_to_volt * s.ns_per_sample / s.impedance_ohm

    def find_in_minibuffer(self, samples: np.ndarray, baseline: float) -> list[RecoPulse]:
        raw = np.asarray(samples)
        if raw.ndim != 1:
            raise ValueError(f"samples must be 1D, got shape {raw.shape}")

        signal = raw.astype(np.float64) - baseline
        runs = _excursions(signal > self.settings.threshold_adc)

        # Merge runs separated by no more than min_separation quiet samples
        merged: list[list[int]] = []
        for start, stop in runs:
            if merged and start - merged[-1][1] <= self.settings.min_separation:
                merged[-1][1] = stop
            else:
                merged.append([start, stop])

        pulses: list[RecoPulse] = []
        for start, stop in merged:
            segment = signal[start:stop]
            peak = int(np.argmax(segment))
            pulses.append(
                RecoPulse(
                    start_time=start * self.settings.ns_per_sample,
                    amplitude=float(segment[peak]) * self.settings.adc_to_volt,
                    charge=float(np.sum(segment)) * self.charge_per_adc_sample,
                    raw_amplitude=int(raw[start + peak]),
                )
            )
        return pulses

    def find_pulses(self, channel: RawChannel, baseline: float) -> list[list[RecoPulse]]:
        """Pulses of every minibuffer of `channel`, indexed by minibuffer."""
        found = [self.find_in_minibuffer(mb, baseline) for mb in channel.minibuffers()]
        logger.debug(
            "Channel %d: %d pulses in %d minibuffers",
            channel.channel_number, sum(len(p) for p in found), channel.num_minibuffers,
        )
        return found


def find_pulses(
    channel: RawChannel, baseline: float, settings: PulseFinderSettings | None = None
) -> list[list[RecoPulse]]:
    return PulseFinder(settings or PulseFinderSettings()).find_pulses(channel, baseline)
