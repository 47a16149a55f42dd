# recoannie/core/reco_readout.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .exceptions import InvalidReadout, PulsesNotFound
from .pulse import RecoPulse
from .readout import BOGUS_SEQUENCE_ID
from .topology import DEFAULT_TOPOLOGY, DetectorTopology

PulseKey = tuple[int, int, int]


@dataclass(slots=True)
class RecoReadout:
    """
    Reconstructed pulses for one DAQ readout.

    Pulses are keyed by (card, channel, minibuffer). Each key holds the
    pulses in the order they were added. Looking up a key that was never
    populated raises PulsesNotFound; it never returns an empty list.
    """
    sequence_id: int = BOGUS_SEQUENCE_ID
    topology: DetectorTopology = field(default=DEFAULT_TOPOLOGY, repr=False)
    _pulses: dict[PulseKey, list[RecoPulse]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.topology, DetectorTopology):
            raise InvalidReadout("RecoReadout.topology must be a DetectorTopology instance.")
        self.sequence_id = int(self.sequence_id)

    # ---- insertion ----
    def add_pulse(self, card: int, channel: int, minibuffer: int, pulse: RecoPulse) -> None:
        if not isinstance(pulse, RecoPulse):
            raise InvalidReadout("add_pulse() expects a RecoPulse instance.")
        self._pulses.setdefault(self._key(card, channel, minibuffer), []).append(pulse)

    def add_pulses(
        self, card: int, channel: int, minibuffer: int, pulses: Iterable[RecoPulse]
    ) -> None:
        """
        Append `pulses` to the list for (card, channel, minibuffer).

        The key is created even when `pulses` is empty, which marks the
        minibuffer as reconstructed.
        """
        batch = list(pulses)
        for p in batch:
            if not isinstance(p, RecoPulse):
                raise InvalidReadout("add_pulses() expects RecoPulse instances.")
        self._pulses.setdefault(self._key(card, channel, minibuffer), []).extend(batch)

    # ---- lookup ----
    def get_pulses(self, card: int, channel: int, minibuffer: int) -> list[RecoPulse]:
        """Copy of the pulses stored for (card, channel, minibuffer)."""
        key = (card, channel, minibuffer)
        try:
            return list(self._pulses[key])
        except KeyError as e:
            raise PulsesNotFound(key) from e

    def __contains__(self, key: object) -> bool:
        return key in self._pulses

    def __len__(self) -> int:
        return len(self._pulses)

    def __iter__(self) -> Iterator[PulseKey]:
        return iter(sorted(self._pulses))

    def keys(self) -> list[PulseKey]:
        return sorted(self._pulses)

    def pulses(self) -> Iterator[tuple[PulseKey, list[RecoPulse]]]:
        for key in sorted(self._pulses):
            yield key, list(self._pulses[key])

    def cards(self) -> list[int]:
        return sorted({card for card, _, _ in self._pulses})

    def channels(self, card: int) -> list[int]:
        return sorted({ch for c, ch, _ in self._pulses if c == card})

    def minibuffers(self, card: int, channel: int) -> list[int]:
        return sorted(mb for c, ch, mb in self._pulses if c == card and ch == channel)

    # ---- derived quantities ----
    def tank_charge(
        self, minibuffer: int, start_time: float, end_time: float
    ) -> tuple[float, int]:
        """
        Sum the charge (nC) of tank PMT pulses in [start_time, end_time).

        Returns (charge, number of distinct PMTs with a pulse in the window).
        """
        charge = 0.0
        pmts: set[tuple[int, int]] = set()
        for (card, channel, mb), pulses in self._pulses.items():
            if mb != minibuffer or not self.topology.is_tank_pmt(card, channel):
                continue
            for pulse in pulses:
                if start_time <= pulse.start_time < end_time:
                    charge += pulse.charge
                    pmts.add((card, channel))
        return charge, len(pmts)

    def has_coincidence(
        self, card: int, channel: int, minibuffer: int, time: float, tolerance: float
    ) -> bool:
        """True if (card, channel) has a pulse within `tolerance` ns of `time`."""
        for pulse in self.get_pulses(card, channel, minibuffer):
            if abs(pulse.start_time - time) < tolerance:
                return True
        return False

    @staticmethod
    def _key(card: int, channel: int, minibuffer: int) -> PulseKey:
        key = (int(card), int(channel), int(minibuffer))
        if min(key) < 0:
            raise InvalidReadout(f"Pulse key indices must be non-negative, got {key}.")
        return key
