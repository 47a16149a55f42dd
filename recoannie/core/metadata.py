# recoannie/core/metadata.py
from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .exceptions import InvalidCard, InvalidReadout

# Clock ticks of the VME card trigger counter
DEFAULT_NS_PER_CLOCK_TICK = 8


@dataclass(frozen=True, slots=True)
class CardMeta:
    """
    Timing metadata attached to a RawCard.

    - last_sync: value of the card's sync counter at the last sync pulse
    - start_time_sec / start_time_nsec: wall-clock start of the readout
    - start_count: clock counter value at start_time
    - trigger_counts: clock counter value for each trigger (one per minibuffer)
    - ns_per_clock_tick: period of that clock counter
    """
    last_sync: int = 0
    start_time_sec: int = 0
    start_time_nsec: int = 0
    start_count: int = 0
    trigger_counts: np.ndarray = field(
        default_factory=lambda: np.zeros(0, dtype=np.uint64), repr=False
    )
    ns_per_clock_tick: int = DEFAULT_NS_PER_CLOCK_TICK

    def __post_init__(self) -> None:
        counts = np.array(self.trigger_counts, dtype=np.uint64, copy=True)
        if counts.ndim != 1:
            raise InvalidCard(f"CardMeta.trigger_counts must be 1D, got shape {counts.shape}")
        counts.setflags(write=False)
        object.__setattr__(self, "trigger_counts", counts)
        if self.ns_per_clock_tick <= 0:
            raise InvalidCard(
                f"CardMeta.ns_per_clock_tick must be positive, got {self.ns_per_clock_tick}"
            )

    @property
    def trigger_count(self) -> int:
        return int(self.trigger_counts.size)

    @property
    def start_time_ns(self) -> int:
        return int(self.start_time_sec) * 1_000_000_000 + int(self.start_time_nsec)


@dataclass(frozen=True, slots=True)
class RawTrigData:
    """
    Contents of the DAQ trigger-board record for one sequence ID.

    Only carried along with a RawReadout; the reconstruction never reads it.
    """
    firmware_version: int = 0
    sequence_id: int = -1
    event_size: int = 0
    trigger_size: int = 0
    fifo_overflow: int = 0
    driver_overflow: int = 0
    event_ids: tuple[int, ...] = ()
    event_times: tuple[int, ...] = ()
    trigger_masks: tuple[int, ...] = ()
    trigger_counters: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        for name in ("event_ids", "event_times", "trigger_masks", "trigger_counters"):
            value = getattr(self, name)
            if value is None:
                object.__setattr__(self, name, ())
            elif isinstance(value, (str, bytes)):
                raise InvalidReadout(f"RawTrigData.{name} must be a sequence of integers.")
            else:
                object.__setattr__(self, name, tuple(int(v) for v in value))

        if len(self.event_ids) != len(self.event_times):
            raise InvalidReadout(
                "RawTrigData.event_ids and event_times must have the same length, "
                f"got {len(self.event_ids)} vs {len(self.event_times)}"
            )
