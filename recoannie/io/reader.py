from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterator, Protocol, Sequence

import logging

import numpy as np

from recoannie.config import ReaderSettings
from recoannie.core import RawReadout
from recoannie.core.exceptions import CoreError, InvalidEntry

logger = logging.getLogger(__name__)


@dataclass
class PMTDataEntry:
    """
    One entry of the raw PMTData table: the full buffer of one VME card
    for one sequence ID.

    Field names follow the DAQ branches (LastSync, SequenceID, ...).
    The three variable-length arrays are sized by the integer fields:
    - data: full_buffer_size samples
    - trigger_counts: trigger_number values
    - rates: channels values
    """

    last_sync: int
    sequence_id: int
    start_time_sec: int
    start_time_nsec: int
    start_count: int
    trigger_number: int
    card_id: int
    channels: int
    buffer_size: int
    full_buffer_size: int
    event_size: int
    data: "np.ndarray" = field(repr=False)
    trigger_counts: "np.ndarray" = field(repr=False)
    rates: "np.ndarray" = field(repr=False)

    def validate(self) -> "PMTDataEntry":
        """
        Check the array size fields and return a copy of the entry with the
        arrays trimmed to them. The entry itself is left untouched.
        """
        for name in ("full_buffer_size", "trigger_number", "channels"):
            if getattr(self, name) < 0:
                raise InvalidEntry(
                    f"Negative {name} value ({getattr(self, name)}) for card "
                    f"{self.card_id} in sequence {self.sequence_id}"
                )

        return replace(
            self,
            data=_sized(self.data, self.full_buffer_size, np.uint16, "data", self),
            trigger_counts=_sized(
                self.trigger_counts, self.trigger_number, np.uint64, "trigger_counts", self
            ),
            rates=_sized(self.rates, self.channels, np.uint32, "rates", self),
        )


def _sized(values, size: int, dtype, name: str, entry: PMTDataEntry) -> np.ndarray:
    arr = np.asarray(values, dtype=dtype)
    if arr.ndim != 1 or arr.size < size:
        raise InvalidEntry(
            f"Card {entry.card_id} in sequence {entry.sequence_id}: `{name}` has "
            f"{arr.size} values, expected {size}"
        )
    return arr[:size]


class EntrySource(Protocol):
    """Protocol for random-access tables of PMTData entries.

    Implementations only need to know their length and load one entry.
    """

    def __len__(self) -> int:
        ...

    def entry(self, index: int) -> PMTDataEntry:
        ...


class ListEntrySource:
    """In-memory EntrySource over a sequence of PMTDataEntry objects."""

    def __init__(self, entries: Sequence[PMTDataEntry]):
        self._entries = list(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def entry(self, index: int) -> PMTDataEntry:
        return self._entries[index]


class RawReader:
    """Sequential source of RawReadout objects.

    Consecutive table entries that share a sequence ID (one per VME
    card) are merged into one RawReadout. `next()` and `previous()`
    return None at either end of the table instead of raising.
    """

    def __init__(self, source: EntrySource, settings: ReaderSettings | None = None):
        self._source = source
        self._settings = settings or ReaderSettings()
        # index of the next table entry to examine
        self._current_entry = 0
        self._last_sequence_id: int | None = None
        # largest number of cards seen in one readout so far
        self._max_cards = 0

    @property
    def current_entry(self) -> int:
        return self._current_entry

    def __iter__(self) -> Iterator[RawReadout]:
        while True:
            readout = self.next()
            if readout is None:
                return
            yield readout

    def next(self) -> RawReadout | None:
        return self._load_next_readout(reverse=False)

    def previous(self) -> RawReadout | None:
        return self._load_next_readout(reverse=True)

    # ------------------------------------------------------------------
    # Entry merging
    # ------------------------------------------------------------------
    def _load_next_readout(self, reverse: bool) -> RawReadout | None:
        step = 1
        if reverse:
            step = -1
            if self._current_entry <= 0:
                return None
            self._current_entry -= 1

        readout: RawReadout | None = None
        n_entries = len(self._source)

        # Read entries until the sequence ID changes or the table ends
        while 0 <= self._current_entry < n_entries:
            entry = self._source.entry(self._current_entry)

            # Skip the rest of the readout that was returned last
            if entry.sequence_id == self._last_sequence_id:
                self._current_entry += step
                continue

            if readout is None:
                readout = RawReadout(sequence_id=entry.sequence_id)
            elif entry.sequence_id != readout.sequence_id:
                if reverse:
                    # leave the entry for the next previous() call
                    self._current_entry += 1
                break

            self._current_entry += step
            try:
                self._add_entry(readout, entry)
            except CoreError:
                # drop the rest of the malformed readout on the next call
                self._last_sequence_id = readout.sequence_id
                raise
        else:
            if readout is not None and len(readout) < self._max_cards:
                logger.warning(
                    "Sequence %d ended with the table after %d of %d cards; "
                    "readout is truncated",
                    readout.sequence_id, len(readout), self._max_cards,
                )

        if reverse and self._current_entry < 0:
            self._current_entry = 0

        if readout is None:
            return None

        self._last_sequence_id = readout.sequence_id
        self._max_cards = max(self._max_cards, len(readout))
        logger.debug(
            "Loaded sequence %d (%d cards), next entry %d",
            readout.sequence_id, len(readout), self._current_entry,
        )
        return readout

    def _add_entry(self, readout: RawReadout, entry: PMTDataEntry) -> None:
        entry = entry.validate()
        readout.add_card(
            entry.card_id,
            channels=entry.channels,
            buffer_size=entry.buffer_size,
            minibuffer_size=entry.event_size * self._settings.event_size_to_minibuffer_size,
            data=entry.data,
            trigger_counts=entry.trigger_counts,
            rates=entry.rates,
            last_sync=entry.last_sync,
            start_time_sec=entry.start_time_sec,
            start_time_nsec=entry.start_time_nsec,
            start_count=entry.start_count,
            ns_per_clock_tick=self._settings.ns_per_clock_tick,
        )
