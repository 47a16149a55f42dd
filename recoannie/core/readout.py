# recoannie/core/readout.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence

import numpy as np

from .card import RawCard
from .channel import RawChannel
from .exceptions import CardNotFound, InvalidReadout
from .metadata import DEFAULT_NS_PER_CLOCK_TICK, RawTrigData

# Sentinel for a readout that has not been assigned a sequence ID yet
BOGUS_SEQUENCE_ID = -99999


@dataclass(slots=True)
class RawReadout:
    """
    RawReadout = all VME cards read out for one DAQ sequence ID.

    Holds a single trigger in non-Hefty mode or several triggers
    (one per minibuffer) in Hefty mode.
    """
    sequence_id: int = BOGUS_SEQUENCE_ID
    cards: dict[int, RawCard] = field(default_factory=dict, repr=False)
    trig_data: RawTrigData | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.sequence_id, (int, np.integer)):
            raise InvalidReadout("RawReadout.sequence_id must be an integer.")
        if self.trig_data is not None and not isinstance(self.trig_data, RawTrigData):
            raise InvalidReadout("RawReadout.trig_data must be a RawTrigData instance.")

        normalized: dict[int, RawCard] = {}
        for key, card in dict(self.cards).items():
            if not isinstance(card, RawCard):
                raise InvalidReadout("RawReadout.cards values must be RawCard instances.")
            if card.card_id != key:
                raise InvalidReadout(
                    f"Card id mismatch: key {key} but RawCard.card_id is {card.card_id}."
                )
            normalized[int(key)] = card

        self.sequence_id = int(self.sequence_id)
        self.cards = normalized

    # ---- dict-like API ----
    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[int]:
        return iter(self.cards)

    def __contains__(self, index: object) -> bool:
        return index in self.cards

    def keys(self) -> Iterable[int]:
        return self.cards.keys()

    def items(self) -> Iterable[tuple[int, RawCard]]:
        return self.cards.items()

    def values(self) -> Iterable[RawCard]:
        return self.cards.values()

    def __getitem__(self, index: int) -> RawCard:
        try:
            return self.cards[index]
        except KeyError as e:
            raise CardNotFound(index) from e

    def card(self, index: int) -> RawCard:
        return self[index]

    def channel(self, card_index: int, channel_index: int) -> RawChannel:
        return self[card_index][channel_index]

    def get(self, index: int, default: RawCard | None = None) -> RawCard | None:
        return self.cards.get(index, default)

    def set_trig_data(self, trig_data: RawTrigData) -> None:
        if not isinstance(trig_data, RawTrigData):
            raise InvalidReadout("set_trig_data() expects a RawTrigData instance.")
        self.trig_data = trig_data

    # ---- construction ----
    def add_card(
        self,
        card_id: int,
        *,
        channels: int,
        buffer_size: int,
        minibuffer_size: int,
        data: Sequence[int] | np.ndarray,
        trigger_counts: Sequence[int] | np.ndarray,
        rates: Sequence[int] | np.ndarray,
        last_sync: int = 0,
        start_time_sec: int = 0,
        start_time_nsec: int = 0,
        start_count: int = 0,
        ns_per_clock_tick: int = DEFAULT_NS_PER_CLOCK_TICK,
        overwrite_ok: bool = False,
    ) -> RawCard:
        """
        Decode a card buffer and insert the resulting RawCard.

        A second card with the same id means a corrupted or duplicated
        source entry; raises InvalidReadout unless overwrite_ok=True.
        """
        if card_id in self.cards and not overwrite_ok:
            raise InvalidReadout(
                f"Sequence {self.sequence_id}: card {card_id} already exists (overwrite_ok=False)."
            )

        card = RawCard.from_buffer(
            card_id,
            channels=channels,
            buffer_size=buffer_size,
            minibuffer_size=minibuffer_size,
            data=data,
            trigger_counts=trigger_counts,
            rates=rates,
            last_sync=last_sync,
            start_time_sec=start_time_sec,
            start_time_nsec=start_time_nsec,
            start_count=start_count,
            ns_per_clock_tick=ns_per_clock_tick,
        )
        self.cards[card.card_id] = card
        return card
