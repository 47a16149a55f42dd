# recoannie/core/card.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence

import numpy as np

from .channel import RawChannel
from .exceptions import ChannelNotFound, InvalidCard, InvalidChannel, MinibufferOutOfRange
from .metadata import DEFAULT_NS_PER_CLOCK_TICK, CardMeta

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RawCard:
    """
    Full readout of raw data from all channels monitored by one VME card.

    Design goals:
    - dict-like access: card[1] -> RawChannel
    - strict: buffer layout inconsistencies fail at construction time
    - channels are de-interleaved copies, never views into the card buffer
    """
    card_id: int
    meta: CardMeta = field(default_factory=CardMeta, repr=False)
    channels: dict[int, RawChannel] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.card_id, (int, np.integer)) or self.card_id < 0:
            raise InvalidCard("RawCard.card_id must be a non-negative integer.")
        if not isinstance(self.meta, CardMeta):
            raise InvalidCard("RawCard.meta must be a CardMeta instance.")

        normalized: dict[int, RawChannel] = {}
        for key, ch in dict(self.channels).items():
            if not isinstance(ch, RawChannel):
                raise InvalidCard("RawCard.channels values must be RawChannel instances.")
            if ch.channel_number != key:
                raise InvalidCard(
                    f"Channel number mismatch: key {key} but "
                    f"RawChannel.channel_number is {ch.channel_number}."
                )
            normalized[int(key)] = ch

        self.card_id = int(self.card_id)
        self.channels = normalized

    @classmethod
    def from_buffer(
        cls,
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
    ) -> "RawCard":
        """
        Decode a card's shared buffer into per-channel RawChannel objects.

        `data` holds `channels` fixed-size slots of `buffer_size` samples.
        """
        buf = np.asarray(data, dtype=np.uint16)
        if buf.ndim != 1:
            raise InvalidCard(f"Card {card_id}: buffer must be 1D, got shape {buf.shape}")
        if buffer_size <= 0 or minibuffer_size <= 0:
            raise InvalidCard(
                f"Card {card_id}: buffer_size ({buffer_size}) and minibuffer_size "
                f"({minibuffer_size}) must be positive"
            )

        if channels != buf.size // buffer_size:
            raise InvalidCard(
                f"Card {card_id}: mismatch between number of channels ({channels}) "
                f"and channel buffer size ({buffer_size}) for {buf.size} samples"
            )

        meta = CardMeta(
            last_sync=last_sync,
            start_time_sec=start_time_sec,
            start_time_nsec=start_time_nsec,
            start_count=start_count,
            trigger_counts=trigger_counts,
            ns_per_clock_tick=ns_per_clock_tick,
        )
        if meta.trigger_count != buffer_size // minibuffer_size:
            raise InvalidCard(
                f"Card {card_id}: mismatch between number of minibuffers "
                f"({meta.trigger_count}) and minibuffer size ({minibuffer_size}) "
                f"for a channel buffer of {buffer_size} samples"
            )

        rates = np.asarray(rates)
        if rates.size < channels:
            raise InvalidCard(
                f"Card {card_id}: {rates.size} rates supplied for {channels} channels"
            )

        card = cls(card_id=card_id, meta=meta)
        for c in range(channels):
            card.add_channel(c, buf, buffer_size, int(rates[c]))

        logger.debug(
            "Decoded card %d: %d channels x %d minibuffers",
            card.card_id, len(card), card.num_minibuffers,
        )
        return card

    # ---- dict-like API ----
    def __len__(self) -> int:
        return len(self.channels)

    def __iter__(self) -> Iterator[int]:
        return iter(self.channels)

    def __contains__(self, index: object) -> bool:
        return index in self.channels

    def keys(self) -> Iterable[int]:
        return self.channels.keys()

    def items(self) -> Iterable[tuple[int, RawChannel]]:
        return self.channels.items()

    def values(self) -> Iterable[RawChannel]:
        return self.channels.values()

    def __getitem__(self, index: int) -> RawChannel:
        try:
            return self.channels[index]
        except KeyError as e:
            raise ChannelNotFound(index) from e

    def channel(self, index: int) -> RawChannel:
        return self[index]

    def get(self, index: int, default: RawChannel | None = None) -> RawChannel | None:
        return self.channels.get(index, default)

    # ---- metadata ----
    @property
    def num_minibuffers(self) -> int:
        return self.meta.trigger_count

    @property
    def trigger_counts(self) -> np.ndarray:
        return self.meta.trigger_counts

    def trigger_time(
        self, minibuffer: int, *, ns_per_clock_tick: int | None = None
    ) -> int:
        """
        Trigger time of a minibuffer in nanoseconds since the Unix epoch.

        The clock period defaults to the one the card was decoded with.
        """
        if minibuffer < 0 or minibuffer >= self.num_minibuffers:
            raise MinibufferOutOfRange(
                f"Minibuffer {minibuffer} requested from card {self.card_id}, "
                f"which has {self.num_minibuffers} minibuffers"
            )
        ticks = int(self.meta.trigger_counts[minibuffer]) - int(self.meta.start_count)
        if ns_per_clock_tick is None:
            ns_per_clock_tick = self.meta.ns_per_clock_tick
        return self.meta.start_time_ns + ticks * ns_per_clock_tick

    # ---- construction ----
    def add_channel(
        self,
        index: int,
        buffer: np.ndarray,
        channel_buffer_size: int,
        rate: int,
        *,
        overwrite_ok: bool = False,
    ) -> RawChannel:
        """
        Slice channel `index` out of the card buffer and store it.

        If overwrite_ok=False and the channel already exists, raises InvalidCard.
        """
        if index in self.channels and not overwrite_ok:
            raise InvalidCard(
                f"Card {self.card_id}: channel {index} already exists (overwrite_ok=False)."
            )

        first, _ = self.slot_halves(index, buffer, channel_buffer_size)
        start = index * channel_buffer_size
        try:
            channel = RawChannel.from_range(
                index,
                buffer,
                start,
                start + first.size,
                rate,
                self.num_minibuffers,
            )
        except InvalidChannel as e:
            raise InvalidCard(f"Card {self.card_id}: {e}") from e
        self.channels[index] = channel
        return channel

    def slot_halves(
        self, index: int, buffer: np.ndarray, channel_buffer_size: int
    ) -> tuple[np.ndarray, np.ndarray]:
        """
        Return the two halves of channel `index`'s slot in a card buffer.

        The firmware writes each channel's slot as two bursts; the first
        half is the one read out as the channel waveform.
        """
        start = index * channel_buffer_size
        end = (index + 1) * channel_buffer_size
        if index < 0 or len(buffer) < end:
            raise InvalidCard(
                f"Card {self.card_id}: missing data for channel {index} "
                f"(needs samples [{start}, {end}), buffer has {len(buffer)})"
            )
        halfway = start + channel_buffer_size // 2
        return buffer[start:halfway], buffer[halfway:end]
