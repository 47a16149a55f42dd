# core/channel.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from .exceptions import InvalidChannel, MinibufferOutOfRange

import numpy as np


@dataclass(slots=True, frozen=True)
class RawChannel:
    """
    Full readout of raw ADC counts from one channel of a VME card.

    The samples of all minibuffers are stored back to back in `data`;
    `minibuffer(i)` returns the i-th equal-length slice.
    """
    channel_number: int
    data: np.ndarray = field(repr=False)
    rate: int = 0
    num_minibuffers: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.channel_number, (int, np.integer)) or self.channel_number < 0:
            raise InvalidChannel("RawChannel.channel_number must be a non-negative integer.")

        if not isinstance(self.num_minibuffers, (int, np.integer)) or self.num_minibuffers <= 0:
            raise InvalidChannel("RawChannel.num_minibuffers must be a positive integer.")

        # Own a copy: never alias the card buffer this was sliced from
        d = np.array(self.data, copy=True)
        if d.ndim != 1:
            raise InvalidChannel(f"RawChannel.data must be 1D, got shape {d.shape}")
        d = d.astype(np.int16)

        if d.size % self.num_minibuffers != 0:
            raise InvalidChannel(
                f"Channel {self.channel_number}: {d.size} samples cannot be split "
                f"into {self.num_minibuffers} equal minibuffers"
            )

        d.setflags(write=False)
        object.__setattr__(self, "channel_number", int(self.channel_number))
        object.__setattr__(self, "rate", int(self.rate))
        object.__setattr__(self, "num_minibuffers", int(self.num_minibuffers))
        object.__setattr__(self, "data", d)

    @classmethod
    def from_range(
        cls,
        channel_number: int,
        samples: np.ndarray,
        begin: int,
        end: int,
        rate: int,
        num_minibuffers: int,
    ) -> "RawChannel":
        """Copy samples[begin:end] into a new channel."""
        if begin < 0 or end < begin or end > len(samples):
            raise InvalidChannel(
                f"Invalid sample range [{begin}, {end}) for a buffer of {len(samples)} samples"
            )
        return cls(
            channel_number=channel_number,
            data=samples[begin:end],
            rate=rate,
            num_minibuffers=num_minibuffers,
        )

    # Convenience accessors
    @property
    def n(self) -> int:
        return int(self.data.size)

    @property
    def minibuffer_size(self) -> int:
        return self.n // self.num_minibuffers

    # Core operations
    def minibuffer(self, index: int) -> np.ndarray:
        if index < 0 or index >= self.num_minibuffers:
            raise MinibufferOutOfRange(
                f"Minibuffer {index} requested from channel {self.channel_number}, "
                f"which has {self.num_minibuffers} minibuffers"
            )
        size = self.minibuffer_size
        return self.data[index * size:(index + 1) * size]

    def minibuffers(self) -> Iterator[np.ndarray]:
        for index in range(self.num_minibuffers):
            yield self.minibuffer(index)

    def to_numpy(self, *, copy: bool = False) -> np.ndarray:
        return self.data.copy() if copy else self.data
