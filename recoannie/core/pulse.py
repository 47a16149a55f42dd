# recoannie/core/pulse.py
from __future__ import annotations

from dataclasses import dataclass

import math
import numbers

from .exceptions import InvalidPulse


@dataclass(frozen=True, slots=True)
class RecoPulse:
    """
    A pulse reconstructed from one minibuffer of a RawChannel.

    - start_time: ns since the start of the minibuffer
    - amplitude: peak height above baseline (V)
    - charge: integrated charge above baseline (nC)
    - raw_amplitude: peak height in raw ADC counts (baseline included)
    """
    start_time: int
    amplitude: float
    charge: float
    raw_amplitude: int

    def __post_init__(self) -> None:
        t = self.start_time
        if isinstance(t, bool) or not isinstance(t, numbers.Real) or not float(t).is_integer():
            raise InvalidPulse(f"RecoPulse.start_time must be a whole number of ns, got {t!r}.")
        object.__setattr__(self, "start_time", int(t))
        if self.start_time < 0:
            raise InvalidPulse("RecoPulse.start_time must be non-negative.")

        for name in ("amplitude", "charge"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise InvalidPulse(f"RecoPulse.{name} must be finite, got {value}.")
            object.__setattr__(self, name, value)

        object.__setattr__(self, "raw_amplitude", int(self.raw_amplitude))
