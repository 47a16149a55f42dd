# recoannie/core/topology.py
from __future__ import annotations

from dataclasses import dataclass

from .exceptions import ConfigError

# VME cards that read out water-tank PMTs
DEFAULT_TANK_CARDS: frozenset[int] = frozenset(
    {3, 4, 5, 6, 8, 9, 10, 11, 13, 14, 15, 16, 18, 19, 20}
)

# (card, channel) inputs on tank cards that are not tank PMTs:
# the two NCV PMTs and the cosmic / calibration trigger inputs
DEFAULT_NON_TANK_CHANNELS: frozenset[tuple[int, int]] = frozenset(
    {(4, 1), (8, 2), (14, 0), (18, 0)}
)


@dataclass(frozen=True, slots=True)
class DetectorTopology:
    """
    Role of each (card, channel) input of the DAQ.

    - tank_cards: cards whose channels are water-tank PMTs
    - excluded_channels: (card, channel) pairs on those cards that are not
    - ncv1 / ncv2: the two neutron capture volume PMTs
    """
    tank_cards: frozenset[int] = DEFAULT_TANK_CARDS
    excluded_channels: frozenset[tuple[int, int]] = DEFAULT_NON_TANK_CHANNELS
    ncv1: tuple[int, int] = (4, 1)
    ncv2: tuple[int, int] = (18, 0)

    def __post_init__(self) -> None:
        try:
            cards = frozenset(int(c) for c in self.tank_cards)
            excluded = frozenset((int(c), int(ch)) for c, ch in self.excluded_channels)
            ncv1 = (int(self.ncv1[0]), int(self.ncv1[1]))
            ncv2 = (int(self.ncv2[0]), int(self.ncv2[1]))
        except (TypeError, ValueError, IndexError) as e:
            raise ConfigError(f"Invalid detector topology: {e}") from e

        object.__setattr__(self, "tank_cards", cards)
        object.__setattr__(self, "excluded_channels", excluded)
        object.__setattr__(self, "ncv1", ncv1)
        object.__setattr__(self, "ncv2", ncv2)

    def is_tank_pmt(self, card: int, channel: int) -> bool:
        return card in self.tank_cards and (card, channel) not in self.excluded_channels


DEFAULT_TOPOLOGY = DetectorTopology()
