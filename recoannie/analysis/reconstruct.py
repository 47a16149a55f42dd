# recoannie/analysis/reconstruct.py
from __future__ import annotations

import logging
from typing import Iterable, Iterator, Literal

from recoannie.config import AnalysisConfig
from recoannie.core.exceptions import CardNotFound, ChannelNotFound
from recoannie.core.readout import RawReadout
from recoannie.core.reco_readout import RecoReadout

from .baseline import ze3ra_estimate
from .pulse_finder import PulseFinder

logger = logging.getLogger(__name__)


def reconstruct_readout(
    raw_readout: RawReadout,
    config: AnalysisConfig | None = None,
    channels: Iterable[tuple[int, int]] | None = None,
    *,
    missing: Literal["ignore", "raise"] = "ignore",
) -> RecoReadout:
    """
    Baseline-subtract and pulse-find the requested channels of one readout.

    channels:
      - None: every channel of every card in the readout
      - iterable of (card, channel) pairs

    missing:
      - "ignore": skip requested channels absent from the readout
        (truncated readouts)
      - "raise": CardNotFound / ChannelNotFound

    Every minibuffer of a processed channel gets a key in the result,
    even when no pulse was found.
    """
    if missing not in ("ignore", "raise"):
        raise ValueError(f"missing must be 'ignore' or 'raise', got {missing!r}")

    config = config or AnalysisConfig()
    finder = PulseFinder(config.pulse_finder)
    reco = RecoReadout(sequence_id=raw_readout.sequence_id, topology=config.topology)

    if channels is None:
        wanted = [(card_id, ch) for card_id, card in raw_readout.items() for ch in card]
    else:
        wanted = list(channels)

    for card_id, channel_id in wanted:
        try:
            channel = raw_readout.channel(card_id, channel_id)
        except (CardNotFound, ChannelNotFound):
            if missing == "raise":
                raise
            logger.debug(
                "Sequence %d: channel (%d, %d) not present, skipped",
                raw_readout.sequence_id, card_id, channel_id,
            )
            continue

        baseline = ze3ra_estimate(channel, config.baseline)
        for mb, pulses in enumerate(finder.find_pulses(channel, baseline.mean)):
            reco.add_pulses(card_id, channel_id, mb, pulses)

    return reco


def reconstruct_run(
    readouts: Iterable[RawReadout],
    config: AnalysisConfig | None = None,
    channels: Iterable[tuple[int, int]] | None = None,
) -> Iterator[RecoReadout]:
    """Reconstruct readouts one at a time, in the order they are supplied."""
    config = config or AnalysisConfig()
    wanted = None if channels is None else list(channels)
    for n, raw_readout in enumerate(readouts, start=1):
        yield reconstruct_readout(raw_readout, config, wanted)
        if n % 1000 == 0:
            logger.info("Reconstructed %d readouts", n)
