# recoannie/core/__init__.py
"""
Core domain objects for recoannie.

This module defines the DAQ data model:
- RawChannel: one channel's ADC samples, sliced into minibuffers
- RawCard: one VME card's channels plus timing metadata
- RawReadout: all cards read out for one sequence ID
- RecoPulse / RecoReadout: reconstructed pulses and derived quantities

The core layer is independent from I/O and storage formats.
"""

from .channel import RawChannel
from .card import RawCard
from .readout import RawReadout, BOGUS_SEQUENCE_ID
from .pulse import RecoPulse
from .reco_readout import RecoReadout
from .metadata import CardMeta, RawTrigData
from .topology import DetectorTopology, DEFAULT_TOPOLOGY
from .exceptions import (
    CoreError,
    InvalidChannel,
    InvalidCard,
    InvalidReadout,
    InvalidPulse,
    InvalidEntry,
    ConfigError,
    CardNotFound,
    ChannelNotFound,
    PulsesNotFound,
    MinibufferOutOfRange,
)


__all__ = [
    # raw data
    "RawChannel",
    "RawCard",
    "RawReadout",
    "BOGUS_SEQUENCE_ID",

    # reconstructed data
    "RecoPulse",
    "RecoReadout",

    # metadata
    "CardMeta",
    "RawTrigData",
    "DetectorTopology",
    "DEFAULT_TOPOLOGY",

    # exceptions
    "CoreError",
    "InvalidChannel",
    "InvalidCard",
    "InvalidReadout",
    "InvalidPulse",
    "InvalidEntry",
    "ConfigError",
    "CardNotFound",
    "ChannelNotFound",
    "PulsesNotFound",
    "MinibufferOutOfRange",
]
