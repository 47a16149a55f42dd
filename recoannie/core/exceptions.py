# recoannie/core/exceptions.py
from __future__ import annotations


class CoreError(Exception):
    """Base error for all core-domain exceptions."""


# ---- Validation / construction errors ----
class InvalidChannel(CoreError):
    """Raised when a RawChannel is constructed with invalid inputs."""


class InvalidCard(CoreError):
    """Raised when a RawCard / CardMeta is inconsistent with its buffer layout."""


class InvalidReadout(CoreError):
    """Raised when a RawReadout / RecoReadout is assembled with invalid inputs."""


class InvalidPulse(CoreError):
    """Raised when a RecoPulse is constructed with invalid inputs."""


class InvalidEntry(CoreError):
    """Raised when a raw data table entry is malformed (e.g. negative array sizes)."""


class ConfigError(CoreError):
    """Raised when analysis settings are invalid or cannot be parsed."""


# ---- Lookup errors (also behave like KeyError / IndexError) ----
class CardNotFound(CoreError, KeyError):
    """Raised when a requested VME card index is not present in a readout."""


class ChannelNotFound(CoreError, KeyError):
    """Raised when a requested channel index is not present on a card."""


class PulsesNotFound(CoreError, KeyError):
    """Raised when a (card, channel, minibuffer) key was never populated."""


class MinibufferOutOfRange(CoreError, IndexError):
    """Raised when a minibuffer index is outside [0, num_minibuffers)."""
