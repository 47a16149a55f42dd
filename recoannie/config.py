"""Analysis settings.

Every tunable constant of the reconstruction lives here, grouped by the
stage that uses it. The defaults reproduce the phase I analysis; a JSON
file with the same structure (any subset of sections and keys) can
override them:

    {
      "baseline": {"num_baseline_samples": 25, "q_critical": 1e-4},
      "pulse_finder": {"threshold_adc": 7},
      "topology": {"tank_cards": [3, 4, 5], "excluded_channels": [[4, 1]]}
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from recoannie.core.exceptions import ConfigError
from recoannie.core.topology import DetectorTopology

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BaselineSettings:
    """Settings for the ZE3RA baseline estimate.

    Attributes:
        num_baseline_samples: Leading samples of each minibuffer used for
            the mean / variance estimate.
        q_critical: F-test probability below which a minibuffer passes
            the variance consistency test.
    """

    num_baseline_samples: int = 25
    q_critical: float = 1e-4

    def __post_init__(self) -> None:
        if self.num_baseline_samples < 2:
            raise ConfigError("baseline.num_baseline_samples must be at least 2")
        if not 0.0 < self.q_critical < 1.0:
            raise ConfigError("baseline.q_critical must be in (0, 1)")


@dataclass(frozen=True)
class PulseFinderSettings:
    """Settings for pulse finding and charge calibration.

    Attributes:
        threshold_adc: ADC counts above baseline a sample must exceed to
            be part of a pulse.
        min_separation: Two excursions separated by at most this many
            samples at or below threshold are merged into one pulse.
        ns_per_sample: ADC sampling period.
        adc_to_volt: Conversion from ADC counts to volts.
        impedance_ohm: Input impedance used for the charge integral.
    """

    threshold_adc: float = 7.0
    min_separation: int = 0
    ns_per_sample: int = 2
    adc_to_volt: float = 2.415 / 4096.0
    impedance_ohm: float = 50.0

    def __post_init__(self) -> None:
        if self.threshold_adc < 0:
            raise ConfigError("pulse_finder.threshold_adc must be non-negative")
        if self.min_separation < 0:
            raise ConfigError("pulse_finder.min_separation must be non-negative")
        if self.ns_per_sample <= 0:
            raise ConfigError("pulse_finder.ns_per_sample must be positive")
        if self.adc_to_volt <= 0 or self.impedance_ohm <= 0:
            raise ConfigError("pulse_finder.adc_to_volt and impedance_ohm must be positive")


@dataclass(frozen=True)
class SelectionSettings:
    """Cuts applied when selecting neutron candidate events.

    Attributes:
        veto_time_ns: Dead time after an accepted event.
        tank_charge_window_ns: Length of the tank charge window that
            starts at the NCV pulse.
        unique_pmt_cut: Reject when this many tank PMTs fire in the window.
        tank_charge_cut_nc: Reject when the tank charge reaches this value.
        coincidence_tolerance_ns: Maximum NCV1 / NCV2 time difference.
    """

    veto_time_ns: float = 1e3
    tank_charge_window_ns: float = 40.0
    unique_pmt_cut: int = 8
    tank_charge_cut_nc: float = 3.0
    coincidence_tolerance_ns: float = 40.0


@dataclass(frozen=True)
class ReaderSettings:
    """Settings for decoding raw data table entries.

    Attributes:
        event_size_to_minibuffer_size: Factor from the Eventsize field to
            the minibuffer size in samples.
        ns_per_clock_tick: Period of the card trigger counter.
    """

    event_size_to_minibuffer_size: int = 4
    ns_per_clock_tick: int = 8

    def __post_init__(self) -> None:
        if self.event_size_to_minibuffer_size <= 0 or self.ns_per_clock_tick <= 0:
            raise ConfigError("reader settings must be positive")


@dataclass(frozen=True)
class AnalysisConfig:
    """All settings used by one reconstruction pass."""

    baseline: BaselineSettings = field(default_factory=BaselineSettings)
    pulse_finder: PulseFinderSettings = field(default_factory=PulseFinderSettings)
    selection: SelectionSettings = field(default_factory=SelectionSettings)
    reader: ReaderSettings = field(default_factory=ReaderSettings)
    topology: DetectorTopology = field(default_factory=DetectorTopology)

    def to_dict(self) -> dict:
        """Convert settings to a JSON-serializable dictionary."""
        return {
            "baseline": asdict(self.baseline),
            "pulse_finder": asdict(self.pulse_finder),
            "selection": asdict(self.selection),
            "reader": asdict(self.reader),
            "topology": {
                "tank_cards": sorted(self.topology.tank_cards),
                "excluded_channels": [list(p) for p in sorted(self.topology.excluded_channels)],
                "ncv1": list(self.topology.ncv1),
                "ncv2": list(self.topology.ncv2),
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> AnalysisConfig:
        """Create an AnalysisConfig from a (possibly partial) dictionary.

        Missing sections and keys keep their defaults. Unknown sections or
        keys raise ConfigError.
        """
        if not isinstance(data, dict):
            raise ConfigError("Settings must be a JSON object")

        sections = {
            "baseline": BaselineSettings,
            "pulse_finder": PulseFinderSettings,
            "selection": SelectionSettings,
            "reader": ReaderSettings,
            "topology": DetectorTopology,
        }
        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigError(f"Unknown settings section(s): {sorted(unknown)}")

        kwargs: dict[str, Any] = {}
        for name, section_cls in sections.items():
            if name in data:
                kwargs[name] = _build_section(name, section_cls, data[name])
        return cls(**kwargs)


def _build_section(name: str, section_cls: type, values: Any) -> Any:
    if not isinstance(values, dict):
        raise ConfigError(f"Settings section '{name}' must be a JSON object")
    allowed = {f.name for f in fields(section_cls)}
    unknown = set(values) - allowed
    if unknown:
        raise ConfigError(f"Unknown key(s) in section '{name}': {sorted(unknown)}")
    try:
        return section_cls(**values)
    except TypeError as e:
        raise ConfigError(f"Invalid value in section '{name}': {e}") from e


def load_config(path: str | Path | None = None) -> AnalysisConfig:
    """Load settings from a JSON file.

    Args:
        path: Settings file. None returns the defaults.

    Raises:
        ConfigError: If the file cannot be read or does not describe
            valid settings.
    """
    if path is None:
        return AnalysisConfig()

    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to load settings from {path}: {e}") from e

    config = AnalysisConfig.from_dict(data)
    logger.info("Settings loaded from %s", path)
    return config


def save_config(config: AnalysisConfig, path: str | Path) -> None:
    """Write settings to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)
    logger.info("Settings saved to %s", path)
