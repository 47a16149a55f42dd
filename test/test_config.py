# test/test_config.py
import json

import pytest

from recoannie.config import (
    AnalysisConfig,
    BaselineSettings,
    PulseFinderSettings,
    load_config,
    save_config,
)
from recoannie.core import ConfigError, DEFAULT_TOPOLOGY


def test_defaults():
    config = AnalysisConfig()
    assert config.baseline.num_baseline_samples == 25
    assert config.baseline.q_critical == 1e-4
    assert config.pulse_finder.threshold_adc == 7.0
    assert config.reader.event_size_to_minibuffer_size == 4
    assert config.topology == DEFAULT_TOPOLOGY
    assert config.topology.ncv1 == (4, 1)
    assert not config.topology.is_tank_pmt(4, 1)
    assert config.topology.is_tank_pmt(4, 0)


def test_partial_dict_keeps_defaults():
    config = AnalysisConfig.from_dict(
        {
            "pulse_finder": {"threshold_adc": 12},
            "topology": {"tank_cards": [3, 5], "excluded_channels": [[5, 2]]},
        }
    )
    assert config.pulse_finder.threshold_adc == 12
    assert config.pulse_finder.ns_per_sample == 2
    assert config.baseline == BaselineSettings()
    assert config.topology.tank_cards == frozenset({3, 5})
    assert config.topology.excluded_channels == frozenset({(5, 2)})


@pytest.mark.parametrize(
    "data",
    [
        {"plotting": {}},
        {"baseline": {"samples": 10}},
        {"baseline": 25},
        {"baseline": {"num_baseline_samples": 1}},
        {"topology": {"ncv1": [4]}},
        [],
    ],
)
def test_invalid_settings_raise(data):
    with pytest.raises(ConfigError):
        AnalysisConfig.from_dict(data)


def test_invalid_pulse_finder_values():
    with pytest.raises(ConfigError):
        PulseFinderSettings(ns_per_sample=0)


def test_load_config(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"selection": {"unique_pmt_cut": 5}}))

    config = load_config(path)
    assert config.selection.unique_pmt_cut == 5
    assert load_config(None) == AnalysisConfig()


def test_load_config_errors(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(ConfigError):
        load_config(broken)


def test_save_then_load(tmp_path):
    config = AnalysisConfig.from_dict({"baseline": {"q_critical": 1e-3}})
    path = tmp_path / "out" / "settings.json"
    save_config(config, path)
    assert load_config(path) == config
