# recoannie/analysis/__init__.py
"""
Reconstruction algorithms applied to raw readouts:
- ZE3RA baseline estimate
- threshold pulse finder
- per-readout reconstruction driver
- neutron candidate selection
"""

from .baseline import BaselineEstimate, ze3ra_baseline, ze3ra_estimate
from .pulse_finder import PulseFinder, find_pulses
from .reconstruct import reconstruct_readout, reconstruct_run
from .selection import approve_event, select_events
from .stats import f_test_probability, mean_and_var


__all__ = [
    "BaselineEstimate",
    "ze3ra_baseline",
    "ze3ra_estimate",
    "PulseFinder",
    "find_pulses",
    "reconstruct_readout",
    "reconstruct_run",
    "approve_event",
    "select_events",
    "f_test_probability",
    "mean_and_var",
]
