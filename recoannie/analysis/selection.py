# recoannie/analysis/selection.py
"""Neutron candidate selection on reconstructed readouts."""
from __future__ import annotations

from recoannie.config import SelectionSettings
from recoannie.core.pulse import RecoPulse
from recoannie.core.reco_readout import RecoReadout


def approve_event(
    event_time: float,
    old_time: float,
    ncv1_pulse: RecoPulse,
    readout: RecoReadout,
    minibuffer: int,
    settings: SelectionSettings | None = None,
) -> bool:
    settings = settings or SelectionSettings()

    if event_time <= old_time + settings.veto_time_ns:
        return False

    start = ncv1_pulse.start_time
    charge, unique_pmts = readout.tank_charge(
        minibuffer, start, start + settings.tank_charge_window_ns
    )
    if unique_pmts >= settings.unique_pmt_cut:
        return False
    if charge >= settings.tank_charge_cut_nc:
        return False

    ncv2_card, ncv2_channel = readout.topology.ncv2
    return readout.has_coincidence(
        ncv2_card, ncv2_channel, minibuffer, start, settings.coincidence_tolerance_ns
    )


def select_events(
    readout: RecoReadout,
    minibuffer: int,
    settings: SelectionSettings | None = None,
    *,
    time_offset: float = 0.0,
) -> list[RecoPulse]:
    """
    NCV1 pulses of one minibuffer that pass approve_event.

    `time_offset` is added to each pulse time before the veto check (e.g.
    the minibuffer's time since the beam trigger).
    """
    settings = settings or SelectionSettings()
    ncv1_card, ncv1_channel = readout.topology.ncv1

    accepted: list[RecoPulse] = []
    old_time = float("-inf")
    for pulse in readout.get_pulses(ncv1_card, ncv1_channel, minibuffer):
        event_time = pulse.start_time + time_offset
        if approve_event(event_time, old_time, pulse, readout, minibuffer, settings):
            accepted.append(pulse)
            old_time = event_time
    return accepted
