# test/conftest.py
import numpy as np
import pytest

from recoannie.io.reader import PMTDataEntry


def _entry(
    sequence_id,
    card_id,
    *,
    channels=2,
    buffer_size=8,
    event_size=1,
    trigger_number=2,
    data=None,
    start_count=0,
):
    if data is None:
        data = np.full(channels * buffer_size, 300, dtype=np.uint16)
    data = np.asarray(data, dtype=np.uint16)
    return PMTDataEntry(
        last_sync=0,
        sequence_id=sequence_id,
        start_time_sec=1_500_000_000,
        start_time_nsec=0,
        start_count=start_count,
        trigger_number=trigger_number,
        card_id=card_id,
        channels=channels,
        buffer_size=buffer_size,
        full_buffer_size=data.size,
        event_size=event_size,
        data=data,
        trigger_counts=np.arange(trigger_number, dtype=np.uint64) + start_count,
        rates=np.zeros(channels, dtype=np.uint32),
    )


@pytest.fixture
def make_entry():
    """Factory for PMTData entries (default: 2 channels x 2 minibuffers of 2 samples)."""
    return _entry
