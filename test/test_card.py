# test/test_card.py
import numpy as np
import pytest

from recoannie.core import RawCard, InvalidCard, ChannelNotFound, MinibufferOutOfRange


def _card(channels=2, buffer_size=8, minibuffer_size=4, data=None, trigger_counts=None, **kw):
    if data is None:
        data = np.arange(channels * buffer_size, dtype=np.uint16)
    if trigger_counts is None:
        trigger_counts = list(range(buffer_size // minibuffer_size))
    return RawCard.from_buffer(
        3,
        channels=channels,
        buffer_size=buffer_size,
        minibuffer_size=minibuffer_size,
        data=data,
        trigger_counts=trigger_counts,
        rates=[0] * channels,
        **kw,
    )


def test_decode_two_channels_two_minibuffers():
    # Slot of channel c holds 10*c + [0..7]
    data = np.concatenate([np.arange(8), 10 + np.arange(8)]).astype(np.uint16)
    card = _card(data=data)

    assert len(card) == 2
    assert list(card.keys()) == [0, 1]
    assert card.num_minibuffers == 2

    ch0, ch1 = card[0], card[1]
    assert ch0.num_minibuffers == 2 and ch0.minibuffer_size == 2
    assert ch0.minibuffer(0).tolist() == [0, 1]
    assert ch0.minibuffer(1).tolist() == [2, 3]
    assert ch1.minibuffer(0).tolist() == [10, 11]
    assert ch1.minibuffer(1).tolist() == [12, 13]


def test_slot_halves_concatenate_to_slot():
    data = np.arange(3 * 8, dtype=np.uint16)
    card = _card(channels=3, data=data)

    for c in range(3):
        first, second = card.slot_halves(c, data, 8)
        assert np.array_equal(np.concatenate([first, second]), data[c * 8:(c + 1) * 8])
        assert np.array_equal(card[c].data, first)


@pytest.mark.parametrize("channels,buffer_size", [(1, 4), (4, 8), (3, 16)])
def test_channel_count_matches_buffer(channels, buffer_size):
    card = _card(channels=channels, buffer_size=buffer_size, minibuffer_size=2)
    assert len(card) == channels
    for ch in card.values():
        assert ch.n == buffer_size // 2


def test_channel_count_mismatch_raises():
    with pytest.raises(InvalidCard):
        _card(channels=3, data=np.zeros(16, dtype=np.uint16))


def test_trigger_count_mismatch_raises():
    with pytest.raises(InvalidCard):
        _card(trigger_counts=[0, 1, 2])


def test_rates_must_cover_channels():
    with pytest.raises(InvalidCard):
        RawCard.from_buffer(
            3, channels=2, buffer_size=8, minibuffer_size=4,
            data=np.zeros(16), trigger_counts=[0, 1], rates=[0],
        )


def test_add_channel_overwrite_rules():
    card = _card()
    buffer = np.arange(16, dtype=np.uint16)

    with pytest.raises(InvalidCard):
        card.add_channel(0, buffer, 8, rate=1)

    card.add_channel(0, buffer, 8, rate=1, overwrite_ok=True)
    assert card[0].rate == 1


def test_add_channel_missing_data_raises():
    card = _card()
    with pytest.raises(InvalidCard):
        card.add_channel(2, np.arange(16, dtype=np.uint16), 8, rate=0)


def test_missing_channel_lookup_raises():
    card = _card()
    with pytest.raises(ChannelNotFound):
        card.channel(5)
    assert card.get(5) is None
    assert 5 not in card


def test_trigger_time():
    card = _card(
        trigger_counts=[100, 150],
        start_time_sec=10,
        start_time_nsec=500,
        start_count=100,
    )
    assert card.trigger_time(0) == 10_000_000_500
    assert card.trigger_time(1) == 10_000_000_500 + 50 * 8
    assert card.trigger_time(1, ns_per_clock_tick=4) == 10_000_000_500 + 200
    with pytest.raises(MinibufferOutOfRange):
        card.trigger_time(2)


def test_trigger_time_uses_decoded_clock_period():
    card = _card(trigger_counts=[100, 110], start_count=100, ns_per_clock_tick=4)
    assert card.meta.ns_per_clock_tick == 4
    assert card.trigger_time(1) == 40
    assert card.trigger_time(1, ns_per_clock_tick=8) == 80

    with pytest.raises(InvalidCard):
        _card(ns_per_clock_tick=0)
