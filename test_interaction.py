import threading

import pytest

from interaction import InteractionAccumulator


def test_deltas_accumulate_per_kind():
    acc = InteractionAccumulator()
    acc.add(pan_x=0.25, pan_y=-0.5)
    acc.add(pan_x=0.25)
    acc.add(d_theta=0.1)

    deltas, anchor = acc.drain()

    assert deltas == {"pan_x": 0.5, "pan_y": -0.5, "d_theta": 0.1}
    assert anchor is None


def test_drain_resets():
    acc = InteractionAccumulator()
    acc.add(anchor=(0.1, 0.2), zoom=0.3)
    assert acc.pending()

    acc.drain()

    assert not acc.pending()
    assert acc.drain() == ({}, None)


def test_latest_anchor_wins():
    acc = InteractionAccumulator()
    acc.add(anchor=(0.9, 0.9), zoom=0.1)
    acc.add(anchor=(-0.3, 0.4), zoom=0.1)

    deltas, anchor = acc.drain()

    assert deltas["zoom"] == pytest.approx(0.2)
    assert anchor == (-0.3, 0.4)


def test_unknown_kind_is_rejected_without_partial_write():
    acc = InteractionAccumulator()
    with pytest.raises(KeyError):
        acc.add(pan_x=1.0, spin=2.0)
    assert not acc.pending()


def test_concurrent_producers():
    acc = InteractionAccumulator()

    def produce():
        for _ in range(1000):
            acc.add(pan_x=1.0, pan_y=2.0)

    threads = [threading.Thread(target=produce) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    deltas, _ = acc.drain()
    assert deltas == {"pan_x": 4000.0, "pan_y": 8000.0}
