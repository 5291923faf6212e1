"""
测试历史缓冲区
"""

import pytest

from dpanel_client.history import MAX_HISTORY_POINTS, HistoryBuffer, MetricsHistory


@pytest.mark.parametrize("count", [0, 1, 5, 9, 10, 11, 25])
def test_keeps_most_recent_in_order(count):
    buffer = HistoryBuffer()
    for i in range(count):
        buffer.append(i)

    expected = list(range(count))[-MAX_HISTORY_POINTS:]
    assert len(buffer) == min(count, MAX_HISTORY_POINTS)
    assert buffer.snapshot() == expected


def test_snapshot_is_a_copy():
    buffer = HistoryBuffer(3)
    buffer.append(1.0)
    snapshot = buffer.snapshot()
    snapshot.append(2.0)

    assert buffer.snapshot() == [1.0]


def test_invalid_capacity():
    with pytest.raises(ValueError):
        HistoryBuffer(0)


def test_metrics_history_buffers_are_independent():
    history = MetricsHistory(capacity=2)
    history.cpu.append(10.0)
    history.cpu.append(20.0)
    history.cpu.append(30.0)
    history.memory.append(50.0)

    assert history.cpu.snapshot() == [20.0, 30.0]
    assert history.memory.snapshot() == [50.0]
    assert history.network.snapshot() == []

    history.clear()
    assert len(history.cpu) == 0
    assert len(history.memory) == 0
