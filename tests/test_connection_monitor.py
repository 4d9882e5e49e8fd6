import pytest

from ragadmin.services.connection_monitor import ConnectionHistory


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        ConnectionHistory(0)


def test_oldest_entries_are_dropped():
    history = ConnectionHistory(3)
    for i in range(5):
        history.record(ok=True, timestamp=float(i))

    assert len(history) == 3
    assert [e.timestamp for e in history.entries()] == [2.0, 3.0, 4.0]


def test_stability_needs_three_samples():
    history = ConnectionHistory(5)
    assert history.stability() == (0.0, False)

    history.record(ok=True)
    history.record(ok=True)
    assert history.stability() == (100.0, False)

    history.record(ok=True)
    assert history.stability() == (100.0, True)


def test_stability_threshold_and_last_error():
    history = ConnectionHistory(5)
    for _ in range(4):
        history.record(ok=True)
    history.record(ok=False, error="Network error")

    assert history.stability() == (80.0, True)
    assert history.last_error == "Network error"
    assert history.is_connected is False

    history.record(ok=False, error="timeout")
    assert history.stability() == (60.0, False)
    assert history.last_error == "timeout"


def test_clear():
    history = ConnectionHistory(2)
    history.record(ok=True)
    history.clear()
    assert len(history) == 0
    assert history.is_connected is False
