from __future__ import annotations

from threading import Event

from quizzify.core.services.session_ticker import SessionTicker


def test_ticker_stops_when_session_finishes():
    ticks = []
    done = Event()

    def on_tick() -> bool:
        ticks.append(1)
        if len(ticks) == 3:
            done.set()
            return True
        return False

    ticker = SessionTicker(on_tick, interval_seconds=0.01).start()

    assert done.wait(2.0)
    ticker.join(2.0)
    assert len(ticks) == 3
    assert not ticker.is_running()


def test_stop_is_idempotent():
    ticker = SessionTicker(lambda: False, interval_seconds=0.01).start()

    ticker.stop()
    ticker.stop()
    ticker.join(2.0)

    assert not ticker.is_running()


def test_failing_tick_ends_countdown():
    calls = []

    def on_tick() -> bool:
        calls.append(1)
        raise RuntimeError("store unavailable")

    ticker = SessionTicker(on_tick, interval_seconds=0.01).start()
    ticker.join(2.0)

    assert calls == [1]
    assert not ticker.is_running()
