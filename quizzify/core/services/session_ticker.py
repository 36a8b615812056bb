"""Background countdown that feeds one-second ticks into a session."""

from __future__ import annotations

from collections.abc import Callable
import logging
from threading import Event, Thread

from quizzify.constants.quiz_constants import TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class SessionTicker:
    """Calls ``on_tick`` every interval on a daemon thread until stopped.

    ``on_tick`` returns True when the session has finished, which ends the
    loop. :meth:`stop` may be called from any thread, any number of times.
    """

    def __init__(
        self,
        on_tick: Callable[[], bool],
        interval_seconds: float = TICK_INTERVAL_SECONDS,
        name: str = "QuizSessionTicker",
    ) -> None:
        self._on_tick = on_tick
        self._interval = interval_seconds
        self._stopped = Event()
        self._thread = Thread(target=self._run, name=name, daemon=True)

    def start(self) -> "SessionTicker":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stopped.set()

    def is_running(self) -> bool:
        return self._thread.is_alive() and not self._stopped.is_set()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            try:
                finished = self._on_tick()
            except Exception:
                logger.exception("Session tick failed; stopping countdown")
                break
            if finished:
                break
        self._stopped.set()
