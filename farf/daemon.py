import os
import signal
import threading
from collections.abc import Callable
from datetime import datetime

from . import config
from .lib import clock
from .lib.dates import next_midnight
from .lib.log import log

__all__ = ["Scheduler", "run", "seconds_until_midnight"]

Callback = Callable[[], object]


def seconds_until_midnight(now: datetime) -> float:
    return max(0.0, (next_midnight(now) - now).total_seconds())


def _fire(name: str, callback: Callback) -> None:
    try:
        callback()
    except Exception as e:
        log(f"[scheduler] {name} error: {e}")


def _midnight_thread(
    stop: threading.Event, on_midnight: Callback, now: Callable[[], datetime]
) -> None:
    while not stop.is_set():
        delay = seconds_until_midnight(now())
        log(f"[scheduler] next rollover in {delay:.0f}s")
        if stop.wait(delay):
            return
        _fire("rollover", on_midnight)
        # a clock that has not yet crossed midnight would re-fire at once
        if seconds_until_midnight(now()) < 1:
            stop.wait(1)


def _tick_thread(stop: threading.Event, on_tick: Callback, every: float) -> None:
    while not stop.wait(every):
        _fire("tick", on_tick)


class Scheduler:
    """Midnight rollover loop plus an optional low-frequency tick.

    Each loop re-arms itself after firing for as long as the scheduler runs;
    `stop()` is the cancellation handle.
    """

    def __init__(
        self,
        on_midnight: Callback,
        on_tick: Callback | None = None,
        now: Callable[[], datetime] = clock.now,
        tick_every: float | None = None,
    ):
        self.on_midnight = on_midnight
        self.on_tick = on_tick
        self.now = now
        self.tick_every = tick_every if tick_every is not None else config.get_tick_seconds()
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._threads = [
            threading.Thread(
                target=_midnight_thread,
                args=(self._stop, self.on_midnight, self.now),
                daemon=True,
                name="midnight",
            )
        ]
        if self.on_tick is not None:
            self._threads.append(
                threading.Thread(
                    target=_tick_thread,
                    args=(self._stop, self.on_tick, self.tick_every),
                    daemon=True,
                    name="tick",
                )
            )
        for t in self._threads:
            t.start()
        log(f"[scheduler] started ({', '.join(t.name for t in self._threads)})")

    def stop(self, timeout: float = 5) -> None:
        self._stop.set()
        for t in self._threads:
            t.join(timeout=timeout)
        self._threads = []
        log("[scheduler] stopped")


def run(session, on_rollover: Callback | None = None, on_tick: Callback | None = None) -> None:
    """Keep `session` rolled over at every midnight until SIGTERM/SIGINT."""
    stop = threading.Event()

    def handle_signal(signum, frame):
        log("[scheduler] shutdown signal received")
        stop.set()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    def midnight() -> None:
        if session.reconcile() and on_rollover is not None:
            on_rollover()

    scheduler = Scheduler(midnight, on_tick=on_tick, now=session.now)
    scheduler.start()
    log(f"[scheduler] daemon running (PID {os.getpid()})")

    stop.wait()
    scheduler.stop()
