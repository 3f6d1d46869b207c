"""Zeitgeber-Abstraktion für einmalige Timer.

Zwei Implementierungen:
- AsyncioScheduler: echte Uhr, Timer über loop.call_later.
- VirtualScheduler: simulierte Uhr; Zeit läuft nur über advance()/advance_to().

Alle Zeitpunkte sind naive lokale datetimes (Wanduhr).
"""

import asyncio
import heapq
import itertools
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

_handle_ids = itertools.count(1)


class TimerHandle:
    """Verweis auf einen gestellten Timer."""

    def __init__(self, at: datetime, callback: Callable[[], None]):
        self.id = next(_handle_ids)
        self.at = at
        self.callback = callback
        self.cancelled = False
        self.fired = False
        self._native: Optional[asyncio.TimerHandle] = None

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def __lt__(self, other: "TimerHandle") -> bool:
        return (self.at, self.id) < (other.at, other.id)

    def __repr__(self) -> str:
        state = "aktiv" if self.active else ("gelöscht" if self.cancelled else "ausgelöst")
        return f"TimerHandle({self.id}, {self.at:%Y-%m-%d %H:%M}, {state})"


class Scheduler(Protocol):
    def now(self) -> datetime: ...

    def arm(self, at: datetime, callback: Callable[[], None]) -> TimerHandle: ...

    def cancel(self, handle: TimerHandle) -> None: ...


def _run(handle: TimerHandle) -> None:
    if not handle.active:
        return
    handle.fired = True
    try:
        handle.callback()
    except Exception:
        # Ein fehlerhafter Callback darf weitere Timer nicht blockieren
        logger.exception(f"Timer-Callback fehlgeschlagen: {handle!r}")


class AsyncioScheduler:
    """Timer auf der laufenden asyncio-Event-Loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self._loop = loop
        self._clock = clock

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> datetime:
        return self._clock()

    def arm(self, at: datetime, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(at, callback)
        delay = max(0.0, (at - self.now()).total_seconds())
        handle._native = self.loop.call_later(delay, _run, handle)
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True
        if handle._native is not None:
            handle._native.cancel()


class VirtualScheduler:
    """Simulierte Uhr für Tests und Trockenläufe.

    Timer feuern in Zeitreihenfolge, sobald die Uhr ihren Zeitpunkt
    erreicht. Callbacks dürfen neue Timer stellen; fallen diese noch in das
    aktuelle Intervall, feuern sie im selben advance()-Aufruf.
    """

    def __init__(self, start: datetime):
        self._now = start
        self._queue: list[TimerHandle] = []

    def now(self) -> datetime:
        return self._now

    def arm(self, at: datetime, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(at, callback)
        heapq.heappush(self._queue, handle)
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True

    def pending(self) -> list[TimerHandle]:
        return sorted(h for h in self._queue if h.active)

    def advance_to(self, target: datetime) -> int:
        """Stellt die Uhr vor und führt fällige Timer aus. Gibt deren Anzahl zurück."""
        if target < self._now:
            raise ValueError(f"Zeit läuft nicht rückwärts: {target} < {self._now}")
        fired = 0
        while self._queue and self._queue[0].at <= target:
            handle = heapq.heappop(self._queue)
            if not handle.active:
                continue
            self._now = max(self._now, handle.at)
            _run(handle)
            fired += 1
        self._now = target
        return fired

    def advance(self, delta: timedelta) -> int:
        return self.advance_to(self._now + delta)
