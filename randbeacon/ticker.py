"""Round ticks: notify listeners at each round boundary of a chain."""

from __future__ import annotations

import math
import queue
import threading
import time
from dataclasses import dataclass
from typing import Protocol

from .timing import current_round, next_round


class Clock(Protocol):
    def now(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Wall clock backed by :mod:`time`."""

    def now(self) -> float:
        """Current UNIX time in seconds."""
        return time.time()

    def sleep(self, seconds: float) -> None:
        """Block for ``seconds``."""
        time.sleep(seconds)


@dataclass(frozen=True)
class RoundInfo:
    """A tick: the round active at ``time`` (UNIX seconds)."""

    round: int
    time: int


class Ticker:
    """Sends a :class:`RoundInfo` to every registered channel at each round.

    Channels are queues holding at most one tick; a tick is dropped for a
    channel that has not been read. When the ticker stops, ``None`` is put on
    every channel to mark its end.
    """

    def __init__(self, period: int, genesis: int, clock: Clock | None = None) -> None:
        if period <= 0:
            raise ValueError("period must be positive")
        self.period = period
        self.genesis = genesis
        self._clock: Clock = clock if clock is not None else SystemClock()
        self._lock = threading.Lock()
        self._channels: list[tuple[int, queue.Queue]] = []
        self._stopped = threading.Event()
        _, self._first_tick = next_round(int(self._clock.now()), period, genesis)
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def channel(self) -> queue.Queue:
        """A channel receiving ticks from now on."""
        return self.channel_at(int(self._clock.now()))

    def channel_at(self, start: int) -> queue.Queue:
        """A channel receiving ticks whose time is at least ``start``."""
        channel: queue.Queue = queue.Queue(maxsize=1)
        with self._lock:
            if self._stopped.is_set():
                raise RuntimeError("ticker stopped")
            self._channels.append((start, channel))
        return channel

    def current_round(self) -> int:
        """The round active at the clock's current time."""
        return current_round(int(self._clock.now()), self.period, self.genesis)

    def stop(self) -> None:
        """Stop ticking and mark the end of every channel."""
        with self._lock:
            if self._stopped.is_set():
                return
            self._stopped.set()
            for _, channel in self._channels:
                while True:
                    try:
                        channel.get_nowait()
                    except queue.Empty:
                        break
                channel.put_nowait(None)

    def _dispatch(self, now: float) -> None:
        tick_time = int(now)
        info = RoundInfo(
            round=current_round(tick_time, self.period, self.genesis), time=tick_time
        )
        with self._lock:
            if self._stopped.is_set():
                return
            for start, channel in self._channels:
                if start > tick_time:
                    continue
                try:
                    channel.put_nowait(info)
                except queue.Full:
                    pass

    def _run(self) -> None:
        target = self._first_tick
        while True:
            delay = target - self._clock.now()
            if delay > 0:
                self._clock.sleep(delay)
            if self._stopped.is_set():
                return
            now = self._clock.now()
            self._dispatch(now)
            elapsed = max(now - self._first_tick, 0)
            target = self._first_tick + (math.floor(elapsed / self.period) + 1) * self.period