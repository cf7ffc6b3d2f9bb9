"""Store layers: chain append checks, timing statistics and callbacks."""

from __future__ import annotations

import logging
import os
import queue
import threading
import time
from typing import Callable

from .beacon import Beacon
from .timing import time_of_round

_log = logging.getLogger(__name__)

#: Seconds to wait after a new connection to receive beacons from one peer.
MAX_SYNC_WAIT_TIME = 2.0
#: Maximum number of beacons buffered from a sync.
MAX_CATCHUP_BUFFER = 1000
#: Length of the queue feeding the callback workers.
CALLBACK_WORKER_QUEUE = 100


class InvalidAppend(ValueError):
    """Raised when a beacon does not extend the last stored beacon."""


class StoreWrapper:
    """A store that forwards every operation to an inner store."""

    def __init__(self, store) -> None:
        self.store = store

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self.store)

    def put(self, beacon: Beacon) -> None:
        self.store.put(beacon)

    def last(self) -> Beacon:
        return self.store.last()

    def get(self, round: int) -> Beacon:
        return self.store.get(round)

    def delete(self, round: int) -> None:
        self.store.delete(round)

    def cursor(self):
        return self.store.cursor()

    def close(self) -> None:
        self.store.close()


class AppendStore(StoreWrapper):
    """Accepts only the beacon of the next round, chained on the last signature."""

    def __init__(self, store) -> None:
        super().__init__(store)
        self._lock = threading.Lock()
        try:
            self._last: Beacon | None = store.last()
        except LookupError:
            self._last = None

    def put(self, beacon: Beacon) -> None:
        with self._lock:
            last = self._last
            if last is None:
                raise InvalidAppend("no beacon stored to append to")
            if beacon.round != last.round + 1:
                raise InvalidAppend(
                    f"invalid round inserted: last {last.round}, new {beacon.round}"
                )
            if bytes(last.signature) != bytes(beacon.previous_sig):
                raise InvalidAppend("invalid previous signature")
            self.store.put(beacon)
            self._last = beacon


class DiscrepancyStore(StoreWrapper):
    """Records how far from its scheduled time each beacon was stored."""

    def __init__(self, store, period: float, genesis_time: int) -> None:
        super().__init__(store)
        self.period = period
        self.genesis_time = genesis_time
        self.last_discrepancy_ms: float | None = None
        self.last_round: int | None = None

    def put(self, beacon: Beacon) -> None:
        self.store.put(beacon)
        actual = time.time_ns()
        expected = time_of_round(self.period, self.genesis_time, beacon.round) * 1_000_000_000
        discrepancy = (actual - expected) / 1_000_000
        self.last_discrepancy_ms = discrepancy
        self.last_round = beacon.round
        _log.info("NEW_BEACON_STORED %s time_discrepancy_ms=%s", beacon, discrepancy)


class CallbackStore(StoreWrapper):
    """Dispatches each stored beacon to registered callbacks on worker threads.

    Callbacks are not called for the round-0 beacon, nor when storing fails.
    """

    def __init__(self, store, workers: int | None = None) -> None:
        super().__init__(store)
        self._lock = threading.Lock()
        self._callbacks: dict[str, Callable[[Beacon], None]] = {}
        self._jobs: queue.Queue = queue.Queue(maxsize=CALLBACK_WORKER_QUEUE)
        self._closed = False
        count = workers if workers is not None else (os.cpu_count() or 1)
        if count < 1:
            raise ValueError("at least one worker is needed")
        self._workers = [
            threading.Thread(target=self._run_worker, daemon=True) for _ in range(count)
        ]
        for worker in self._workers:
            worker.start()

    def put(self, beacon: Beacon) -> None:
        self.store.put(beacon)
        if beacon.round == 0:
            return
        with self._lock:
            for callback in list(self._callbacks.values()):
                self._jobs.put((callback, beacon))

    def add_callback(self, id: str, fn: Callable[[Beacon], None]) -> None:
        """Register ``fn`` under ``id``, replacing any callback of that id."""
        with self._lock:
            self._callbacks[id] = fn

    def remove_callback(self, id: str) -> None:
        with self._lock:
            self._callbacks.pop(id, None)

    def close(self) -> None:
        """Close the inner store and stop the workers."""
        if self._closed:
            return
        self._closed = True
        self.store.close()
        for _ in self._workers:
            self._jobs.put(None)

    def _run_worker(self) -> None:
        while True:
            job = self._jobs.get()
            if job is None:
                return
            callback, beacon = job
            try:
                callback(beacon)
            except Exception:
                _log.exception("callback failed for round %d", beacon.round)