"""Following a beacon chain from peers and serving it to them."""

from __future__ import annotations

import logging
import random
import threading
import uuid
from typing import Any, Callable, Iterable, Protocol, Sequence

from .beacon import Beacon

_log = logging.getLogger(__name__)

_POLL_INTERVAL = 0.05


class SyncError(RuntimeError):
    """Raised when a chain cannot be followed or served."""


class SyncClient(Protocol):
    def sync_chain(
        self, peer: Any, from_round: int, cancel: threading.Event
    ) -> Iterable[Beacon]: ...


def _address(peer: Any) -> str:
    return str(getattr(peer, "address", peer))


def peers_to_string(peers: Iterable[Any]) -> str:
    """Render peer addresses as ``[ a - b ]``."""
    return "[ " + " - ".join(_address(peer) for peer in peers) + " ]"


class Syncer:
    """Fetches beacons from peers into a store and streams stored beacons out.

    ``store`` must offer ``last``, ``put``, ``cursor``, ``add_callback`` and
    ``remove_callback``; ``verify`` raises on an invalid beacon; ``client``
    streams beacons of a peer from a given round.
    """

    def __init__(self, store, verify: Callable[[Beacon], None], client: SyncClient) -> None:
        self.store = store
        self.verify = verify
        self.client = client
        self._lock = threading.Lock()
        self._following = False

    def syncing(self) -> bool:
        """Whether a follow is in progress."""
        with self._lock:
            return self._following

    def follow(
        self,
        up_to: int,
        peers: Sequence[Any],
        cancel: threading.Event | None = None,
    ) -> None:
        """Fetch, verify and store beacons from peers until round ``up_to``.

        Peers are tried in random order. ``up_to`` of 0 follows indefinitely.
        """
        with self._lock:
            if self._following:
                raise SyncError("already following chain")
            self._following = True
        try:
            cancel = cancel if cancel is not None else threading.Event()
            _log.debug("syncer starting up_to=%d nodes=%s", up_to, peers_to_string(peers))
            candidates = list(peers)
            for peer in random.sample(candidates, len(candidates)):
                if self._try_node(up_to, peer, cancel):
                    return
            raise SyncError("sync store tried to follow all nodes")
        finally:
            with self._lock:
                self._following = False

    def _try_node(self, up_to: int, peer: Any, cancel: threading.Event) -> bool:
        try:
            last = self.store.last()
        except LookupError:
            return False
        try:
            stream = self.client.sync_chain(peer, last.round + 1, cancel)
        except Exception as exc:
            _log.debug("unable to sync with %s: %s", _address(peer), exc)
            return False
        _log.debug("start following %s from round %d", _address(peer), last.round + 1)
        try:
            for beacon in stream:
                if cancel.is_set():
                    _log.debug("follow canceled")
                    return False
                try:
                    self.verify(beacon)
                except Exception as exc:
                    _log.debug("invalid beacon from %s: %s (%s)", _address(peer), beacon, exc)
                    return False
                try:
                    self.store.put(beacon)
                except Exception as exc:
                    _log.debug("unable to save beacon from %s: %s", _address(peer), exc)
                    return False
                if beacon.round == up_to:
                    _log.debug("syncing finished to round %d", up_to)
                    return True
        except Exception as exc:
            _log.debug("stream from %s failed: %s", _address(peer), exc)
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()
        return False

    def sync_chain(
        self,
        from_round: int,
        send: Callable[[Beacon], None],
        cancel: threading.Event,
    ) -> None:
        """Send stored beacons from ``from_round`` on, then each new one.

        Returns when sending a new beacon fails; raises :class:`SyncError` when
        ``cancel`` is set or nothing is stored at ``from_round`` or above.
        """
        last = self.store.last()
        if last.round < from_round:
            raise SyncError(
                f"no beacon stored above requested round {last.round} < {from_round}"
            )
        cursor = self.store.cursor()
        beacon = cursor.seek(from_round)
        while beacon is not None:
            send(beacon)
            beacon = cursor.next()

        finished = threading.Event()

        def forward(new: Beacon) -> None:
            try:
                send(new)
            except Exception as exc:
                _log.debug("streaming send failed: %s", exc)
                finished.set()

        callback_id = f"sync-{uuid.uuid4()}"
        self.store.add_callback(callback_id, forward)
        try:
            while not finished.wait(_POLL_INTERVAL):
                if cancel.is_set():
                    raise SyncError("sync request canceled")
        finally:
            self.store.remove_callback(callback_id)