"""Cache of partial signatures, bounded per signer."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .beacon import message, round_to_bytes

_log = logging.getLogger(__name__)

#: Maximum number of rounds the cache keeps partials for, per signer.
MAX_PARTIALS_PER_NODE = 100


@dataclass(frozen=True)
class PartialBeacon:
    """A signer's partial signature over a round chained on ``previous_sig``."""

    round: int
    previous_sig: bytes
    partial_sig: bytes


def index_of(partial_sig: bytes) -> int:
    """Return the signer index carried in the first two bytes of a partial."""
    if len(partial_sig) < 2:
        raise ValueError("partial signature too short to hold an index")
    return int.from_bytes(partial_sig[:2], "big")


def round_id(round: int, previous: bytes) -> bytes:
    """Key identifying a round together with the signature it builds on."""
    return round_to_bytes(round) + bytes(previous)


class RoundCache:
    """Partial signatures for one round, at most one per signer index."""

    def __init__(self, id: bytes, partial: PartialBeacon) -> None:
        self.id = id
        self.round = partial.round
        self.prev = partial.previous_sig
        self.sigs: dict[int, bytes] = {}

    def append(self, partial: PartialBeacon) -> bool:
        """Store the partial; return False if its signer is already cached."""
        idx = index_of(partial.partial_sig)
        if idx in self.sigs:
            return False
        self.sigs[idx] = partial.partial_sig
        return True

    def __len__(self) -> int:
        return len(self.sigs)

    def msg(self) -> bytes:
        """The message signed for this round."""
        return message(self.round, self.prev)

    def partials(self) -> list[bytes]:
        return list(self.sigs.values())

    def flush_index(self, idx: int) -> None:
        self.sigs.pop(idx, None)


class PartialCache:
    """Round caches keyed by round id, limiting how many each signer may fill."""

    def __init__(self) -> None:
        self.rounds: dict[bytes, RoundCache] = {}
        self.received: dict[int, list[bytes]] = {}

    def append(self, partial: PartialBeacon) -> None:
        """Add a partial signature to the cache."""
        id = round_id(partial.round, partial.previous_sig)
        idx = index_of(partial.partial_sig)
        cache = self._get_cache(id, partial)
        if cache is None:
            return
        if cache.append(partial):
            self.received.setdefault(idx, []).append(id)

    def flush_rounds(self, round: int) -> None:
        """Drop every round cache whose round is at most ``round``."""
        for id, cache in list(self.rounds.items()):
            if cache.round > round:
                continue
            del self.rounds[id]
            for idx in cache.sigs:
                remaining = [other for other in self.received.get(idx, []) if other != id]
                if remaining:
                    self.received[idx] = remaining
                else:
                    self.received.pop(idx, None)

    def get_round_cache(self, round: int, previous: bytes) -> RoundCache | None:
        return self.rounds.get(round_id(round, previous))

    def _get_cache(self, id: bytes, partial: PartialBeacon) -> RoundCache | None:
        existing = self.rounds.get(id)
        if existing is not None:
            return existing
        idx = index_of(partial.partial_sig)
        seen = self.received.get(idx, [])
        if len(seen) >= MAX_PARTIALS_PER_NODE:
            # the signer has filled its quota: evict its oldest round
            to_evict = seen[0]
            evicted = self.rounds.get(to_evict)
            if evicted is None:
                _log.error("cache miss: node %d not present for round %d", idx, partial.round)
                return None
            evicted.flush_index(idx)
            self.received[idx] = seen[1:] + [id]
            if len(evicted) == 0:
                del self.rounds[to_evict]
        cache = RoundCache(id, partial)
        self.rounds[id] = cache
        return cache