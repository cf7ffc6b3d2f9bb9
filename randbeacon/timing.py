"""Mapping between wall-clock time and beacon rounds."""

from __future__ import annotations

import math

_MAX_INT64 = 2**63 - 1
_MAX_UINT64 = 2**64 - 1
_TIME_BUFFER_BITS = 36
_MAX_TIME_BUFFER = 1 << _TIME_BUFFER_BITS

#: Value returned by :func:`time_of_round` for a round that cannot be timed.
TIME_OF_ROUND_ERROR_VALUE = _MAX_INT64 - _MAX_TIME_BUFFER


def time_of_round(period: float, genesis: int, round: int) -> int:
    """Return the UNIX time at which ``round`` happens.

    ``period`` is in seconds. Invalid or overflowing rounds yield
    :data:`TIME_OF_ROUND_ERROR_VALUE`.
    """
    if round == 0:
        return genesis
    if period < 0:
        return TIME_OF_ROUND_ERROR_VALUE
    period_bits = math.log2(period + 1)
    if round >= (_MAX_UINT64 >> (int(period_bits) + 2)):
        return TIME_OF_ROUND_ERROR_VALUE
    # genesis time is already the time of round 1
    delta = (round - 1) * int(period)
    value = genesis + delta
    if value > _MAX_INT64 - _MAX_TIME_BUFFER:
        return TIME_OF_ROUND_ERROR_VALUE
    return value


def next_round(now: int, period: float, genesis: int) -> tuple[int, int]:
    """Return the next upcoming round and its UNIX time.

    Round 1 happens at genesis time; round 0 is fixed.
    """
    if now < genesis:
        return 1, genesis
    if period <= 0:
        raise ValueError("period must be positive")
    from_genesis = now - genesis
    upcoming = math.floor(from_genesis / period) + 1
    upcoming_time = genesis + upcoming * int(period)
    return upcoming + 1, upcoming_time


def current_round(now: int, period: float, genesis: int) -> int:
    """Return the round active at ``now``."""
    upcoming, _ = next_round(now, period, genesis)
    if upcoming <= 1:
        return upcoming
    return upcoming - 1