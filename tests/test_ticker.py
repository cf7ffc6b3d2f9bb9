import queue
import threading
import time

import pytest

from randbeacon.ticker import RoundInfo, SystemClock, Ticker
from randbeacon.timing import current_round

PERIOD = 2
START = 1000
GENESIS = 1002


class FakeClock:
    def __init__(self, start):
        self._now = start
        self._cond = threading.Condition()

    def now(self):
        with self._cond:
            return self._now

    def sleep(self, seconds):
        with self._cond:
            target = self._now + seconds
            while self._now < target:
                self._cond.wait()

    def advance(self, seconds):
        with self._cond:
            self._now += seconds
            self._cond.notify_all()


@pytest.fixture
def clock():
    return FakeClock(START)


def test_first_tick_at_genesis_is_round_one(clock):
    ticker = Ticker(PERIOD, GENESIS, clock)
    channel = ticker.channel()
    clock.advance(GENESIS - START)
    info = channel.get(timeout=2)
    assert info == RoundInfo(round=1, time=GENESIS)
    ticker.stop()


def test_ticks_follow_rounds(clock):
    ticker = Ticker(PERIOD, GENESIS, clock)
    channel = ticker.channel()
    clock.advance(GENESIS - START)
    first = channel.get(timeout=2)
    clock.advance(PERIOD)
    second = channel.get(timeout=2)
    assert second.time == first.time + PERIOD
    assert second.round == first.round + 1
    assert second.round == current_round(second.time, PERIOD, GENESIS)
    ticker.stop()


def test_full_channel_drops_ticks(clock):
    ticker = Ticker(PERIOD, GENESIS, clock)
    idle = ticker.channel()
    sync = ticker.channel()
    clock.advance(GENESIS - START)
    first = sync.get(timeout=2)
    clock.advance(PERIOD)
    sync.get(timeout=2)
    assert idle.get_nowait() == first
    assert idle.empty()
    ticker.stop()


def test_channel_at_skips_earlier_ticks(clock):
    ticker = Ticker(PERIOD, GENESIS, clock)
    late = ticker.channel_at(GENESIS + PERIOD)
    sync = ticker.channel()
    clock.advance(GENESIS - START)
    sync.get(timeout=2)
    assert late.empty()
    clock.advance(PERIOD)
    sync.get(timeout=2)
    info = late.get(timeout=2)
    assert info.time == GENESIS + PERIOD
    ticker.stop()


def test_current_round_before_genesis(clock):
    ticker = Ticker(PERIOD, GENESIS, clock)
    assert ticker.current_round() == 1
    clock.advance(GENESIS - START + 3 * PERIOD)
    assert ticker.current_round() == current_round(GENESIS + 3 * PERIOD, PERIOD, GENESIS)
    ticker.stop()


def test_stop_ends_channels(clock):
    ticker = Ticker(PERIOD, GENESIS, clock)
    channel = ticker.channel()
    ticker.stop()
    assert channel.get(timeout=1) is None
    clock.advance(GENESIS - START)
    time.sleep(0.1)
    assert channel.empty()
    with pytest.raises(RuntimeError):
        ticker.channel()


def test_invalid_period(clock):
    with pytest.raises(ValueError):
        Ticker(0, GENESIS, clock)


def test_system_clock_sleep_advances_now():
    clock = SystemClock()
    before = clock.now()
    clock.sleep(0.02)
    assert clock.now() - before >= 0.015


def test_system_clock_ticker_is_quiet_before_genesis():
    now = int(time.time())
    ticker = Ticker(PERIOD, now + 3600, SystemClock())
    channel = ticker.channel()
    with pytest.raises(queue.Empty):
        channel.get(timeout=0.1)
    ticker.stop()