import pytest

from randbeacon.beacon import Beacon
from randbeacon.store import BeaconStore, NoBeaconSaved


@pytest.fixture
def store(tmp_path):
    s = BeaconStore(tmp_path)
    yield s
    s.close()


def test_store_order(store):
    b1 = Beacon(round=145, signature=b"one signature to", previous_sig=b"a magnificent signature")
    b2 = Beacon(round=146, signature=b"govern them all", previous_sig=b"is not worth an invalid one")
    store.put(b1)
    assert len(store) == 1
    assert store.last() == b1
    store.put(b2)
    assert store.last() == b2
    assert store.last() == b2


def test_store_full_cycle(tmp_path):
    sig1 = bytes([0x01, 0x02, 0x03])
    sig2 = bytes([0x02, 0x03, 0x04])
    store = BeaconStore(tmp_path)
    assert len(store) == 0

    b1 = Beacon(round=145, signature=sig2, previous_sig=sig1)
    b2 = Beacon(round=146, signature=sig1, previous_sig=sig2)
    store.put(b1)
    assert len(store) == 1
    store.put(b1)
    assert len(store) == 1
    store.put(b2)
    assert len(store) == 2
    assert store.last() == b2
    store.close()

    store = BeaconStore(tmp_path)
    store.put(b1)
    store.put(b1)
    assert store.get(b1.round) == b1
    store.close()

    store = BeaconStore(tmp_path)
    store.put(b1)
    store.put(b2)
    cursor = store.cursor()
    seen = []
    beacon = cursor.first()
    while beacon is not None:
        seen.append(beacon)
        beacon = cursor.next()
    assert seen == [b1, b2]
    assert cursor.seek(10000) is None
    assert store.cursor().last() == b2

    with pytest.raises(NoBeaconSaved):
        store.get(10000)
    store.close()


def test_last_on_empty_store_raises(store):
    with pytest.raises(NoBeaconSaved, match="beacon not found in database"):
        store.last()


def test_seek_moves_to_next_existing_round(store):
    for r in (1, 5, 9):
        store.put(Beacon(round=r, signature=bytes([r])))
    cursor = store.cursor()
    assert cursor.seek(4).round == 5
    assert cursor.next().round == 9
    assert cursor.next() is None


def test_cursor_iteration_follows_numeric_order(store):
    rounds = [300, 2, 256, 1, 70000]
    for r in rounds:
        store.put(Beacon(round=r, signature=b"s"))
    assert [b.round for b in store.cursor()] == sorted(rounds)


def test_delete(store):
    store.put(Beacon(round=3, signature=b"x"))
    store.put(Beacon(round=4, signature=b"y"))
    store.delete(4)
    assert len(store) == 1
    assert store.last().round == 3
    store.delete(42)
    assert len(store) == 1
    with pytest.raises(NoBeaconSaved):
        store.get(4)


def test_put_replaces_same_round(store):
    store.put(Beacon(round=7, signature=b"old"))
    store.put(Beacon(round=7, signature=b"new"))
    assert store.get(7).signature == b"new"
    assert len(store) == 1