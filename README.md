# randbeacon

Core pieces of a chained randomness beacon. Each round carries a signature
over the previous round's signature and the round number; the round's
randomness is the SHA-256 hash of that signature. The package has no
dependencies beyond the standard library.

## Modules

- `randbeacon.beacon`: the frozen `Beacon` record (`round`, `signature`,
  `previous_sig`), `Beacon.randomness()`, its JSON encoding (`Beacon.to_json`,
  `beacon_from_json`, byte fields in hex), the signed message
  `message(round, prev_sig)` = SHA-256(prev_sig || round),
  `randomness_from_signature`, `round_to_bytes` (8-byte big-endian) and
  `short_sig_str`.
- `randbeacon.timing`: round arithmetic from a genesis time and a period in
  seconds: `time_of_round`, `current_round`, `next_round`. Round 1 happens at
  genesis time; rounds that cannot be timed give `TIME_OF_ROUND_ERROR_VALUE`.
- `randbeacon.info`: `ChainInfo` (public key bytes, period, genesis time,
  group hash) with its canonical `hash()`, `to_dict()` / `info_from_dict()`,
  `to_json(stream)` / `info_from_json(stream)` and `genesis_beacon(info)`.
  Malformed input raises `InvalidChainInfo`.
- `randbeacon.store`: `BeaconStore`, an SQLite file (`beacons.db`) inside a
  given existing folder, keyed by round. `put` replaces any beacon of the same
  round; `last` and `get` raise `NoBeaconSaved` when nothing matches. A
  `Cursor` (`first`, `next`, `seek`, `last`, or plain iteration) walks beacons
  in round order, returning `None` past either end.
- `randbeacon.storewrap`: layers over any store with the same methods:
  `AppendStore` accepts only the next round chained on the last signature
  (otherwise `InvalidAppend`), `DiscrepancyStore` records how far from its
  scheduled time each beacon was stored (`last_discrepancy_ms`,
  `last_round`), and `CallbackStore` hands each new beacon (except round 0)
  to registered callbacks on worker threads.
- `randbeacon.cache`: `PartialBeacon`, `RoundCache` and `PartialCache`, which
  gather partial signatures per round, one per signer, and keep at most
  `MAX_PARTIALS_PER_NODE` rounds per signer, evicting the oldest. The signer
  index is read from the first two bytes of a partial (`index_of`).
- `randbeacon.ticker`: `Ticker` puts a `RoundInfo` on each registered channel
  (a one-slot queue) at every round boundary; ticks are dropped for unread
  channels and `None` marks the end after `stop()`. `SystemClock` is the
  default clock; any object with `now()` and `sleep()` can replace it.
- `randbeacon.sync`: `Syncer` follows a chain from peers into a store
  (`follow`), and serves stored and then new beacons to a requester
  (`sync_chain`). Failures raise `SyncError`.

## Examples

```python
from randbeacon.beacon import Beacon, round_to_bytes
from randbeacon.timing import next_round, time_of_round

b = Beacon(previous_sig=b"\x01\x02\x03", round=145, signature=b"\x02\x03\x04")
print(b.randomness().hex())
print(round_to_bytes(1))                           # b'\x00\x00\x00\x00\x00\x00\x00\x01'

genesis, period = 1_600_000_000, 30
print(next_round(genesis + 45, period, genesis))   # (3, genesis + 60)
print(time_of_round(period, genesis, 3))           # genesis + 60
```

Storing a chain that only grows by one round at a time:

```python
import tempfile

from randbeacon.beacon import Beacon
from randbeacon.info import ChainInfo, genesis_beacon
from randbeacon.store import BeaconStore
from randbeacon.storewrap import AppendStore

info = ChainInfo(public_key=b"\x01" * 48, period=30, genesis_time=1_600_000_000,
                 group_hash=b"\xaa" * 32)

with tempfile.TemporaryDirectory() as folder:
    store = BeaconStore(folder)
    store.put(genesis_beacon(info))
    chain = AppendStore(store)
    chain.put(Beacon(round=1, previous_sig=info.group_hash, signature=b"\x05\x06"))
    print([beacon.round for beacon in store.cursor()])   # [0, 1]
    chain.close()
```

Gathering partial signatures:

```python
from randbeacon.cache import PartialBeacon, PartialCache

cache = PartialCache()
cache.append(PartialBeacon(round=1, previous_sig=b"prev", partial_sig=b"\x00\x01sig"))
print(len(cache.get_round_cache(1, b"prev")))   # 1
```

## What it does not do

The package handles beacons as bytes: it does not create or check threshold
signatures. `Syncer` takes the check as a `verify` callable and the transport
as a `client` object with a `sync_chain(peer, from_round, cancel)` method, so
it has no network code of its own. There is no node that aggregates partials
into beacons, no server and no command-line program.

## Tests

```
pip install -e .[test]
pytest
```