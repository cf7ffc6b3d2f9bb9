"""Persistent beacon storage keyed by round, iterated in round order."""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from typing import Iterator

from .beacon import Beacon, beacon_from_json, round_to_bytes

_log = logging.getLogger(__name__)

#: Name of the database file created inside the store folder.
DB_FILE_NAME = "beacons.db"


class NoBeaconSaved(LookupError):
    """Raised when a requested beacon is not in the database."""

    def __init__(self, message: str = "beacon not found in database") -> None:
        super().__init__(message)


def _decode(data: bytes | None) -> Beacon | None:
    if data is None:
        return None
    try:
        return beacon_from_json(data)
    except ValueError:
        return None


class BeaconStore:
    """Key/value beacon store; beacons are kept JSON-encoded under their round.

    Putting a beacon for a round already stored replaces it.
    """

    def __init__(self, folder: str | os.PathLike[str]) -> None:
        self.path = os.path.join(os.fspath(folder), DB_FILE_NAME)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        with self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS beacons "
                "(round BLOB PRIMARY KEY, data BLOB NOT NULL) WITHOUT ROWID"
            )

    def __enter__(self) -> BeaconStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _fetch_one(self, query: str, params: tuple = ()) -> tuple[bytes, bytes] | None:
        with self._lock:
            row = self._conn.execute(query, params).fetchone()
        if row is None:
            return None
        return bytes(row[0]), bytes(row[1])

    def __len__(self) -> int:
        with self._lock:
            (count,) = self._conn.execute("SELECT COUNT(*) FROM beacons").fetchone()
        return count

    def put(self, beacon: Beacon) -> None:
        """Store ``beacon`` under its round, without checking for duplicates."""
        key = round_to_bytes(beacon.round)
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO beacons (round, data) VALUES (?, ?)",
                (key, beacon.to_json()),
            )

    def last(self) -> Beacon:
        """Return the beacon with the highest round."""
        row = self._fetch_one("SELECT round, data FROM beacons ORDER BY round DESC LIMIT 1")
        if row is None:
            raise NoBeaconSaved()
        return beacon_from_json(row[1])

    def get(self, round: int) -> Beacon:
        """Return the beacon stored for ``round``."""
        row = self._fetch_one(
            "SELECT round, data FROM beacons WHERE round = ?", (round_to_bytes(round),)
        )
        if row is None:
            raise NoBeaconSaved()
        return beacon_from_json(row[1])

    def delete(self, round: int) -> None:
        """Remove the beacon of ``round``; absent rounds are ignored."""
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM beacons WHERE round = ?", (round_to_bytes(round),))

    def cursor(self) -> Cursor:
        """Return a cursor over the beacons in round order."""
        return Cursor(self)

    def close(self) -> None:
        """Close the underlying database."""
        try:
            with self._lock:
                self._conn.close()
        except sqlite3.Error as exc:
            _log.debug("close failed: %s", exc)


class Cursor:
    """Moves over stored beacons in increasing round order.

    Each move returns the beacon found, or ``None`` past either end.
    """

    def __init__(self, store: BeaconStore) -> None:
        self._store = store
        self._key: bytes | None = None

    def _move(self, row: tuple[bytes, bytes] | None) -> Beacon | None:
        if row is None:
            self._key = None
            return None
        self._key = row[0]
        return _decode(row[1])

    def first(self) -> Beacon | None:
        return self._move(
            self._store._fetch_one("SELECT round, data FROM beacons ORDER BY round ASC LIMIT 1")
        )

    def next(self) -> Beacon | None:
        if self._key is None:
            return None
        return self._move(
            self._store._fetch_one(
                "SELECT round, data FROM beacons WHERE round > ? ORDER BY round ASC LIMIT 1",
                (self._key,),
            )
        )

    def seek(self, round: int) -> Beacon | None:
        """Move to the first beacon whose round is at least ``round``."""
        return self._move(
            self._store._fetch_one(
                "SELECT round, data FROM beacons WHERE round >= ? ORDER BY round ASC LIMIT 1",
                (round_to_bytes(round),),
            )
        )

    def last(self) -> Beacon | None:
        return self._move(
            self._store._fetch_one("SELECT round, data FROM beacons ORDER BY round DESC LIMIT 1")
        )

    def __iter__(self) -> Iterator[Beacon]:
        beacon = self.first()
        while beacon is not None:
            yield beacon
            beacon = self.next()