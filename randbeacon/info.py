"""Public chain information needed to verify any beacon of a chain."""

from __future__ import annotations

import hashlib
import json
import struct
from dataclasses import dataclass
from typing import IO, Any, Mapping

from .beacon import Beacon


class InvalidChainInfo(ValueError):
    """Raised when chain information cannot be read or is malformed."""


@dataclass(frozen=True)
class ChainInfo:
    """Public key, period (seconds), genesis time and group hash of a chain."""

    public_key: bytes
    period: int
    genesis_time: int
    group_hash: bytes = b""

    def hash(self) -> bytes:
        """Canonical hash of the chain, independent of network composition."""
        digest = hashlib.sha256()
        digest.update(struct.pack(">I", int(self.period) & 0xFFFFFFFF))
        digest.update(struct.pack(">q", self.genesis_time))
        digest.update(bytes(self.public_key))
        digest.update(bytes(self.group_hash))
        return digest.digest()

    def to_dict(self) -> dict[str, Any]:
        """Packet form of the info, byte fields in hex."""
        return {
            "public_key": bytes(self.public_key).hex(),
            "period": int(self.period) & 0xFFFFFFFF,
            "genesis_time": self.genesis_time,
            "hash": self.hash().hex(),
            "group_hash": bytes(self.group_hash).hex(),
        }

    def to_json(self, stream: IO[str]) -> None:
        """Write the JSON form of the info, followed by a newline."""
        stream.write(json.dumps(self.to_dict(), separators=(",", ":")))
        stream.write("\n")


def _hex_field(data: Mapping[str, Any], name: str) -> bytes:
    value = data.get(name)
    if value is None:
        return b""
    if not isinstance(value, str):
        raise InvalidChainInfo(f"invalid chain info: {name} must be a hex string")
    try:
        return bytes.fromhex(value)
    except ValueError as exc:
        raise InvalidChainInfo(f"invalid chain info: {name}: {exc}") from exc


def _int_field(data: Mapping[str, Any], name: str) -> int:
    value = data.get(name, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidChainInfo(f"invalid chain info: {name} must be an integer")
    return value


def info_from_dict(data: Mapping[str, Any]) -> ChainInfo:
    """Build a :class:`ChainInfo` from its packet form."""
    if not isinstance(data, Mapping):
        raise InvalidChainInfo("invalid chain info: expected an object")
    public_key = _hex_field(data, "public_key")
    if not public_key:
        raise InvalidChainInfo("invalid chain info: missing public key")
    period = _int_field(data, "period")
    if not 0 <= period <= 0xFFFFFFFF:
        raise InvalidChainInfo("invalid chain info: period out of range")
    return ChainInfo(
        public_key=public_key,
        period=period,
        genesis_time=_int_field(data, "genesis_time"),
        group_hash=_hex_field(data, "group_hash"),
    )


def info_from_json(stream: IO[str]) -> ChainInfo:
    """Read a :class:`ChainInfo` from the JSON in ``stream``."""
    try:
        data = json.loads(stream.read())
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidChainInfo(f"reading group file ({exc})") from exc
    return info_from_dict(data)


def genesis_beacon(info: ChainInfo) -> Beacon:
    """The fixed round-0 beacon of a chain."""
    return Beacon(round=0, signature=info.group_hash)