"""Randomness beacons: the signed link of a chain and its derived values."""

from __future__ import annotations

import hashlib
import json
import struct
from dataclasses import dataclass
from typing import Any

_ROUND_FORMAT = struct.Struct(">Q")


def round_to_bytes(round: int) -> bytes:
    """Serialize a round number as 8 bytes, big-endian."""
    try:
        return _ROUND_FORMAT.pack(round)
    except struct.error as exc:
        raise ValueError(f"round {round!r} does not fit in 64 unsigned bits") from exc


def message(round: int, prev_sig: bytes) -> bytes:
    """Return the digest signed for a round: H(prev_sig || round)."""
    digest = hashlib.sha256()
    digest.update(bytes(prev_sig))
    digest.update(round_to_bytes(round))
    return digest.digest()


def randomness_from_signature(sig: bytes) -> bytes:
    """Derive the round randomness from its signature."""
    return hashlib.sha256(bytes(sig)).digest()


def short_sig_str(sig: bytes) -> str:
    """Hex of at most the first three bytes of a signature."""
    return bytes(sig[:3]).hex()


def _decode_hex(value: Any, field: str) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise ValueError(f"field {field} must be a hex string")
    try:
        return bytes.fromhex(value)
    except ValueError as exc:
        raise ValueError(f"field {field} is not valid hex: {exc}") from exc


@dataclass(frozen=True)
class Beacon:
    """A round's signature together with the previous signature it chains on."""

    round: int = 0
    signature: bytes = b""
    previous_sig: bytes = b""

    def randomness(self) -> bytes:
        """The SHA-256 hash of the signature."""
        return randomness_from_signature(self.signature)

    def to_json(self) -> bytes:
        """Encode the beacon as JSON with byte fields in hex."""
        payload = {
            "PreviousSig": bytes(self.previous_sig).hex(),
            "Round": self.round,
            "Signature": bytes(self.signature).hex(),
        }
        return json.dumps(payload, separators=(",", ":")).encode()

    def __str__(self) -> str:
        return (
            f"{{ round: {self.round}, sig: {short_sig_str(self.signature)}, "
            f"prevSig: {short_sig_str(self.previous_sig)} }}"
        )


def beacon_from_json(data: bytes | str) -> Beacon:
    """Decode a beacon produced by :meth:`Beacon.to_json`."""
    try:
        payload = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValueError(f"invalid beacon encoding: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("invalid beacon encoding: expected an object")
    round_value = payload.get("Round", 0)
    if isinstance(round_value, bool) or not isinstance(round_value, int) or round_value < 0:
        raise ValueError("field Round must be a non-negative integer")
    return Beacon(
        round=round_value,
        signature=_decode_hex(payload.get("Signature"), "Signature"),
        previous_sig=_decode_hex(payload.get("PreviousSig"), "PreviousSig"),
    )