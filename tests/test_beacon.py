import pytest

from randbeacon.beacon import (
    Beacon,
    beacon_from_json,
    message,
    randomness_from_signature,
    round_to_bytes,
    short_sig_str,
)


@pytest.mark.parametrize(
    "round_number, expected",
    [
        (0, bytes([0, 0, 0, 0, 0, 0, 0, 0])),
        (1, bytes([0, 0, 0, 0, 0, 0, 0, 1])),
        (184348345343, bytes([0x00, 0x00, 0x00, 0x2A, 0xEC, 0x04, 0x83, 0xFF])),
        (0xA1B2C3D4E5F6A7B8, bytes([0xA1, 0xB2, 0xC3, 0xD4, 0xE5, 0xF6, 0xA7, 0xB8])),
    ],
)
def test_round_to_bytes(round_number, expected):
    assert round_to_bytes(round_number) == expected


@pytest.mark.parametrize("bad", [-1, 2**64])
def test_round_to_bytes_out_of_range(bad):
    with pytest.raises(ValueError):
        round_to_bytes(bad)


def test_message_depends_on_round_and_previous():
    prev = b"My Sweet Previous Signature"
    m16 = message(16, prev)
    assert len(m16) == 32
    assert message(16, prev) == m16
    assert message(17, prev) != m16
    assert message(16, prev + b"!") != m16


def test_randomness_is_hash_of_signature():
    beacon = Beacon(round=5, signature=b"one signature to", previous_sig=b"x")
    assert beacon.randomness() == randomness_from_signature(b"one signature to")
    assert len(beacon.randomness()) == 32
    other = Beacon(round=5, signature=b"govern them all", previous_sig=b"x")
    assert other.randomness() != beacon.randomness()


def test_short_sig_str():
    assert short_sig_str(b"\x01\x02\x03\x04\x05") == "010203"
    assert short_sig_str(b"\xab") == "ab"
    assert short_sig_str(b"") == ""


def test_str_format():
    beacon = Beacon(round=3, signature=b"\x01\x02\x03\x04", previous_sig=b"\xaa")
    assert str(beacon) == "{ round: 3, sig: 010203, prevSig: aa }"


def test_json_round_trip():
    beacon = Beacon(
        round=145,
        signature=b"one signature to",
        previous_sig=b"a magnificent signature",
    )
    assert beacon_from_json(beacon.to_json()) == beacon


def test_json_encoding_is_hex():
    beacon = Beacon(round=1, signature=b"\x02\x03", previous_sig=b"\x01")
    assert beacon.to_json() == b'{"PreviousSig":"01","Round":1,"Signature":"0203"}'


def test_json_null_fields_decode_as_empty():
    beacon = beacon_from_json('{"PreviousSig":null,"Round":0,"Signature":"ff"}')
    assert beacon == Beacon(round=0, signature=b"\xff", previous_sig=b"")


@pytest.mark.parametrize(
    "payload",
    ["", "not json", "[]", '{"Round":-1}', '{"Round":1,"Signature":"zz"}'],
)
def test_json_invalid(payload):
    with pytest.raises(ValueError):
        beacon_from_json(payload)


def test_equality():
    a = Beacon(round=1, signature=b"s", previous_sig=b"p")
    assert a == Beacon(round=1, signature=b"s", previous_sig=b"p")
    assert a != Beacon(round=2, signature=b"s", previous_sig=b"p")