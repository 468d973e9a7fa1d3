"""Unified viewing key container encoding (ZIP 316).

A unified encoding is Bech32m over F4Jumble(items || padding), where each
item is `compactSize typecode || compactSize length || value` and the
padding is the human-readable part zero-padded to 16 bytes. Unlike BIP 173
there is no 90 character limit on the string.
"""

import hashlib
import math

from bech32 import (
    CHARSET,
    Encoding,
    bech32_encode,
    bech32_verify_checksum,
    convertbits,
)

from miner_stats.helpers.errors import KeyDecodeError


PADDING_LEN = 16
MIN_JUMBLE_LEN = 48
MAX_JUMBLE_LEN = 4_194_368
_H_LEN = 64

TYPECODE_P2PKH = 0x00
TYPECODE_P2SH = 0x01
TYPECODE_SAPLING = 0x02
TYPECODE_ORCHARD = 0x03


# Bech32m


def bech32m_encode(hrp: str, payload: bytes) -> str:
    """Encode bytes as a Bech32m string with no length limit."""
    return bech32_encode(hrp, convertbits(payload, 8, 5), Encoding.BECH32M)


def bech32m_decode(encoded: str) -> tuple[str, bytes]:
    """Decode a Bech32m string.

    Only the separator and character set are handled here; checksum and
    regrouping come from the bech32 library, whose own decoder enforces the
    90 character limit of BIP 173.

    Returns:
        Tuple of (human-readable part, payload bytes)

    Raises:
        ValueError: If the string is not valid Bech32m
    """
    if encoded.lower() != encoded and encoded.upper() != encoded:
        msg = "mixed case"
        raise ValueError(msg)
    encoded = encoded.lower()

    sep = encoded.rfind("1")
    if sep < 1 or sep + 7 > len(encoded):
        msg = "missing separator or checksum"
        raise ValueError(msg)

    hrp = encoded[:sep]
    if any(ord(c) < 33 or ord(c) > 126 for c in hrp):
        msg = "invalid character in human-readable part"
        raise ValueError(msg)

    data = [CHARSET.find(c) for c in encoded[sep + 1 :]]
    if -1 in data:
        msg = "invalid character in data part"
        raise ValueError(msg)

    if bech32_verify_checksum(hrp, data) != Encoding.BECH32M:
        msg = "checksum mismatch"
        raise ValueError(msg)

    payload = convertbits(data[:-6], 5, 8, False)
    if payload is None:
        msg = "invalid padding"
        raise ValueError(msg)
    return hrp, bytes(payload)


# F4Jumble


def _xor(left: bytes, right: bytes) -> bytes:
    return bytes(a ^ b for a, b in zip(left, right, strict=True))


def _h(i: int, u: bytes, length: int) -> bytes:
    person = b"UA_F4Jumble_H" + bytes([i, 0, 0])
    return hashlib.blake2b(u, digest_size=length, person=person).digest()


def _g(i: int, u: bytes, length: int) -> bytes:
    blocks = (
        hashlib.blake2b(
            u,
            digest_size=64,
            person=b"UA_F4Jumble_G" + bytes([i]) + j.to_bytes(2, "little"),
        ).digest()
        for j in range(math.ceil(length / 64))
    )
    return b"".join(blocks)[:length]


def _split(message: bytes) -> tuple[bytes, bytes]:
    if not MIN_JUMBLE_LEN <= len(message) <= MAX_JUMBLE_LEN:
        msg = f"message length {len(message)} outside F4Jumble bounds"
        raise ValueError(msg)
    left_len = min(_H_LEN, len(message) // 2)
    return message[:left_len], message[left_len:]


def f4jumble(message: bytes) -> bytes:
    """Apply the F4Jumble permutation."""
    a, b = _split(message)
    x = _xor(b, _g(0, a, len(b)))
    y = _xor(a, _h(0, x, len(a)))
    d = _xor(x, _g(1, y, len(x)))
    c = _xor(y, _h(1, d, len(y)))
    return c + d


def f4jumble_inv(message: bytes) -> bytes:
    """Invert the F4Jumble permutation."""
    c, d = _split(message)
    y = _xor(c, _h(1, d, len(c)))
    x = _xor(d, _g(1, y, len(d)))
    a = _xor(y, _h(0, x, len(y)))
    b = _xor(x, _g(0, a, len(x)))
    return a + b


# Items


def _read_compact_size(buf: bytes, pos: int) -> tuple[int, int]:
    if pos >= len(buf):
        msg = "truncated compactSize"
        raise ValueError(msg)
    first = buf[pos]
    if first < 0xFD:
        return first, pos + 1
    width, floor = {0xFD: (2, 0xFD), 0xFE: (4, 0x10000), 0xFF: (8, 0x100000000)}[first]
    end = pos + 1 + width
    if end > len(buf):
        msg = "truncated compactSize"
        raise ValueError(msg)
    value = int.from_bytes(buf[pos + 1 : end], "little")
    if value < floor:
        msg = "non-canonical compactSize"
        raise ValueError(msg)
    return value, end


def _write_compact_size(value: int) -> bytes:
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + value.to_bytes(2, "little")
    if value <= 0xFFFFFFFF:
        return b"\xfe" + value.to_bytes(4, "little")
    return b"\xff" + value.to_bytes(8, "little")


def _padding(hrp: str) -> bytes:
    raw = hrp.encode("ascii")
    if len(raw) > PADDING_LEN:
        msg = f"human-readable part '{hrp}' longer than {PADDING_LEN} bytes"
        raise ValueError(msg)
    return raw.ljust(PADDING_LEN, b"\x00")


def encode_unified(hrp: str, items: dict[int, bytes]) -> str:
    """Encode typecode -> value items as a unified string.

    Items are written in ascending typecode order.
    """
    body = b"".join(
        _write_compact_size(typecode) + _write_compact_size(len(value)) + value
        for typecode, value in sorted(items.items())
    )
    return bech32m_encode(hrp, f4jumble(body + _padding(hrp)))


def decode_unified(encoded: str, expected_hrp: str) -> dict[int, bytes]:
    """Decode a unified string into its typecode -> value items.

    Args:
        encoded: Unified encoding, e.g. a unified full viewing key
        expected_hrp: Human-readable part of the target network

    Returns:
        Mapping of typecode to raw item value

    Raises:
        KeyDecodeError: If the string is not a well-formed unified encoding
            for `expected_hrp`
    """
    try:
        hrp, jumbled = bech32m_decode(encoded.strip())
        if hrp != expected_hrp:
            msg = f"expected prefix '{expected_hrp}', found '{hrp}'"
            raise ValueError(msg)
        raw = f4jumble_inv(jumbled)
        if raw[-PADDING_LEN:] != _padding(hrp):
            msg = "invalid padding"
            raise ValueError(msg)

        body = raw[:-PADDING_LEN]
        items: dict[int, bytes] = {}
        pos = 0
        while pos < len(body):
            typecode, pos = _read_compact_size(body, pos)
            length, pos = _read_compact_size(body, pos)
            if pos + length > len(body):
                msg = f"item {typecode} truncated"
                raise ValueError(msg)
            if typecode in items:
                msg = f"duplicate item {typecode}"
                raise ValueError(msg)
            items[typecode] = body[pos : pos + length]
            pos += length
    except ValueError as e:
        msg = f"invalid unified encoding: {e}"
        raise KeyDecodeError(msg) from e

    if not items:
        msg = "unified encoding has no items"
        raise KeyDecodeError(msg)
    return items


__all__ = [
    "TYPECODE_ORCHARD",
    "TYPECODE_P2PKH",
    "TYPECODE_P2SH",
    "TYPECODE_SAPLING",
    "bech32m_decode",
    "bech32m_encode",
    "decode_unified",
    "encode_unified",
    "f4jumble",
    "f4jumble_inv",
]
