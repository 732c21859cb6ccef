"""CRC32C-based hash of eight 32-bit words."""

from __future__ import annotations

import struct
from collections.abc import Iterable

_CRC32C_POLY = 0x82F63B78
_U32_MAX = 0xFFFFFFFF


def _make_table() -> tuple[int, ...]:
    table = []
    for index in range(256):
        crc = index
        for _ in range(8):
            crc = (crc >> 1) ^ _CRC32C_POLY if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_TABLE = _make_table()


def hash_u32x8(words: Iterable[int]) -> int:
    """Return the CRC32C (zero seed, no final xor) of eight little-endian u32 words."""
    values = tuple(words)
    if len(values) != 8:
        raise ValueError(f"expected 8 words, got {len(values)}")
    if any(not 0 <= value <= _U32_MAX for value in values):
        raise ValueError("words must be unsigned 32-bit integers")
    crc = 0
    for byte in struct.pack("<8I", *values):
        crc = _TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc