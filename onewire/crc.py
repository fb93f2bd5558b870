"""Dallas/Maxim CRC-8 used for ROM addresses and scratchpads."""

from __future__ import annotations

from typing import Iterable, Union

from .device import Device
from .errors import CrcMismatchError


def _table_entry(value: int) -> int:
    crc = value
    for _ in range(8):
        crc = (crc >> 1) ^ 0x8C if crc & 0x01 else crc >> 1
    return crc


_CRC_TABLE = bytes(_table_entry(value) for value in range(256))

_Data = Union[bytes, bytearray, Iterable[int]]


def compute_crc8(device: Device, data: _Data) -> int:
    """Compute the CRC-8 over the device address followed by ``data``."""
    crc = 0
    for byte in device.address:
        crc = _CRC_TABLE[byte ^ crc]
    for byte in bytes(data):
        crc = _CRC_TABLE[byte ^ crc]
    return crc


def ensure_correct_crc8(device: Device, data: _Data, crc8: int) -> None:
    """Raise CrcMismatchError unless ``crc8`` matches the computed checksum."""
    computed = compute_crc8(device, data)
    if computed != crc8:
        raise CrcMismatchError(computed=computed, expected=crc8)