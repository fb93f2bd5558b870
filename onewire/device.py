"""Addresses of devices on a 1-Wire bus."""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Iterable, Union

ADDRESS_BYTES = 8
ADDRESS_BITS = ADDRESS_BYTES * 8

_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True, order=True)
class Device:
    """A device identified by its 64-bit ROM address."""

    address: bytes

    def __init__(self, address: Union[bytes, bytearray, Iterable[int]]) -> None:
        raw = bytes(address)
        if len(raw) != ADDRESS_BYTES:
            raise ValueError(
                f"address must be {ADDRESS_BYTES} bytes long, got {len(raw)}"
            )
        object.__setattr__(self, "address", raw)

    def family_code(self) -> int:
        """Return the family code, the first byte of the address."""
        return self.address[0]

    def __str__(self) -> str:
        return ":".join(f"{byte:02x}" for byte in self.address)


def _parse_byte(text: str) -> int:
    digits = text[1:] if text.startswith("+") else text
    if not digits or not all(ch in _HEX_DIGITS for ch in digits):
        raise ValueError(f"invalid hex byte: {text!r}")
    return int(digits, 16)


def parse_device(text: str) -> Device:
    """Parse an address written as eight hex pairs with one separator between each."""
    if len(text) < 23:
        raise ValueError(f"device address too short: {text!r}")
    return Device(_parse_byte(text[start : start + 2]) for start in range(0, 24, 3))