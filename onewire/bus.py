"""Bit-level 1-Wire bus master driven through an open-drain pin."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from enum import Enum, IntEnum, auto
from typing import Callable, Iterable, Iterator, Optional, TypeVar, Union

from .device import ADDRESS_BITS, ADDRESS_BYTES, Device
from .errors import OneWireError, PortError, WireNotHighError

_T = TypeVar("_T")


class Command(IntEnum):
    """ROM commands understood by every 1-Wire device."""

    SELECT_ROM = 0x55
    SEARCH_NEXT = 0xF0
    SEARCH_NEXT_ALARMED = 0xEC


class OpenDrainOutput(ABC):
    """A pin that can be pulled low, released high and read back."""

    @abstractmethod
    def is_high(self) -> bool:
        """Return True if the line reads high."""

    def is_low(self) -> bool:
        """Return True if the line reads low."""
        return not self.is_high()

    @abstractmethod
    def set_low(self) -> None:
        """Drive the line low."""

    @abstractmethod
    def set_high(self) -> None:
        """Release the line so it can float high."""


class Delay:
    """Busy-waits for a number of microseconds."""

    def delay_us(self, us: int) -> None:
        """Block for ``us`` microseconds."""
        time.sleep(us / 1_000_000)


class _SearchState(Enum):
    INITIALIZED = auto()
    DEVICE_FOUND = auto()
    END = auto()


class DeviceSearch:
    """State of a ROM search, carried from one search step to the next."""

    def __init__(self, family: Optional[int] = None) -> None:
        self._address = 0 if family is None else family & 0xFF
        self._discrepancies = 0
        self._state = _SearchState.INITIALIZED

    def _address_bit(self, bit: int) -> bool:
        return bool(self._address >> bit & 1)

    def _write_address_bit(self, bit: int, value: bool) -> None:
        if value:
            self._address |= 1 << bit
        else:
            self._address &= ~(1 << bit)

    def last_discrepancy(self) -> Optional[int]:
        """Return the highest bit position at which devices disagreed, if any."""
        if not self._discrepancies:
            return None
        return self._discrepancies.bit_length() - 1

    def iter_devices(self, wire: "OneWire", delay: Delay) -> Iterator[Device]:
        """Yield every device the search finds on ``wire``."""
        while True:
            device = wire.search_next(self, delay)
            if device is None:
                return
            yield device


class OneWire:
    """A 1-Wire bus master."""

    def __init__(self, output: OpenDrainOutput, parasite_mode: bool = False) -> None:
        self.output = output
        self.parasite_mode = parasite_mode

    def reset_select_write_read(
        self,
        delay: Delay,
        device: Device,
        write: Union[bytes, Iterable[int]],
        read_count: int,
    ) -> bytes:
        """Reset, select ``device``, send ``write`` and read ``read_count`` bytes."""
        self.reset(delay)
        self.select(delay, device)
        self.write_bytes(delay, write)
        return self.read_bytes(delay, read_count)

    def reset_select_read_only(
        self, delay: Delay, device: Device, read_count: int
    ) -> bytes:
        """Reset, select ``device`` and read ``read_count`` bytes."""
        self.reset(delay)
        self.select(delay, device)
        return self.read_bytes(delay, read_count)

    def reset_select_write_only(
        self, delay: Delay, device: Device, write: Union[bytes, Iterable[int]]
    ) -> None:
        """Reset, select ``device`` and send ``write``."""
        self.reset(delay)
        self.select(delay, device)
        self.write_bytes(delay, write)

    def select(self, delay: Delay, device: Device) -> None:
        """Address ``device`` so that following commands go to it alone."""
        parasite = self.parasite_mode
        self._write_byte(delay, Command.SELECT_ROM, parasite)
        last = ADDRESS_BYTES - 1
        for position, byte in enumerate(device.address):
            self._write_byte(delay, byte, parasite and position == last)

    def search_next(self, search: DeviceSearch, delay: Delay) -> Optional[Device]:
        """Find the next device on the bus, or None once all have been found."""
        return self._search(search, delay, Command.SEARCH_NEXT)

    def search_next_alarmed(
        self, search: DeviceSearch, delay: Delay
    ) -> Optional[Device]:
        """Find the next device in alarm state, or None once all have been found."""
        return self._search(search, delay, Command.SEARCH_NEXT_ALARMED)

    def _search(
        self, search: DeviceSearch, delay: Delay, cmd: Command
    ) -> Optional[Device]:
        if search._state is _SearchState.END:
            return None

        discrepancy_found = False
        last = search.last_discrepancy()

        if not self.reset(delay):
            return None

        self._write_byte(delay, cmd, False)

        if last is not None:
            # replay the path taken by the previous step
            for bit in range(last):
                bit0 = self._read_bit(delay)
                bit1 = self._read_bit(delay)
                if bit0 and bit1:
                    return None
                self._write_bit(delay, search._address_bit(bit))
        elif search._state is _SearchState.DEVICE_FOUND:
            # no discrepancy left: the device found before was the only one
            search._state = _SearchState.END
            return None

        start = 0 if last is None else last
        for bit in range(start, ADDRESS_BITS):
            bit0 = self._read_bit(delay)
            bit1 = self._read_bit(delay)
            if bit == last:
                # take the branch not taken last time
                search._discrepancies &= ~(1 << bit)
                search._write_address_bit(bit, True)
                self._write_bit(delay, True)
            elif bit0 and bit1:
                return None
            elif not bit0 and not bit1:
                discrepancy_found = True
                search._discrepancies |= 1 << bit
                search._write_address_bit(bit, False)
                self._write_bit(delay, False)
            else:
                search._write_address_bit(bit, bit0)
                self._write_bit(delay, bit0)

        if not discrepancy_found and search.last_discrepancy() is None:
            search._state = _SearchState.END
        else:
            search._state = _SearchState.DEVICE_FOUND
        return Device(search._address.to_bytes(ADDRESS_BYTES, "little"))

    def reset(self, delay: Delay) -> bool:
        """Send a reset pulse; return True if any device answered with presence.

        Raises WireNotHighError if the line never goes high.
        """
        self._set_input()
        self._ensure_wire_high(delay)
        self._write_low()
        delay.delay_us(480)
        self._set_input()

        present = False
        for _ in range(7):
            delay.delay_us(10)
            present |= not self._read()
        delay.delay_us(410)
        return present

    def _ensure_wire_high(self, delay: Delay) -> None:
        for _ in range(125):
            if self._read():
                return
            delay.delay_us(2)
        raise WireNotHighError()

    def read_bytes(self, delay: Delay, count: int) -> bytes:
        """Read ``count`` bytes from the bus."""
        return bytes(self._read_byte(delay) for _ in range(count))

    def _read_byte(self, delay: Delay) -> int:
        byte = 0
        for _ in range(8):
            byte >>= 1
            if self._read_bit(delay):
                byte |= 0x80
        return byte

    def _read_bit(self, delay: Delay) -> bool:
        self._write_low()
        delay.delay_us(3)
        self._set_input()
        delay.delay_us(2)
        value = self._read()
        delay.delay_us(61)
        return value

    def write_bytes(self, delay: Delay, data: Union[bytes, Iterable[int]]) -> None:
        """Write ``data`` to the bus, least significant bit first."""
        for byte in bytes(data):
            self._write_byte(delay, byte, False)
        if not self.parasite_mode:
            self._disable_parasite_mode()

    def _write_byte(self, delay: Delay, byte: int, parasite_mode: bool) -> None:
        for _ in range(8):
            self._write_bit(delay, bool(byte & 0x01))
            byte >>= 1
        if not parasite_mode:
            self._disable_parasite_mode()

    def _write_bit(self, delay: Delay, high: bool) -> None:
        self._write_low()
        delay.delay_us(10 if high else 65)
        self._write_high()
        delay.delay_us(55 if high else 5)

    def _disable_parasite_mode(self) -> None:
        self._set_input()
        self._write_low()

    def _pin(self, action: Callable[[], _T]) -> _T:
        try:
            return action()
        except OneWireError:
            raise
        except Exception as exc:
            raise PortError(exc) from exc

    def _set_input(self) -> None:
        self._pin(self.output.set_high)

    def _write_low(self) -> None:
        self._pin(self.output.set_low)

    def _write_high(self) -> None:
        self._pin(self.output.set_high)

    def _read(self) -> bool:
        return bool(self._pin(self.output.is_high))


class Sensor(ABC):
    """A device on the bus that takes measurements."""

    @abstractmethod
    def family_code(self) -> int:
        """Return the family code of devices this sensor drives."""

    @abstractmethod
    def start_measurement(self, wire: OneWire, delay: Delay) -> int:
        """Start a measurement; return the milliseconds to wait before reading."""

    @abstractmethod
    def read_measurement(self, wire: OneWire, delay: Delay) -> float:
        """Return the measured value."""

    @abstractmethod
    def read_measurement_raw(self, wire: OneWire, delay: Delay) -> int:
        """Return the measured value as the device reports it."""