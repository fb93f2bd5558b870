"""Driver for the DS18B20 digital thermometer."""

from __future__ import annotations

from enum import IntEnum

from .bus import Delay, OneWire, Sensor
from .crc import ensure_correct_crc8
from .device import Device
from .errors import FamilyCodeMismatchError

FAMILY_CODE = 0x28

_SCRATCHPAD_BYTES = 9


class DS18B20Command(IntEnum):
    """Function commands understood by a DS18B20."""

    CONVERT = 0x44
    WRITE_SCRATCHPAD = 0x4E
    READ_SCRATCHPAD = 0xBE
    COPY_SCRATCHPAD = 0x48
    RECALL_E2 = 0xB8
    READ_POWER_SUPPLY = 0xB4


class MeasureResolution(IntEnum):
    """Conversion resolution, as stored in the configuration register."""

    TC8 = 0b0001_1111
    TC4 = 0b0011_1111
    TC2 = 0b0101_1111
    TC = 0b0111_1111

    def time_ms(self) -> int:
        """Return the longest time a conversion at this resolution takes."""
        return _CONVERSION_TIME_MS[self]


_CONVERSION_TIME_MS = {
    MeasureResolution.TC8: 94,
    MeasureResolution.TC4: 188,
    MeasureResolution.TC2: 375,
    MeasureResolution.TC: 750,
}


def _to_signed16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value >= 0x8000 else value


class DS18B20(Sensor):
    """A DS18B20 temperature sensor on a 1-Wire bus."""

    def __init__(self, device: Device, force: bool = False) -> None:
        """Wrap ``device``; unless ``force`` is set its family code must be 0x28."""
        if not force and device.family_code() != FAMILY_CODE:
            raise FamilyCodeMismatchError(
                expected=FAMILY_CODE, actual=device.family_code()
            )
        self.device = device
        self.resolution = MeasureResolution.TC

    def family_code(self) -> int:
        """Return the DS18B20 family code."""
        return FAMILY_CODE

    def measure_temperature(self, wire: OneWire, delay: Delay) -> MeasureResolution:
        """Start a conversion and return the resolution it is made at.

        Wait ``time_ms()`` of the result before calling ``read_temperature``.
        """
        wire.reset_select_write_only(delay, self.device, [DS18B20Command.CONVERT])
        return self.resolution

    def read_temperature(self, wire: OneWire, delay: Delay) -> int:
        """Read the raw 16-bit temperature register from the scratchpad.

        Raises CrcMismatchError if the scratchpad fails its checksum.
        """
        scratchpad = wire.reset_select_write_read(
            delay,
            self.device,
            [DS18B20Command.READ_SCRATCHPAD],
            _SCRATCHPAD_BYTES,
        )
        ensure_correct_crc8(self.device, scratchpad[:8], scratchpad[8])
        return int.from_bytes(scratchpad[0:2], "little")

    def start_measurement(self, wire: OneWire, delay: Delay) -> int:
        """Start a conversion; return the milliseconds to wait before reading."""
        return self.measure_temperature(wire, delay).time_ms()

    def read_measurement(self, wire: OneWire, delay: Delay) -> float:
        """Return the temperature in degrees Celsius."""
        return _to_signed16(self.read_temperature(wire, delay)) / 16.0

    def read_measurement_raw(self, wire: OneWire, delay: Delay) -> int:
        """Return the raw temperature register."""
        return self.read_temperature(wire, delay)


def split_temp(temperature: int) -> tuple[int, int]:
    """Split a raw reading into an integer part and a fraction in 1/10000ths.

    The value is ``integer + fraction / 10000``; both parts carry the sign.
    """
    signed = _to_signed16(temperature)
    if signed >= 0:
        return signed >> 4, (signed & 0xF) * 625
    magnitude = -signed
    return -(magnitude >> 4), -625 * (magnitude & 0xF)