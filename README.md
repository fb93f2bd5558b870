# onewire

A 1-Wire bus master in pure Python. It drives an open-drain pin that you
supply. It provides bus reset and presence detection, ROM selection, byte
reads and writes, and device search, including search for devices in alarm
state. It also has Dallas/Maxim CRC-8 checks and a driver for the DS18B20
temperature sensor.

The package has no dependencies outside the standard library. The tests use
pytest, which is available through the `test` extra.

## Modules

- `onewire.errors`: the exceptions. All of them derive from `OneWireError`.
- `onewire.device`: `Device`, an 8-byte ROM address, and `parse_device`.
- `onewire.crc`: `compute_crc8` and `ensure_correct_crc8`.
- `onewire.bus`: `OpenDrainOutput`, `Delay`, `DeviceSearch`, `OneWire`,
  the `Command` enum of ROM commands, and the abstract `Sensor` class.
- `onewire.ds18b20`: `DS18B20`, `MeasureResolution`, `DS18B20Command` and
  `split_temp`.

## Concepts

- `OpenDrainOutput` is the pin the bus is attached to. Subclass it and
  implement `is_high`, `set_low` and `set_high`. `is_low` defaults to
  `not self.is_high()`. If the pin raises any exception that is not a
  `OneWireError`, `OneWire` wraps it in `PortError`.
- `Delay.delay_us(us)` waits for `us` microseconds. The default implementation
  uses `time.sleep`. Subclass it when you need tighter timing.
- `OneWire(output, parasite_mode=False)` is the bus master.
  - `reset(delay)` returns `True` when a device answers with a presence pulse.
  - `select(delay, device)` addresses one device.
  - `read_bytes(delay, count)` returns `bytes`.
  - `write_bytes(delay, data)` writes the given bytes.
  - `reset_select_write_read`, `reset_select_read_only` and
    `reset_select_write_only` combine these steps.
  - `search_next` and `search_next_alarmed` each return the next `Device`, or
    `None` once the search is finished.
- `DeviceSearch(family=None)` holds the search state between steps. When you
  pass `family`, it is placed in the first address byte.
  - `iter_devices(wire, delay)` yields every device found.
  - `last_discrepancy()` returns the highest bit position at which devices
    disagreed, or `None`.
- `Device(address)` requires exactly 8 bytes.
  - `family_code()` returns the first byte.
  - `str(device)` gives the form `xx:xx:xx:xx:xx:xx:xx:xx`.
  - `parse_device(text)` reads that form back. It raises `ValueError` on bad
    input.
- `compute_crc8(device, data)` returns the CRC-8 over the address followed by
  `data`. `ensure_correct_crc8(device, data, crc8)` raises `CrcMismatchError`
  when the checksums differ.

## DS18B20

`DS18B20(device)` raises `FamilyCodeMismatchError` unless the device's family
code is `0x28`. Pass `force=True` to skip that check. The sensor always uses
`MeasureResolution.TC`, the 12-bit resolution.

- `measure_temperature(wire, delay)` starts a conversion and returns the
  resolution. Wait `resolution.time_ms()` milliseconds before you read.
- `read_temperature(wire, delay)` reads the scratchpad, checks its CRC and
  returns the raw 16-bit register.
- `read_measurement` returns the temperature in °C as a float.
- `read_measurement_raw` returns the raw register.
- `start_measurement` returns the wait in milliseconds.
- `split_temp(raw)` splits a raw reading into `(integer, fraction)`, where
  `fraction` is in units of 1/10000. Both parts carry the sign. For example,
  `split_temp(0x0191)` returns `(25, 625)` and `split_temp(0xFF5E)` returns
  `(-10, -1250)`.

## Example

```python
from onewire.bus import Delay, DeviceSearch, OneWire, OpenDrainOutput
from onewire.ds18b20 import FAMILY_CODE, DS18B20, split_temp
from onewire.errors import OneWireError


class MyPin(OpenDrainOutput):
    def is_high(self):
        ...  # read the line

    def set_low(self):
        ...  # drive the line low

    def set_high(self):
        ...  # release the line


wire = OneWire(MyPin(), parasite_mode=False)
delay = Delay()

for device in DeviceSearch().iter_devices(wire, delay):
    print("found", device)
    if device.family_code() != FAMILY_CODE:
        continue
    sensor = DS18B20(device)
    try:
        resolution = sensor.measure_temperature(wire, delay)
        # wait resolution.time_ms() milliseconds here
        raw = sensor.read_temperature(wire, delay)
    except OneWireError as exc:
        print("read failed:", exc)
        continue
    integer, fraction = split_temp(raw)
    print(f"{integer + fraction / 10000:.4f} °C")
```

## Errors

- `WireNotHighError`: the line stays low during a reset, which suggests a
  short.
- `CrcMismatchError`: data read from a device failed its CRC-8 check. The
  error carries `computed` and `expected`.
- `FamilyCodeMismatchError`: a driver was given a device of another family.
  The error carries `expected` and `actual`.
- `PortError`: the pin implementation raised an error. The original exception
  is kept as `cause`.

## What it does not do

- It ships no pin implementation. You must supply an `OpenDrainOutput` for
  your hardware or simulator.
- The default `Delay` relies on `time.sleep` and does not guarantee
  microsecond timing.
- The DS18B20 driver cannot change the resolution or the alarm thresholds.
  It also cannot copy, recall or check the power supply. `DS18B20Command`
  lists those commands, but the driver only sends `CONVERT` and
  `READ_SCRATCHPAD`.
- There is no command-line tool.