import pytest

from onewire.bus import (
    Command,
    Delay,
    DeviceSearch,
    OneWire,
    OpenDrainOutput,
    Sensor,
)
from onewire.device import Device
from onewire.errors import PortError, WireNotHighError


class SimDevice:
    def __init__(self, address, response=b"", alarmed=False):
        self.device = Device(address)
        self.rom = int.from_bytes(self.device.address, "little")
        self.response = bytes(response)
        self.alarmed = alarmed
        self.received = []

    def bit(self, position):
        return bool(self.rom >> position & 1)


class FakeBus(OpenDrainOutput, Delay):
    """Simulates devices on a line by decoding slot lengths from the delays."""

    def __init__(self, devices=()):
        self.devices = list(devices)
        self.now = 0
        self.low_since = None
        self.presence = False
        self.pending_read = False
        self.written_bits = []
        self.commands = []
        self.resets = 0
        self.mode = "idle"
        self.bits = []
        self.active = []
        self.selected = None
        self.stream = iter(())
        self.search_pos = 0
        self.search_phase = 0

    def delay_us(self, us):
        self.now += us

    def set_low(self):
        self.low_since = self.now
        self.presence = False

    def set_high(self):
        if self.low_since is None:
            return
        duration = self.now - self.low_since
        self.low_since = None
        if duration >= 480:
            self._on_reset()
        elif duration >= 60:
            self._on_write(False)
        elif duration >= 10:
            self._on_write(True)
        elif duration > 0:
            self.pending_read = True

    def is_high(self):
        if self.low_since is not None:
            return False
        if self.pending_read:
            self.pending_read = False
            return self._on_read()
        if self.presence:
            return not self.devices
        return True

    def _on_reset(self):
        self.resets += 1
        self.presence = True
        self.mode = "command"
        self.bits = []
        self.active = list(self.devices)
        self.selected = None
        self.stream = iter(())
        self.search_pos = 0
        self.search_phase = 0

    def _collect(self, bit, size):
        self.bits.append(bit)
        if len(self.bits) < size:
            return None
        value = sum(1 << i for i, b in enumerate(self.bits) if b)
        self.bits = []
        return value

    def _on_write(self, bit):
        self.written_bits.append(bit)
        if self.mode == "command":
            cmd = self._collect(bit, 8)
            if cmd is None:
                return
            self.commands.append(cmd)
            if cmd == 0x55:
                self.mode = "select"
            elif cmd in (0xF0, 0xEC):
                self.mode = "search"
                if cmd == 0xEC:
                    self.active = [d for d in self.active if d.alarmed]
            else:
                self.mode = "idle"
        elif self.mode == "select":
            rom = self._collect(bit, 64)
            if rom is None:
                return
            self.selected = next((d for d in self.devices if d.rom == rom), None)
            if self.selected is not None:
                self.stream = iter(
                    [bool(byte >> i & 1) for byte in self.selected.response for i in range(8)]
                )
            self.mode = "function"
        elif self.mode == "function":
            byte = self._collect(bit, 8)
            if byte is not None and self.selected is not None:
                self.selected.received.append(byte)
        elif self.mode == "search":
            self.active = [d for d in self.active if d.bit(self.search_pos) == bit]
            self.search_pos += 1
            self.search_phase = 0

    def _on_read(self):
        if self.mode == "search":
            if not self.active:
                return True
            pos = self.search_pos
            if self.search_phase == 0:
                value = all(d.bit(pos) for d in self.active)
            else:
                value = all(not d.bit(pos) for d in self.active)
            self.search_phase += 1
            return value
        if self.mode == "function" and self.selected is not None:
            return next(self.stream, True)
        return True


class StuckLowPin(OpenDrainOutput):
    def is_high(self):
        return False

    def set_low(self):
        pass

    def set_high(self):
        pass


class BrokenPin(OpenDrainOutput):
    def is_high(self):
        return True

    def set_low(self):
        pass

    def set_high(self):
        raise OSError("pin gone")


class CountingDelay(Delay):
    def __init__(self):
        self.total = 0

    def delay_us(self, us):
        self.total += us


ADDR_A = bytes([0x28, 0x11, 0x22, 0x33, 0x44, 0x55, 0x66, 0x01])
ADDR_B = bytes([0x28, 0x11, 0x22, 0x33, 0x44, 0x55, 0x66, 0x00])
ADDR_C = bytes([0x28, 0x11, 0x22, 0x33, 0x44, 0x55, 0x66, 0x20])


def make_wire(devices, parasite_mode=False):
    bus = FakeBus(devices)
    return bus, OneWire(bus, parasite_mode)


def test_reset_detects_presence():
    bus, wire = make_wire([SimDevice(ADDR_A)])
    assert wire.reset(bus) is True
    assert bus.resets == 1


def test_reset_without_devices():
    bus, wire = make_wire([])
    assert wire.reset(bus) is False


def test_reset_raises_when_wire_stuck_low():
    wire = OneWire(StuckLowPin(), False)
    delay = CountingDelay()
    with pytest.raises(WireNotHighError):
        wire.reset(delay)
    assert delay.total == 125 * 2


def test_pin_errors_are_wrapped():
    wire = OneWire(BrokenPin(), False)
    with pytest.raises(PortError) as info:
        wire.reset(CountingDelay())
    assert isinstance(info.value.cause, OSError)
    assert info.value.__cause__ is info.value.cause


def test_is_low_defaults_to_inverse_of_is_high():
    assert OpenDrainOutput.is_low(StuckLowPin()) is True
    assert OpenDrainOutput.is_low(BrokenPin()) is False


def test_write_bytes_sends_lsb_first():
    bus, wire = make_wire([])
    wire.write_bytes(bus, b"\x55")
    assert bus.written_bits == [True, False, True, False, True, False, True, False]


def test_write_then_read_bytes_round_trip_through_selected_device():
    device = SimDevice(ADDR_A, response=b"\x10\x20\x30")
    bus, wire = make_wire([device])
    data = wire.reset_select_write_read(bus, device.device, b"\xbe", 3)
    assert data == b"\x10\x20\x30"
    assert device.received == [0xBE]
    assert bus.commands == [Command.SELECT_ROM]


def test_reset_select_read_only():
    device = SimDevice(ADDR_B, response=b"\xaa\x0f")
    bus, wire = make_wire([device, SimDevice(ADDR_A)])
    assert wire.reset_select_read_only(bus, device.device, 2) == b"\xaa\x0f"
    assert device.received == []


def test_reset_select_write_only_reaches_only_selected_device():
    target = SimDevice(ADDR_A)
    other = SimDevice(ADDR_B)
    bus, wire = make_wire([target, other])
    wire.reset_select_write_only(bus, target.device, b"\x44\x01")
    assert target.received == [0x44, 0x01]
    assert other.received == []


@pytest.mark.parametrize("parasite, released", [(True, True), (False, False)])
def test_select_leaves_line_according_to_parasite_mode(parasite, released):
    device = SimDevice(ADDR_A)
    bus, wire = make_wire([device], parasite_mode=parasite)
    wire.reset(bus)
    wire.select(bus, device.device)
    assert (bus.low_since is None) is released
    assert bus.selected is device


def test_search_single_device_then_ends():
    device = SimDevice(ADDR_A)
    bus, wire = make_wire([device])
    search = DeviceSearch()
    assert wire.search_next(search, bus) == device.device
    assert search.last_discrepancy() is None
    assert wire.search_next(search, bus) is None
    assert wire.search_next(search, bus) is None


def test_search_without_devices():
    bus, wire = make_wire([])
    assert wire.search_next(DeviceSearch(), bus) is None


def test_search_records_discrepancy():
    bus, wire = make_wire([SimDevice(ADDR_A), SimDevice(ADDR_B)])
    search = DeviceSearch()
    first = wire.search_next(search, bus)
    assert first == Device(ADDR_B)
    assert search.last_discrepancy() == 56
    assert wire.search_next(search, bus) == Device(ADDR_A)
    assert search.last_discrepancy() is None
    assert wire.search_next(search, bus) is None


def test_iter_devices_finds_every_device_once():
    devices = [SimDevice(ADDR_A), SimDevice(ADDR_B), SimDevice(ADDR_C)]
    bus, wire = make_wire(devices)
    found = list(DeviceSearch().iter_devices(wire, bus))
    assert len(found) == 3
    assert set(found) == {d.device for d in devices}


def test_iter_devices_with_family_start():
    devices = [SimDevice(ADDR_A), SimDevice(ADDR_C)]
    bus, wire = make_wire(devices)
    search = DeviceSearch(0x28)
    assert search.last_discrepancy() is None
    found = list(search.iter_devices(wire, bus))
    assert sorted(found) == sorted(d.device for d in devices)


def test_search_alarmed_only_returns_alarmed_devices():
    alarmed = SimDevice(ADDR_C, alarmed=True)
    bus, wire = make_wire([SimDevice(ADDR_A), alarmed, SimDevice(ADDR_B)])
    search = DeviceSearch()
    assert wire.search_next_alarmed(search, bus) == alarmed.device
    assert wire.search_next_alarmed(search, bus) is None
    assert Command.SEARCH_NEXT_ALARMED in bus.commands


def test_sensor_is_abstract():
    with pytest.raises(TypeError):
        Sensor()