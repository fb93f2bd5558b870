"""1-Wire bus master with device search, CRC-8 checks and a DS18B20 driver."""

__version__ = "0.4.0"
__all__ = ["bus", "crc", "device", "ds18b20", "errors"]