"""Exceptions raised by the 1-Wire bus and its device drivers."""

from __future__ import annotations


class OneWireError(Exception):
    """Base class for every error raised by this package."""


class WireNotHighError(OneWireError):
    """The bus never returned to high; it may be shorted to ground."""

    def __init__(self) -> None:
        super().__init__("wire is not high")


class CrcMismatchError(OneWireError):
    """A received checksum does not match the one computed locally."""

    def __init__(self, computed: int, expected: int) -> None:
        self.computed = computed
        self.expected = expected
        super().__init__(
            f"CRC mismatch: expected 0x{expected:02x}, computed 0x{computed:02x}"
        )


class FamilyCodeMismatchError(OneWireError):
    """A device's family code is not the one a driver requires."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"family code mismatch: expected 0x{expected:02x}, actual 0x{actual:02x}"
        )


class PortError(OneWireError):
    """The underlying pin reported an error."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"port error: {cause!r}")
        self.__cause__ = cause