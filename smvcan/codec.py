"""Identifier field layout and payload encoding for bus messages."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

__all__ = ["Frame", "get_id_field", "get_first", "get_last", "pack_double", "unpack_double"]

MAX_DATA_LENGTH = 8
STANDARD_ID_MASK = 0x7FF
EXTENDED_ID_MASK = 0x1FFFFFFF

_DOUBLE = struct.Struct("<d")


@dataclass(frozen=True)
class Frame:
    """A CAN 2.0 frame."""

    id: int
    data: bytes = field(default=b"")
    extended: bool = False
    rtr: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))
        if len(self.data) > MAX_DATA_LENGTH:
            raise ValueError(f"frame data is {len(self.data)} bytes, at most {MAX_DATA_LENGTH} allowed")
        limit = EXTENDED_ID_MASK if self.extended else STANDARD_ID_MASK
        if not 0 <= self.id <= limit:
            raise ValueError(f"identifier {self.id:#x} out of range for this frame format")

    @property
    def dlc(self) -> int:
        """Data length code."""
        return len(self.data)


def get_id_field(first: int, last: int) -> int:
    """Build an identifier from a device id and a message id."""
    return (first << 7) + last


def get_first(id_field: int) -> int:
    """Extract the 4-bit device id from an identifier."""
    return (id_field >> 7) & 0b1111


def get_last(id_field: int) -> int:
    """Extract the 4-bit message id from an identifier."""
    return id_field & 0b1111


def pack_double(value: float) -> bytes:
    """Encode a double as the 8 little-endian bytes sent on the bus."""
    return _DOUBLE.pack(value)


def unpack_double(data: bytes) -> float:
    """Decode 8 little-endian bytes into a double."""
    if len(data) != _DOUBLE.size:
        raise ValueError(f"expected {_DOUBLE.size} bytes, got {len(data)}")
    return _DOUBLE.unpack(bytes(data))[0]