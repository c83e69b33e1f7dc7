"""High-level access to the vehicle bus: send and receive double values."""

from __future__ import annotations

import socket
import struct
from typing import Protocol

from .codec import EXTENDED_ID_MASK, MAX_DATA_LENGTH, STANDARD_ID_MASK, Frame, get_first, get_id_field, get_last, pack_double, unpack_double
from .ids import read_data_type, read_hardware
from .sja1000 import CANError

__all__ = ["Transport", "SocketCanBus", "Canbus", "BAUD_RATE"]

BAUD_RATE = 500_000

# Layout of a classic ``struct can_frame``: id with flags, length, padding, data.
_WIRE_FRAME = struct.Struct("=IB3x8s")
_EFF_FLAG = 0x80000000
_RTR_FLAG = 0x40000000
_ERR_FLAG = 0x20000000


class Transport(Protocol):
    """Anything that can put frames on a bus and take them off."""

    def send(self, frame: Frame) -> None: ...

    def receive(self) -> Frame | None: ...


def _encode(frame: Frame) -> bytes:
    can_id = frame.id
    if frame.extended:
        can_id |= _EFF_FLAG
    if frame.rtr:
        can_id |= _RTR_FLAG
    return _WIRE_FRAME.pack(can_id, frame.dlc, frame.data)


def _decode(raw: bytes) -> Frame | None:
    can_id, dlc, payload = _WIRE_FRAME.unpack(raw)
    if can_id & _ERR_FLAG:
        return None
    extended = bool(can_id & _EFF_FLAG)
    rtr = bool(can_id & _RTR_FLAG)
    ident = can_id & (EXTENDED_ID_MASK if extended else STANDARD_ID_MASK)
    data = b"" if rtr else payload[: min(dlc, MAX_DATA_LENGTH)]
    return Frame(ident, data, extended=extended, rtr=rtr)


class SocketCanBus:
    """Raw CAN socket bound to one interface, read without blocking."""

    def __init__(self, channel: str = "can0", *, sock: socket.socket | None = None) -> None:
        if sock is None:
            family = getattr(socket, "AF_CAN", None)
            if family is None:
                raise OSError("raw CAN sockets are not available on this platform")
            sock = socket.socket(family, socket.SOCK_RAW, socket.CAN_RAW)
            try:
                sock.bind((channel,))
            except OSError:
                sock.close()
                raise
        sock.setblocking(False)
        self.channel = channel
        self._sock = sock

    def __enter__(self) -> SocketCanBus:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def send(self, frame: Frame) -> None:
        """Put ``frame`` on the bus."""
        self._sock.sendall(_encode(frame))

    def receive(self) -> Frame | None:
        """Return the next waiting frame, or None if nothing has arrived."""
        while True:
            try:
                raw = self._sock.recv(_WIRE_FRAME.size)
            except BlockingIOError:
                return None
            if len(raw) != _WIRE_FRAME.size:
                raise CANError(f"short frame of {len(raw)} bytes from the socket")
            frame = _decode(raw)
            if frame is not None:
                return frame

    def close(self) -> None:
        """Release the socket."""
        self._sock.close()


def _lookup_hardware(first: int) -> str:
    try:
        return read_hardware(first)
    except ValueError:
        return ""


def _lookup_data_type(first: int, last: int) -> str:
    try:
        return read_data_type(first, last)
    except ValueError:
        return ""


class Canbus:
    """One board's view of the bus: it sends doubles tagged with its device id
    and decodes the last double any board sent."""

    def __init__(self, device_id: int, bus: Transport | None = None) -> None:
        self.device_id = device_id
        self.bus: Transport = bus if bus is not None else SocketCanBus()
        self.hardware = ""
        self.data_type = ""
        self.first = 0
        self.last = 0
        self._data = 0.0
        self._is_message = False

    def looper(self) -> None:
        """Take a waiting message off the bus, if any, and decode it."""
        frame = self.bus.receive()
        if frame is None:
            return
        self.first = get_first(frame.id)
        self.last = get_last(frame.id)
        self.hardware = _lookup_hardware(self.first)
        self.data_type = _lookup_data_type(self.first, self.last)
        self._data = unpack_double(frame.data.ljust(MAX_DATA_LENGTH, b"\x00"))
        self._is_message = True

    def send(self, message: float, data_type: int) -> None:
        """Send ``message`` as a double tagged with this device and ``data_type``."""
        frame = Frame(get_id_field(self.device_id, data_type), pack_double(message))
        self.bus.send(frame)

    def get_data(self) -> float:
        """Return the value of the last message and mark it as read."""
        self._is_message = False
        return self._data

    def is_there(self) -> bool:
        """Whether a message has arrived that has not been read yet."""
        return self._is_message