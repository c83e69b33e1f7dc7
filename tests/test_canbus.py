import socket
import struct
from collections import deque

import pytest

from smvcan.canbus import Canbus, SocketCanBus
from smvcan.codec import Frame, get_id_field, pack_double
from smvcan.ids import Device, FCMessage, HSMessage, MotorMessage
from smvcan.sja1000 import CANError

WIRE = struct.Struct("=IB3x8s")


class LoopBus:
    def __init__(self):
        self.sent = []
        self.incoming = deque()

    def send(self, frame):
        self.sent.append(frame)
        self.incoming.append(frame)

    def receive(self):
        return self.incoming.popleft() if self.incoming else None


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    bus = SocketCanBus(sock=left)
    yield bus, right
    bus.close()
    right.close()


def test_socket_send_standard_frame(pair):
    bus, peer = pair
    bus.send(Frame(0x123, b"\x01\x02"))
    assert peer.recv(16) == WIRE.pack(0x123, 2, b"\x01\x02")


def test_socket_send_extended_rtr_sets_flags(pair):
    bus, peer = pair
    bus.send(Frame(0x1ABCDE, extended=True, rtr=True))
    can_id, dlc, _ = WIRE.unpack(peer.recv(16))
    assert can_id == 0x1ABCDE | 0x80000000 | 0x40000000
    assert dlc == 0


def test_socket_receive_round_trip(pair):
    bus, peer = pair
    peer.sendall(WIRE.pack(0x1ABCDE | 0x80000000, 3, b"abc"))
    frame = bus.receive()
    assert frame == Frame(0x1ABCDE, b"abc", extended=True)


def test_socket_receive_nothing_waiting(pair):
    bus, _ = pair
    assert bus.receive() is None


def test_socket_receive_skips_error_frames(pair):
    bus, peer = pair
    peer.sendall(WIRE.pack(0x20000000 | 0x4, 8, bytes(8)) + WIRE.pack(0x10, 1, b"\x07"))
    assert bus.receive() == Frame(0x10, b"\x07")


def test_socket_short_frame_raises(pair):
    bus, peer = pair
    peer.sendall(b"\x01\x02\x03")
    with pytest.raises(CANError):
        bus.receive()


def test_send_builds_id_and_payload():
    bus = LoopBus()
    node = Canbus(Device.FC, bus)
    node.send(1.25, FCMessage.Brake)
    assert bus.sent == [Frame(get_id_field(Device.FC, FCMessage.Brake), pack_double(1.25))]


def test_looper_decodes_message():
    bus = LoopBus()
    bus.incoming.append(Frame(get_id_field(Device.HS1, HSMessage.Pressure), pack_double(3.5)))
    node = Canbus(Device.UI, bus)
    node.looper()
    assert node.is_there()
    assert node.hardware == "HS1"
    assert node.data_type == "Pressure"
    assert node.first == Device.HS1
    assert node.last == HSMessage.Pressure
    assert node.get_data() == 3.5
    assert not node.is_there()


def test_round_trip_between_boards():
    bus = LoopBus()
    sender = Canbus(Device.Bear_1, bus)
    receiver = Canbus(Device.DAQ_Board, bus)
    sender.send(-42.75, MotorMessage.Motor_Temp)
    receiver.looper()
    assert receiver.hardware == "Bear_1"
    assert receiver.data_type == "Motor_Temp"
    assert receiver.get_data() == -42.75


def test_looper_without_message_leaves_state():
    node = Canbus(Device.UI, LoopBus())
    node.looper()
    assert node.is_there() is False
    assert node.hardware == ""


def test_safety_board_data_type():
    bus = LoopBus()
    bus.incoming.append(Frame(get_id_field(Device.Safety, 3), pack_double(1.0)))
    node = Canbus(Device.UI, bus)
    node.looper()
    assert (node.hardware, node.data_type) == ("Safety", "Safety")


def test_unknown_ids_give_empty_names():
    bus = LoopBus()
    bus.incoming.append(Frame(get_id_field(12, 1), pack_double(2.0)))
    bus.incoming.append(Frame(get_id_field(Device.FC, 9), pack_double(2.0)))
    node = Canbus(Device.UI, bus)
    node.looper()
    assert node.hardware == ""
    assert node.get_data() == 2.0
    node.looper()
    assert node.hardware == "FC"
    assert node.data_type == ""


def test_short_payload_is_zero_padded():
    bus = LoopBus()
    bus.incoming.append(Frame(get_id_field(Device.HS2, HSMessage.Gyro_x), b""))
    node = Canbus(Device.UI, bus)
    node.looper()
    assert node.get_data() == 0.0


def test_send_rejects_id_out_of_range():
    node = Canbus(16, LoopBus())
    with pytest.raises(ValueError):
        node.send(1.0, 0)