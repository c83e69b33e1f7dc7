"""Device and message identifiers used on the vehicle CAN bus."""

from __future__ import annotations

from enum import IntEnum

__all__ = [
    "Device",
    "MotorMessage",
    "UIMessage",
    "HSMessage",
    "FCMessage",
    "JouleMessage",
    "DAQMessage",
    "read_hardware",
    "read_data_type",
]


class Device(IntEnum):
    """Boards that talk on the bus; the value is the upper 4-bit id."""

    Bear_1 = 0
    UI = 1
    HS1 = 2
    HS2 = 3
    HS3 = 4
    HS4 = 5
    FC = 6
    Joule_H = 7
    Joule_L = 8
    Safety = 9
    DAQ_Board = 10


class MotorMessage(IntEnum):
    Hall_velocity = 0
    Torque_motor = 1
    Current = 2
    Board_Temp = 3
    Motor_Temp = 4


class UIMessage(IntEnum):
    Blink_Left = 0
    Blink_Right = 1
    Reverse = 2
    Headlights = 3
    Wipers = 4
    Hazard = 5
    Button = 6
    Switch = 7
    Motor = 8
    Horn = 9
    DAQ_Button = 10


class HSMessage(IntEnum):
    Gyro_x = 0
    Gyro_y = 1
    Gyro_z = 2
    Accel_x = 3
    Accel_y = 4
    Accel_z = 5
    Pressure = 6
    Torque_HS = 7


class FCMessage(IntEnum):
    Gas = 0
    Brake = 1


class JouleMessage(IntEnum):
    Power = 0


class DAQMessage(IntEnum):
    Longitude = 0
    Latitude = 1
    Speed = 2


_MESSAGES_BY_DEVICE: dict[int, type[IntEnum]] = {
    Device.Bear_1: MotorMessage,
    Device.UI: UIMessage,
    Device.HS1: HSMessage,
    Device.HS2: HSMessage,
    Device.HS3: HSMessage,
    Device.HS4: HSMessage,
    Device.FC: FCMessage,
    Device.Joule_H: JouleMessage,
    Device.Joule_L: JouleMessage,
    Device.DAQ_Board: DAQMessage,
}


def read_hardware(first: int) -> str:
    """Return the name of the device with the given id.

    Raises ValueError for an id that names no device.
    """
    return Device(first).name


def read_data_type(first: int, last: int) -> str:
    """Return the name of message ``last`` sent by device ``first``.

    The safety board has a single message type, ``"Safety"``; an unknown
    device yields an empty string. An unknown message of a known device
    raises ValueError.
    """
    if first == Device.Safety:
        return "Safety"
    messages = _MESSAGES_BY_DEVICE.get(first)
    if messages is None:
        return ""
    return messages(last).name