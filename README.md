# smvcan

A small library for exchanging telemetry over a CAN 2.0 vehicle network.

Every node sends 8-byte frames, and the payload of each frame is one
little-endian IEEE-754 double. The 11-bit frame identifier holds two fields.
The sending device is in bits 7–10 and the message type is in bits 0–3.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `smvcan.ids`

This module holds the device and message enumerations, all of them
`IntEnum`: `Device`, `MotorMessage`, `UIMessage`, `HSMessage`, `FCMessage`,
`JouleMessage` and `DAQMessage`.

- `read_hardware(first)` returns the name of a device. It raises
  `ValueError` for an id that matches no device.
- `read_data_type(first, last)` returns the name of a message type for the
  given device:
  - For the safety board it always returns `"Safety"`.
  - For an unknown device it returns `""`.
  - For an unknown message of a known device it raises `ValueError`.

### `smvcan.codec`

- `get_id_field(first, last)` builds an identifier from its two fields.
  `get_first(id_field)` and `get_last(id_field)` take it apart again.
- `pack_double(value)` turns a double into 8 bytes. `unpack_double(data)`
  turns 8 bytes back into a double. It raises `ValueError` for any other
  length.
- `Frame(id, data=b"", extended=False, rtr=False)` is an immutable CAN frame.
  - It checks that the data is at most 8 bytes long.
  - It checks that the identifier fits in 11 bits, or in 29 bits for an
    extended frame.
  - `dlc` gives the data length.

### `smvcan.sja1000`

`SJA1000Controller` is a model of an SJA1000 controller in PeliCAN mode. It
drives a `RegisterFile`, which is 32 byte-wide registers held in memory and
offers `read`, `write` and `modify`.

- `begin(baud_rate)` sets the bit timing, opens the acceptance filter and
  enters normal mode. It accepts only the rates in `SUPPORTED_BAUD_RATES`,
  from 50 kbit/s to 1 Mbit/s, and raises `ValueError` for any other rate.
- `filter(id, mask)` and `filter_extended(id, mask)` program the acceptance
  registers.
- `observe`, `loopback`, `sleep` and `wakeup` switch the controller mode.
- `set_pins(rx, tx)` records the pins to use. The defaults are 4 and 5.
- `send_frame(frame)` loads a `Frame` into the transmit buffer. It then polls
  the status register, at most `poll_limit` times per wait. It raises
  `CANError` in two cases:
  - the controller never reports that the buffer is free or that the send is
    done;
  - the error code register reports a bus error. The transmission is then
    aborted.
- `parse_packet()` returns the received `Frame` and releases the receive
  buffer. It returns `None` if nothing is waiting.
- `on_receive(callback)` sets the callback. `handle_interrupt()` checks the
  receive interrupt bit, parses the frame and passes it to the callback.
- `dump_registers(out)` writes every register to a text stream as a
  `0xAA: 0xVV` line.

### `smvcan.canbus`

`Canbus(device_id, bus=None)` is the node-level interface. It works with any
`Transport`, meaning any object that has `send(frame)` and `receive()`.

- `send(message, data_type)` sends a double. The identifier is built from
  this node's device id and `data_type`.
- `looper()` takes one waiting frame off the bus, if there is one. It decodes
  the double and records the sender's fields as `first`, `last`, `hardware`
  and `data_type`. Names it cannot resolve become `""`.
- `is_there()` tells whether a value has arrived that has not been read yet.
- `get_data()` returns the last value and marks it as read.

If you give no `bus`, `Canbus` opens a `SocketCanBus` on `can0`.
`SocketCanBus(channel="can0", sock=None)` is a non-blocking raw SocketCAN
socket. It can also be used as a context manager.

- `receive()` returns `None` when no frame is waiting, and skips error
  frames.
- A truncated read raises `CANError`.
- Where the platform has no raw CAN sockets, the constructor raises
  `OSError`.

### `smvcan.kalman`

`Kalman(process_noise, sensor_noise, estimated_error, initial_value)` is a
scalar Kalman filter.

- `filtered_value(measurement)` updates the estimate and returns it.
- `set_parameters(process_noise, sensor_noise, estimated_error=None)` replaces
  the noise terms. It also replaces the error estimate if you give one.

### `smvcan.ramping`

`Linear` moves a current speed toward a throttle target once every 50 ms of
the time you pass in.

- `new_speed(throttle, time_millis)` returns the speed to apply. The target
  is held as a single byte.
- Each step adds 6, capped at `MAX_SPEED` (240), or subtracts 10, floored at
  `MIN_SPEED` (0).
- The speed is left alone when it is within `RAMP_SPEED` of the target.

`Ramping` is the abstract base class. The module also defines the motor
controller constants `PWM_FREQ`, `MAX_THROTTLE`, `MAX_RPM` and others.

## Example

```python
from smvcan.codec import get_id_field, get_first, get_last, pack_double, unpack_double
from smvcan.ids import Device, HSMessage, read_hardware, read_data_type

ident = get_id_field(Device.HS1, HSMessage.Pressure)
payload = pack_double(101.3)

print(read_hardware(get_first(ident)))                    # HS1
print(read_data_type(get_first(ident), get_last(ident)))  # Pressure
print(unpack_double(payload))                             # 101.3
```

Exchanging values over an in-memory transport:

```python
from smvcan.canbus import Canbus
from smvcan.ids import Device, FCMessage

class Loop:
    def __init__(self):
        self.frames = []
    def send(self, frame):
        self.frames.append(frame)
    def receive(self):
        return self.frames.pop(0) if self.frames else None

bus = Loop()
node = Canbus(Device.FC, bus)
node.send(0.75, FCMessage.Gas)
node.looper()
print(node.hardware, node.data_type, node.get_data())  # FC Gas 0.75
```

## What it does not do

- There is no command-line program.
- `SJA1000Controller` works on the in-memory `RegisterFile` only. Nothing
  here maps those registers onto a real chip.
- `SocketCanBus` does not set the interface's bit rate. Configure the
  interface (for example `can0` at 500 kbit/s) with your system tools before
  you open it.