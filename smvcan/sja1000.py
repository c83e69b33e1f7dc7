"""Register-level driver for an SJA1000-compatible CAN controller.

The controller talks to its registers through a :class:`RegisterFile`. The
default one is plain memory, which makes the driver usable for simulation
and testing. A subclass can map the same interface onto real hardware.
"""

from __future__ import annotations

from typing import Callable, TextIO

from .codec import EXTENDED_ID_MASK, MAX_DATA_LENGTH, STANDARD_ID_MASK, Frame

__all__ = [
    "RegisterFile",
    "CANError",
    "SJA1000Controller",
    "REG_MOD",
    "REG_CMR",
    "REG_SR",
    "REG_IR",
    "REG_IER",
    "REG_BTR0",
    "REG_BTR1",
    "REG_OCR",
    "REG_ALC",
    "REG_ECC",
    "REG_EWLR",
    "REG_RXERR",
    "REG_TXERR",
    "REG_SFF",
    "REG_EFF",
    "REG_ACR",
    "REG_AMR",
    "REG_CDR",
    "DEFAULT_RX_PIN",
    "DEFAULT_TX_PIN",
    "SUPPORTED_BAUD_RATES",
]

REG_MOD = 0x00
REG_CMR = 0x01
REG_SR = 0x02
REG_IR = 0x03
REG_IER = 0x04
REG_BTR0 = 0x06
REG_BTR1 = 0x07
REG_OCR = 0x08
REG_ALC = 0x0B
REG_ECC = 0x0C
REG_EWLR = 0x0D
REG_RXERR = 0x0E
REG_TXERR = 0x0F
REG_SFF = 0x10
REG_EFF = 0x10
REG_ACR = tuple(0x10 + n for n in range(4))
REG_AMR = tuple(0x14 + n for n in range(4))
REG_CDR = 0x1F

DEFAULT_RX_PIN = 4
DEFAULT_TX_PIN = 5

# Baud rate -> (BTR1 low nibble, BTR0 prescaler). Below 50 kbit/s the
# controller cannot be clocked reliably, so those rates are refused.
_BAUD_TIMING: dict[int, tuple[int, int]] = {
    1_000_000: (0x04, 4),
    500_000: (0x0C, 4),
    250_000: (0x0C, 9),
    200_000: (0x0C, 12),
    125_000: (0x0C, 19),
    100_000: (0x0C, 24),
    80_000: (0x0C, 30),
    50_000: (0x0C, 49),
}
SUPPORTED_BAUD_RATES = tuple(_BAUD_TIMING)

_SR_RX_READY = 0x01
_SR_TX_BUFFER_FREE = 0x04
_SR_TX_COMPLETE = 0x08
_IR_RECEIVE = 0x01
_ECC_BUS_ERROR = 0xD9
_REGISTER_COUNT = 32


class CANError(Exception):
    """Raised when a transmission fails or the controller does not respond."""


class RegisterFile:
    """Byte-wide controller registers held in memory."""

    def __init__(self, size: int = _REGISTER_COUNT) -> None:
        self._values = bytearray(size)

    def __len__(self) -> int:
        return len(self._values)

    def _check(self, address: int) -> None:
        if not 0 <= address < len(self._values):
            raise ValueError(f"register address {address:#x} out of range")

    def read(self, address: int) -> int:
        """Return the byte held at ``address``."""
        self._check(address)
        return self._values[address]

    def write(self, address: int, value: int) -> None:
        """Store the low byte of ``value`` at ``address``."""
        self._check(address)
        self._values[address] = value & 0xFF

    def modify(self, address: int, mask: int, value: int) -> None:
        """Clear the ``mask`` bits at ``address``, then set the ``value`` bits."""
        self.write(address, (self.read(address) & ~mask) | value)


class SJA1000Controller:
    """CAN 2.0 controller in PeliCAN mode."""

    def __init__(self, registers: RegisterFile | None = None, *, poll_limit: int = 1000) -> None:
        self.registers = registers if registers is not None else RegisterFile()
        self.poll_limit = poll_limit
        self.rx_pin = DEFAULT_RX_PIN
        self.tx_pin = DEFAULT_TX_PIN
        self.baud_rate: int | None = None
        self.last_frame: Frame | None = None
        self._loopback = False
        self._callback: Callable[[Frame], None] | None = None

    # -- configuration -------------------------------------------------

    def begin(self, baud_rate: int) -> None:
        """Configure bit timing, open all filters and enter normal mode."""
        timing = _BAUD_TIMING.get(baud_rate)
        if timing is None:
            raise ValueError(
                f"unsupported baud rate {baud_rate}; choose one of {', '.join(map(str, SUPPORTED_BAUD_RATES))}"
            )
        btr1_timing, prescaler = timing
        regs = self.registers
        self.baud_rate = int(baud_rate)
        self._loopback = False

        regs.modify(REG_CDR, 0x80, 0x80)  # PeliCAN mode
        regs.modify(REG_BTR0, 0xC0, 0x40)  # SJW = 1
        regs.modify(REG_BTR1, 0x70, 0x10)  # TSEG2 = 1
        regs.modify(REG_BTR1, 0x0F, btr1_timing)
        regs.modify(REG_BTR0, 0x3F, prescaler)
        regs.modify(REG_BTR1, 0x80, 0x80)  # triple sampling
        regs.write(REG_IER, 0xFF)

        for address in REG_ACR:
            regs.write(address, 0x00)
        for address in REG_AMR:
            regs.write(address, 0xFF)

        regs.modify(REG_OCR, 0x03, 0x02)  # normal output mode
        regs.write(REG_TXERR, 0x00)
        regs.write(REG_RXERR, 0x00)

        # Reading these clears pending errors and interrupts.
        regs.read(REG_ECC)
        regs.read(REG_IR)

        regs.modify(REG_MOD, 0x08, 0x08)
        regs.modify(REG_MOD, 0x17, 0x00)

    def end(self) -> None:
        """Stop the controller and drop the receive callback."""
        self._callback = None
        self.baud_rate = None

    def set_pins(self, rx: int, tx: int) -> None:
        """Choose the receive and transmit pins used by :meth:`begin`."""
        self.rx_pin = rx
        self.tx_pin = tx

    def filter(self, id: int, mask: int) -> None:
        """Accept only standard frames whose masked id matches ``id``."""
        id &= STANDARD_ID_MASK
        mask = ~(mask & STANDARD_ID_MASK)
        regs = self.registers

        regs.modify(REG_MOD, 0x17, 0x01)  # reset
        regs.write(REG_ACR[0], id >> 3)
        regs.write(REG_ACR[1], id << 5)
        regs.write(REG_ACR[2], 0x00)
        regs.write(REG_ACR[3], 0x00)
        regs.write(REG_AMR[0], mask >> 3)
        regs.write(REG_AMR[1], (mask << 5) | 0x1F)
        regs.write(REG_AMR[2], 0xFF)
        regs.write(REG_AMR[3], 0xFF)
        regs.modify(REG_MOD, 0x17, 0x00)  # normal

    def filter_extended(self, id: int, mask: int) -> None:
        """Accept only extended frames matching ``id``.

        Only mask bits above the 29-bit identifier survive, so for any
        ordinary mask the identifier must match exactly.
        """
        id &= EXTENDED_ID_MASK
        mask &= ~(mask & EXTENDED_ID_MASK)
        regs = self.registers

        regs.modify(REG_MOD, 0x17, 0x01)  # reset
        regs.write(REG_ACR[0], id >> 21)
        regs.write(REG_ACR[1], id >> 13)
        regs.write(REG_ACR[2], id >> 5)
        regs.write(REG_ACR[3], id << 3)
        regs.write(REG_AMR[0], mask >> 21)
        regs.write(REG_AMR[1], mask >> 13)
        regs.write(REG_AMR[2], mask >> 5)
        regs.write(REG_AMR[3], (mask << 3) | 0x1F)
        regs.modify(REG_MOD, 0x17, 0x00)  # normal

    def observe(self) -> None:
        """Enter listen-only mode."""
        self.registers.modify(REG_MOD, 0x17, 0x01)
        self.registers.modify(REG_MOD, 0x17, 0x02)

    def loopback(self) -> None:
        """Enter self-test mode; sent frames are received back."""
        self._loopback = True
        self.registers.modify(REG_MOD, 0x17, 0x01)
        self.registers.modify(REG_MOD, 0x17, 0x04)

    def sleep(self) -> None:
        """Put the controller to sleep."""
        self.registers.modify(REG_MOD, 0x1F, 0x10)

    def wakeup(self) -> None:
        """Wake the controller from sleep."""
        self.registers.modify(REG_MOD, 0x1F, 0x00)

    # -- traffic ---------------------------------------------------------

    def _wait_for(self, bit: int, *, abort_on_error: bool = False) -> None:
        for _ in range(self.poll_limit):
            if self.registers.read(REG_SR) & bit == bit:
                return
            if abort_on_error and self.registers.read(REG_ECC) == _ECC_BUS_ERROR:
                self.registers.modify(REG_CMR, 0x1F, 0x02)  # abort transmission
                raise CANError("bus error, transmission aborted")
        raise CANError(f"controller did not set status bit {bit:#04x}")

    def send_frame(self, frame: Frame) -> None:
        """Load ``frame`` into the transmit buffer and wait until it is sent."""
        regs = self.registers
        self._wait_for(_SR_TX_BUFFER_FREE)

        info = (0x40 if frame.rtr else 0x00) | (0x0F & frame.dlc)
        ident = frame.id
        if frame.extended:
            regs.write(REG_EFF, 0x80 | info)
            regs.write(REG_EFF + 1, ident >> 21)
            regs.write(REG_EFF + 2, ident >> 13)
            regs.write(REG_EFF + 3, ident >> 5)
            regs.write(REG_EFF + 4, ident << 3)
            data_reg = REG_EFF + 5
        else:
            regs.write(REG_SFF, info)
            regs.write(REG_SFF + 1, ident >> 3)
            regs.write(REG_SFF + 2, ident << 5)
            data_reg = REG_SFF + 3

        for offset, byte in enumerate(frame.data):
            regs.write(data_reg + offset, byte)

        # Self-reception request in loopback mode, plain transmit otherwise.
        regs.modify(REG_CMR, 0x1F, 0x10 if self._loopback else 0x01)
        self._wait_for(_SR_TX_COMPLETE, abort_on_error=True)

    def parse_packet(self) -> Frame | None:
        """Read the next received frame, or return None if there is none."""
        regs = self.registers
        if regs.read(REG_SR) & _SR_RX_READY != _SR_RX_READY:
            return None

        info = regs.read(REG_SFF)
        extended = bool(info & 0x80)
        rtr = bool(info & 0x40)
        dlc = info & 0x0F

        if extended:
            ident = (
                (regs.read(REG_EFF + 1) << 21)
                | (regs.read(REG_EFF + 2) << 13)
                | (regs.read(REG_EFF + 3) << 5)
                | (regs.read(REG_EFF + 4) >> 3)
            ) & EXTENDED_ID_MASK
            data_reg = REG_EFF + 5
        else:
            ident = (regs.read(REG_SFF + 1) << 3) | ((regs.read(REG_SFF + 2) >> 5) & 0x07)
            data_reg = REG_SFF + 3

        if rtr:
            data = b""
        else:
            length = min(dlc, MAX_DATA_LENGTH)
            data = bytes(regs.read(data_reg + offset) for offset in range(length))

        regs.modify(REG_CMR, 0x04, 0x04)  # release receive buffer
        self.last_frame = Frame(ident, data, extended=extended, rtr=rtr)
        return self.last_frame

    def on_receive(self, callback: Callable[[Frame], None] | None) -> None:
        """Call ``callback`` with each frame picked up by :meth:`handle_interrupt`."""
        self._callback = callback

    def handle_interrupt(self) -> Frame | None:
        """Service a receive interrupt and hand the frame to the callback."""
        if not self.registers.read(REG_IR) & _IR_RECEIVE:
            return None
        frame = self.parse_packet()
        if frame is not None and self._callback is not None:
            self._callback(frame)
        return frame

    def dump_registers(self, out: TextIO) -> None:
        """Write every register as a ``0xAA: 0xVV`` line to ``out``."""
        for address in range(_REGISTER_COUNT):
            out.write(f"0x{address:02X}: 0x{self.registers.read(address):02X}\n")