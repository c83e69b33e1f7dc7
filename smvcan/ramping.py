"""Speed ramping for the motor controller throttle."""

from __future__ import annotations

from abc import ABC, abstractmethod

__all__ = [
    "Ramping",
    "Linear",
    "PWM_FREQ",
    "MIN_THROTTLE",
    "MAX_THROTTLE",
    "MOTOR_OFF_THROTTLE",
    "MAX_START_SPEED",
    "MIN_SPEED",
    "MAX_SPEED",
    "MAX_RPM",
    "TIMER_INTERVAL_MS",
    "POLE_COUNT",
    "RAMP_SPEED",
]

PWM_FREQ = 24000
MIN_THROTTLE = 0
MAX_THROTTLE = 1013
MOTOR_OFF_THROTTLE = 5
MAX_START_SPEED = 10
MIN_SPEED = 0
MAX_SPEED = 240
MAX_RPM = 500
TIMER_INTERVAL_MS = 50
POLE_COUNT = 46
RAMP_SPEED = 1


def _byte(value: int) -> int:
    return value & 0xFF


class Ramping(ABC):
    """Base for strategies that move the current speed toward a target."""

    MAX_WAIT_TIME = 50

    def __init__(self) -> None:
        self.current_speed = MIN_SPEED
        self.desired_speed = MIN_SPEED
        self._last_change = 0

    @abstractmethod
    def new_speed(self, throttle: int, time_millis: int) -> int:
        """Take a throttle reading and return the speed to apply."""

    def is_time_to_change_speed(self, time_millis: int) -> bool:
        """Return True, and restart the wait, once enough time has passed."""
        if time_millis - self._last_change >= self.MAX_WAIT_TIME:
            self._last_change = time_millis
            return True
        return False

    def speed_up(self, amount: int) -> None:
        """Raise the current speed, capped at MAX_SPEED."""
        amount = _byte(amount)
        if self.current_speed + amount >= MAX_SPEED:
            self.current_speed = MAX_SPEED
        else:
            self.current_speed += amount

    def speed_down(self, amount: int) -> None:
        """Lower the current speed, floored at MIN_SPEED."""
        amount = _byte(amount)
        if self.current_speed - amount <= MIN_SPEED:
            self.current_speed = MIN_SPEED
        else:
            self.current_speed -= amount


class Linear(Ramping):
    """Steps up slowly and down faster, once per wait interval."""

    def new_speed(self, throttle: int, time_millis: int) -> int:
        # The target is held in a single byte, as the controller stores it.
        self.desired_speed = _byte(throttle)
        if self.is_time_to_change_speed(time_millis):
            if abs(self.current_speed - self.desired_speed) > RAMP_SPEED:
                if self.current_speed < self.desired_speed:
                    self.speed_up(6 * RAMP_SPEED)
                else:
                    self.speed_down(10 * RAMP_SPEED)
        return self.current_speed