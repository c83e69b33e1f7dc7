"""One-dimensional Kalman filter for smoothing sensor readings."""

from __future__ import annotations

__all__ = ["Kalman"]


class Kalman:
    """Scalar Kalman filter.

    ``process_noise`` (q) and ``sensor_noise`` (r) set how strongly readings
    are smoothed; ``estimated_error`` (p) adapts as measurements arrive.
    """

    def __init__(
        self,
        process_noise: float,
        sensor_noise: float,
        estimated_error: float,
        initial_value: float,
    ) -> None:
        self.process_noise = process_noise
        self.sensor_noise = sensor_noise
        self.estimated_error = estimated_error
        self.value = initial_value
        self.gain = 0.0

    def filtered_value(self, measurement: float) -> float:
        """Feed in a measurement and return the updated estimate."""
        self.estimated_error += self.process_noise
        self.gain = self.estimated_error / (self.estimated_error + self.sensor_noise)
        self.value += self.gain * (measurement - self.value)
        self.estimated_error *= 1 - self.gain
        return self.value

    def set_parameters(
        self,
        process_noise: float,
        sensor_noise: float,
        estimated_error: float | None = None,
    ) -> None:
        """Replace the noise parameters, and the error estimate if given."""
        self.process_noise = process_noise
        self.sensor_noise = sensor_noise
        if estimated_error is not None:
            self.estimated_error = estimated_error