"""CAN bus messaging for a vehicle network: identifiers, payload codecs, an
SJA1000 controller model, a SocketCAN transport, a Kalman filter and speed ramping."""

__version__ = "0.1.0"
__all__ = ["ids", "codec", "kalman", "ramping", "sja1000", "canbus"]