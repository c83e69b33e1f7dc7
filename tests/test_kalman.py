import pytest

from smvcan.kalman import Kalman


def test_zero_sensor_noise_tracks_measurement():
    kalman = Kalman(0.125, 0.0, 1023.0, 0.0)
    assert kalman.filtered_value(42.0) == 42.0
    assert kalman.filtered_value(-7.0) == -7.0


def test_estimate_lies_between_prior_and_measurement():
    kalman = Kalman(0.125, 32.0, 1023.0, 0.0)
    first = kalman.filtered_value(100.0)
    assert 0.0 < first < 100.0
    second = kalman.filtered_value(100.0)
    assert first < second < 100.0


def test_converges_on_constant_input():
    kalman = Kalman(0.125, 32.0, 1023.0, 0.0)
    for _ in range(500):
        result = kalman.filtered_value(50.0)
    assert result == pytest.approx(50.0, abs=1e-3)


def test_estimated_error_shrinks():
    kalman = Kalman(0.125, 32.0, 1023.0, 0.0)
    kalman.filtered_value(10.0)
    assert kalman.estimated_error < 1023.0
    assert 0.0 < kalman.gain < 1.0


def test_constant_at_initial_value_stays_put():
    kalman = Kalman(0.125, 32.0, 1023.0, 5.0)
    for _ in range(10):
        assert kalman.filtered_value(5.0) == 5.0


def test_set_parameters_three_values():
    kalman = Kalman(0.125, 32.0, 1023.0, 0.0)
    kalman.set_parameters(1.0, 2.0, 3.0)
    assert (kalman.process_noise, kalman.sensor_noise, kalman.estimated_error) == (1.0, 2.0, 3.0)


def test_set_parameters_keeps_error_when_omitted():
    kalman = Kalman(0.125, 32.0, 1023.0, 0.0)
    kalman.filtered_value(1.0)
    error = kalman.estimated_error
    kalman.set_parameters(0.5, 8.0)
    assert kalman.estimated_error == error
    assert kalman.process_noise == 0.5
    assert kalman.sensor_noise == 8.0