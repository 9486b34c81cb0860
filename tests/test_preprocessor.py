"""
Unit tests for the sensor preprocessor.

Tests cover:
- Low-pass gravity separation
- Bias calibration
- Sample assembly
"""

import numpy as np
import pytest

from fusion_core.sensors import PreprocessorConfig, SensorPreprocessor
from fusion_core.sensors.preprocessor import STANDARD_GRAVITY


@pytest.fixture
def pre() -> SensorPreprocessor:
    return SensorPreprocessor()


class TestGravityFilter:

    def test_gravity_converges_with_alpha(self, pre):
        pre.on_accelerometer((0.0, 0.0, 10.0))
        np.testing.assert_allclose(pre.gravity, (0.0, 0.0, 8.0))

        pre.on_accelerometer((0.0, 0.0, 10.0))
        np.testing.assert_allclose(pre.gravity, (0.0, 0.0, 9.6))
        np.testing.assert_allclose(pre.linear_acceleration, (0.0, 0.0, 0.4), atol=1e-12)

    def test_custom_alpha(self):
        pre = SensorPreprocessor(PreprocessorConfig(gravity_alpha=0.5))
        pre.on_accelerometer((2.0, 0.0, 0.0))

        np.testing.assert_allclose(pre.gravity, (1.0, 0.0, 0.0))


class TestCalibration:

    def test_too_few_samples(self, pre):
        assert not pre.calibrate([(0.0, 0.0, 9.8)] * 3, [(0.0, 0.0, 0.0)] * 3)

        accel_bias, gyro_bias = pre.biases
        np.testing.assert_array_equal(accel_bias, np.zeros(3))
        np.testing.assert_array_equal(gyro_bias, np.zeros(3))

    def test_biases_removed(self, pre):
        accel = [(0.1, 0.2, STANDARD_GRAVITY + 0.1)] * 10
        gyro = [(0.01, -0.02, 0.03)] * 10

        assert pre.calibrate(accel, gyro)

        accel_bias, gyro_bias = pre.biases
        np.testing.assert_allclose(accel_bias, (0.1, 0.2, 0.1))
        np.testing.assert_allclose(gyro_bias, (0.01, -0.02, 0.03))

        pre.on_gyroscope((0.01, -0.02, 0.03))
        pre.on_accelerometer((0.1, 0.2, STANDARD_GRAVITY + 0.1))
        sample = pre.sample(0)

        np.testing.assert_allclose(sample.gyroscope, np.zeros(3), atol=1e-12)
        np.testing.assert_allclose(sample.accelerometer, (0.0, 0.0, STANDARD_GRAVITY), atol=1e-12)


class TestSample:

    def test_sample_snapshot(self, pre):
        pre.on_accelerometer((0.0, 0.0, 10.0))
        pre.on_gyroscope((0.1, 0.0, 0.0))
        pre.on_magnetic((0.0, 22.0, -40.0))

        sample = pre.sample(1234)

        assert sample.timestamp_ms == 1234
        np.testing.assert_allclose(sample.gravity, (0.0, 0.0, 8.0))
        np.testing.assert_allclose(sample.linear_acceleration, (0.0, 0.0, 2.0))
        np.testing.assert_allclose(sample.magnetic, (0.0, 22.0, -40.0))
        np.testing.assert_allclose(sample.gyroscope, (0.1, 0.0, 0.0))

    def test_sample_is_independent_copy(self, pre):
        pre.on_magnetic((1.0, 2.0, 3.0))
        sample = pre.sample(0)

        pre.on_magnetic((9.0, 9.0, 9.0))

        np.testing.assert_allclose(sample.magnetic, (1.0, 2.0, 3.0))
