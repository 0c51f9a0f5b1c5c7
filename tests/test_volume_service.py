"""Unit tests for the volume estimation service and its configuration."""

import logging
from unittest.mock import patch

import numpy as np
import pytest
from pydantic import ValidationError

from calorie_estimator.core import configure_logging
from calorie_estimator.core.config import Settings, get_settings
from calorie_estimator.services.volume import (
    VolumeErrorCode,
    VolumeEstimate,
    VolumeEstimationService,
    get_volume_service,
)


class TestVolumeEstimationService:
    """Tests for VolumeEstimationService."""

    @pytest.fixture
    def service(self):
        """Create a service with default geometry and calibration."""
        return VolumeEstimationService()

    def test_estimate_from_arrays(self, service, full_mask, make_plate_depth):
        """Test a valid mask and depth map produce a volume."""
        estimate = service.estimate(full_mask, make_plate_depth(150))

        assert estimate.is_available
        assert estimate.volume_cm3 >= 1.0
        assert estimate.error_code is None

    def test_estimate_from_png_bytes(self, service, encode_png, full_mask, make_plate_depth):
        """Test encoded images give the same result as arrays."""
        from_arrays = service.estimate(full_mask, make_plate_depth(150))
        from_bytes = service.estimate(encode_png(full_mask), encode_png(make_plate_depth(150)))

        assert from_bytes.volume_cm3 == from_arrays.volume_cm3

    def test_empty_mask_unavailable(self, service, empty_mask, make_plate_depth):
        """Test an empty mask yields an unavailable estimate, not an exception."""
        estimate = service.estimate(empty_mask, make_plate_depth(150))

        assert not estimate.is_available
        assert estimate.volume_cm3 is None
        assert estimate.error_code == VolumeErrorCode.EMPTY_MASK

    def test_flat_surface_unavailable(self, service, full_mask):
        """Test a flat depth map yields NO_SURFACE."""
        estimate = service.estimate(full_mask, np.full((10, 10), 200, dtype=np.uint8))

        assert estimate.error_code == VolumeErrorCode.NO_SURFACE

    def test_decode_failure_unavailable(self, service, make_plate_depth):
        """Test an undecodable mask yields DECODE_FAILURE."""
        estimate = service.estimate(b"garbage", make_plate_depth(150))

        assert estimate.error_code == VolumeErrorCode.DECODE_FAILURE
        assert estimate.message

    def test_transparent_rgba_mask_is_empty(self, service, encode_png, make_plate_depth):
        """Test a fully transparent white RGBA mask counts as empty."""
        bgra = np.full((10, 10, 4), 255, dtype=np.uint8)
        bgra[:, :, 3] = 0

        estimate = service.estimate(encode_png(bgra), make_plate_depth(150))

        assert not estimate.is_available
        assert estimate.error_code == VolumeErrorCode.EMPTY_MASK

    def test_mismatched_depth_resolution(self, service, full_mask):
        """Test a low-resolution depth map is resampled before estimation."""
        depth = np.full((40, 40), 200, dtype=np.uint8)
        depth[10:30, 10:30] = 120

        estimate = service.estimate(full_mask, depth)

        assert estimate.is_available

    def test_from_settings(self, full_mask, make_plate_depth):
        """Test settings values reach the geometry and calibration."""
        settings = Settings(
            camera_fov_deg=60.0,
            subject_distance_mm=300.0,
            correction_factor=1.0,
            mask_threshold=200,
        )

        service = VolumeEstimationService.from_settings(settings)

        assert service.geometry.horizontal_fov_deg == 60.0
        assert service.geometry.subject_distance_mm == 300.0
        assert service.calibration.correction_factor == 1.0
        assert service.calibration.mask_threshold == 200

        # Mask at 150 is below the raised threshold
        mask = np.full((10, 10), 150, dtype=np.uint8)
        estimate = service.estimate(mask, make_plate_depth(150))
        assert estimate.error_code == VolumeErrorCode.EMPTY_MASK

    def test_get_volume_service_cached(self):
        """Test the service factory returns a single instance."""
        assert get_volume_service() is get_volume_service()


class TestVolumeEstimateModel:
    """Tests for the VolumeEstimate model."""

    def test_unavailable_factory(self):
        """Test unavailable estimates carry the code and message."""
        estimate = VolumeEstimate.unavailable(VolumeErrorCode.NO_SURFACE, "flat")

        assert estimate.volume_cm3 is None
        assert estimate.error_code == VolumeErrorCode.NO_SURFACE
        assert estimate.message == "flat"
        assert not estimate.is_available

    def test_negative_volume_rejected(self):
        """Test negative volumes are not valid estimates."""
        with pytest.raises(ValidationError):
            VolumeEstimate(volume_cm3=-1.0)


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        """Test default calibration values."""
        settings = Settings()

        assert settings.camera_fov_deg == 77.0
        assert settings.subject_distance_mm == 400.0
        assert settings.correction_factor == 0.8
        assert settings.min_volume_cm3 == 1.0
        assert settings.mask_threshold == 128
        assert settings.segmentation_timeout == 30.0

    def test_env_prefix(self, monkeypatch):
        """Test settings are read from prefixed environment variables."""
        monkeypatch.setenv("CALORIE_ESTIMATOR_SUBJECT_DISTANCE_MM", "300")
        monkeypatch.setenv("CALORIE_ESTIMATOR_LOG_LEVEL", "DEBUG")

        settings = get_settings()

        assert settings.subject_distance_mm == 300.0
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"subject_distance_mm": 0},
            {"camera_fov_deg": 180},
            {"correction_factor": -0.8},
            {"min_volume_cm3": -1.0},
            {"mask_threshold": 300},
            {"segmentation_timeout": 0},
        ],
    )
    def test_out_of_range_rejected(self, overrides):
        """Test calibration values outside their valid range fail at load time."""
        with pytest.raises(ValidationError):
            Settings(**overrides)

    def test_invalid_env_value_rejected(self, monkeypatch):
        """Test an invalid environment value fails when settings are loaded."""
        monkeypatch.setenv("CALORIE_ESTIMATOR_CORRECTION_FACTOR", "-0.8")

        with pytest.raises(ValidationError):
            get_settings()

    def test_zero_floor_allowed(self, full_mask, make_plate_depth):
        """Test a zero volume floor still yields a valid estimate."""
        service = VolumeEstimationService.from_settings(Settings(min_volume_cm3=0.0))

        estimate = service.estimate(full_mask, make_plate_depth(150))

        assert estimate.is_available
        assert estimate.volume_cm3 >= 0.0


class TestConfigureLogging:
    """Tests for logging setup."""

    def test_explicit_level(self):
        """Test an explicit level name is applied."""
        with patch("calorie_estimator.core.logging_config.logging.basicConfig") as mock_config:
            configure_logging("debug")

        assert mock_config.call_args.kwargs["level"] == logging.DEBUG

    def test_level_from_settings(self, monkeypatch):
        """Test the configured log level is used by default."""
        monkeypatch.setenv("CALORIE_ESTIMATOR_LOG_LEVEL", "WARNING")

        with patch("calorie_estimator.core.logging_config.logging.basicConfig") as mock_config:
            configure_logging()

        assert mock_config.call_args.kwargs["level"] == logging.WARNING
