"""Tests for settings validation."""

import importlib
import math
import warnings

import pytest
from pydantic import ValidationError

import py_erosion.config
from py_erosion.config import Settings


class TestSettings:
    """Test configuration loading and validation."""

    def test_defaults(self):
        s = Settings()
        assert (s.width, s.height, s.density) == (1280, 720, 2)
        assert s.precipitation_rate == 0.001
        assert s.workers is None

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("EROSION_WIDTH", "64")
        monkeypatch.setenv("EROSION_FLOW_RATE", "0.25")
        s = Settings()
        assert s.width == 64
        assert s.flow_rate == 0.25

    @pytest.mark.parametrize("rate", [0.0, 1.0, -0.1, 1.5])
    def test_precipitation_rate_open_interval(self, rate):
        with pytest.raises(ValidationError):
            Settings(precipitation_rate=rate)

    @pytest.mark.parametrize("field", ["flow_rate", "erosion_rate", "max_z", "precipitation_amount"])
    @pytest.mark.parametrize("value", [math.nan, math.inf])
    def test_non_finite_rejected(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})

    @pytest.mark.parametrize("overrides", [
        {"width": 0},
        {"density": -1},
        {"frame_skip": 0},
        {"frame_count": 0},
        {"workers": 0},
        {"render_step": 0.0},
        {"render_step": 5e-324},
        {"log_format": "xml"},
    ])
    def test_out_of_range_rejected(self, overrides):
        with pytest.raises(ValidationError):
            Settings(**overrides)


class TestSettingsLoading:
    """Test when and how settings are read."""

    def test_import_does_not_read_environment(self, monkeypatch):
        """An invalid environment value only fails when settings are built."""
        monkeypatch.setenv("EROSION_WIDTH", "0")

        module = importlib.reload(py_erosion.config)
        assert not hasattr(module, "settings")

        with pytest.raises(ValidationError):
            module.Settings()

    def test_explicit_values_override_environment(self, monkeypatch):
        monkeypatch.setenv("EROSION_WIDTH", "0")
        assert Settings(width=10).width == 10

    def test_no_deprecation_warnings(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            module = importlib.reload(py_erosion.config)
            module.Settings()

        assert not [w for w in caught if issubclass(w.category, DeprecationWarning)]
