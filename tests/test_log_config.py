"""Tests for logging setup."""

import pytest
import structlog

from py_erosion.log_config import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.mark.parametrize("log_format,renderer", [
    ("json", structlog.processors.JSONRenderer),
    ("plain", structlog.dev.ConsoleRenderer),
])
def test_renderer_selected(log_format, renderer):
    configure_logging("DEBUG", log_format)

    assert structlog.is_configured()
    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], renderer)
    assert processors[0] is structlog.stdlib.filter_by_level
