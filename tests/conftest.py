"""Shared pytest fixtures for Phonical tests.

This module provides reusable fixtures for:
- Sound assets written to a temporary directory
- A fake audio output device (no sound hardware needed)
- Mocked sounddevice module
- Configuration loading
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from phonical.config import DEFAULT_CONFIG, clear_config_cache
from tests.helpers import FakeAudioDevice, write_letter_sounds


# ============================================================================
# Global State
# ============================================================================


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset the config cache and phonical logger between tests."""
    clear_config_cache()
    yield
    clear_config_cache()

    logger = logging.getLogger("phonical")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ============================================================================
# Sound Fixtures
# ============================================================================


@pytest.fixture
def sounds_dir(tmp_path) -> Path:
    """Create a directory with a.wav ... z.wav tones.

    Returns:
        Path to the sounds directory.
    """
    return write_letter_sounds(tmp_path / "sounds")


@pytest.fixture
def library(sounds_dir):
    """Create a SoundLibrary over the temporary sounds.

    Returns:
        SoundLibrary instance (nothing cached yet).
    """
    from phonical.audio.library import SoundLibrary

    return SoundLibrary(sounds_dir)


# ============================================================================
# Device Fixtures
# ============================================================================


@pytest.fixture
def fake_device() -> FakeAudioDevice:
    """Create an in-memory output device that records plays.

    Returns:
        FakeAudioDevice instance.
    """
    return FakeAudioDevice()


@pytest.fixture
def mock_sounddevice(mocker) -> MagicMock:
    """Mock sounddevice module to avoid opening real audio output.

    Returns:
        Mock sounddevice module.
    """
    mock_sd = mocker.patch("phonical.audio.device.sd")

    # Mock default device (input, output)
    mock_sd.default.device = (0, 1)

    mock_sd.query_devices.return_value = [
        {
            "name": "Mock Microphone",
            "max_input_channels": 2,
            "max_output_channels": 0,
            "default_samplerate": 48000.0,
        },
        {
            "name": "Mock Speakers",
            "max_input_channels": 0,
            "max_output_channels": 2,
            "default_samplerate": 44100.0,
        },
    ]

    # Mock OutputStream
    mock_stream = MagicMock()
    mock_sd.OutputStream.return_value = mock_stream

    return mock_sd


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def mock_config(sounds_dir) -> dict[str, Any]:
    """Create a test configuration dictionary.

    Returns:
        Configuration dict pointing at the temporary sounds.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["sounds"]["directory"] = str(sounds_dir)
    config["sounds"]["preload_workers"] = 4
    return config


@pytest.fixture
def mock_config_file(tmp_path) -> Path:
    """Create a temporary config.toml file.

    Returns:
        Path to temporary config file.
    """
    config_file = tmp_path / "config.toml"
    content = """
[audio]
sample_rate = 48000
device = "3"

[queue]
capacity = 10

[sounds]
preload = false

[logging]
verbose = true
"""
    config_file.write_text(content)
    return config_file


# ============================================================================
# App Fixtures
# ============================================================================


@pytest.fixture
def app(mock_config, fake_device):
    """Create a PhonicalApp wired to the fake device.

    Yields:
        PhonicalApp (not started). Shut down after the test.
    """
    from phonical.app import PhonicalApp

    instance = PhonicalApp(mock_config, device=fake_device)
    yield instance
    instance.shutdown(timeout=1.0)
