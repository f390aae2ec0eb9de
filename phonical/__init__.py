"""Phonical - system-wide phonics sounds for every letter you type."""

__version__ = "0.1.0"

from phonical.app import PhonicalApp  # noqa: E402
from phonical.audio import (  # noqa: E402
    AudioDevice,
    DecodeError,
    DeviceInitError,
    EngineState,
    PlaybackEngine,
    PlaybackQueue,
    SoundClip,
    SoundLibrary,
)
from phonical.dispatch import PHONICS_MAP, KeyEventDispatcher  # noqa: E402

__all__ = [
    "PhonicalApp",
    "AudioDevice",
    "DecodeError",
    "DeviceInitError",
    "EngineState",
    "PlaybackEngine",
    "PlaybackQueue",
    "SoundClip",
    "SoundLibrary",
    "PHONICS_MAP",
    "KeyEventDispatcher",
]
