"""Configuration type definitions and defaults for Phonical."""

from typing import TypedDict


class AudioConfig(TypedDict, total=False):
    """Audio output settings."""

    sample_rate: int  # Canonical playback rate in Hz
    channels: int  # Canonical channel count (2 = stereo)
    sample_width: int  # Bytes per sample (2 = int16)
    latency_ms: int  # Output block size in milliseconds
    device: str  # Output device name or index, "" for system default


class QueueConfig(TypedDict):
    """Playback queue settings."""

    capacity: int  # Pending sounds kept before new presses are dropped


class SoundsConfig(TypedDict, total=False):
    """Sound asset settings."""

    directory: str  # Folder holding <letter>.wav, "" for bundled sounds
    preload: bool  # Decode every clip at startup
    preload_workers: int  # Threads used for preloading, 0 = auto


class LoggingConfig(TypedDict, total=False):
    """Diagnostic logging settings."""

    verbose: bool
    file: str  # Optional rotating log file, "" to disable


class Config(TypedDict, total=False):
    """Full application configuration."""

    audio: AudioConfig
    queue: QueueConfig
    sounds: SoundsConfig
    logging: LoggingConfig


DEFAULT_CONFIG: Config = {
    "audio": {
        "sample_rate": 44100,
        "channels": 2,
        "sample_width": 2,
        "latency_ms": 16,  # ~1/60s buffer for low latency
        "device": "",
    },
    "queue": {
        "capacity": 100,
    },
    "sounds": {
        "directory": "",
        "preload": True,
        "preload_workers": 0,
    },
    "logging": {
        "verbose": False,
        "file": "",
    },
}
