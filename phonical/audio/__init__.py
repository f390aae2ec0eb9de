"""Sound decoding, caching, queueing and playback."""

from phonical.audio.device import AudioDevice, DeviceInitError, list_output_devices, parse_device
from phonical.audio.engine import EngineState, PlaybackEngine
from phonical.audio.format import CANONICAL_FORMAT, SoundFormat, to_canonical
from phonical.audio.library import DecodeError, SoundClip, SoundLibrary
from phonical.audio.playback_queue import DEFAULT_CAPACITY, PlaybackQueue

__all__ = [
    "AudioDevice",
    "DeviceInitError",
    "list_output_devices",
    "parse_device",
    "EngineState",
    "PlaybackEngine",
    "CANONICAL_FORMAT",
    "SoundFormat",
    "to_canonical",
    "DecodeError",
    "SoundClip",
    "SoundLibrary",
    "DEFAULT_CAPACITY",
    "PlaybackQueue",
]
