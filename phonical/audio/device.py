"""Audio output device for synchronous clip playback."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

import sounddevice as sd

from phonical.audio.format import CANONICAL_FORMAT, SoundFormat

if TYPE_CHECKING:
    from phonical.audio.library import SoundClip

logger = logging.getLogger(__name__)


class DeviceInitError(Exception):
    """Exception raised when the audio output device cannot be opened."""

    pass


def parse_device(value: int | str | None) -> int | str | None:
    """Normalize a configured device selector.

    Args:
        value: Device index, name substring, numeric string, or ""/None
            for the system default.

    Returns:
        Index (int), name (str), or None for the default device.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value
    value = value.strip()
    if not value:
        return None
    if value.isdigit():
        return int(value)
    return value


class AudioDevice:
    """Single shared output sink for the process.

    Opens one sounddevice OutputStream in the playback format and writes
    clips to it one at a time. play() blocks until the whole clip has been
    handed to the device, so consecutive calls never overlap.

    The stream is opened once: explicitly with open(), or lazily by the
    first play(). Repeated open() calls are no-ops.
    """

    def __init__(
        self,
        format: SoundFormat = CANONICAL_FORMAT,
        device: int | str | None = None,
        latency_ms: int = 16,
    ) -> None:
        """Initialize the output device (does not open it).

        Args:
            format: Playback format; clips must already be in this format.
            device: Output device index or name substring. None uses the
                system default.
            latency_ms: Output block size in milliseconds.
        """
        self._format = format
        self._device = parse_device(device)
        self._blocksize = max(1, format.sample_rate * latency_ms // 1000)
        self._stream: sd.OutputStream | None = None
        self._lock = threading.Lock()

    @property
    def format(self) -> SoundFormat:
        """Format the stream is opened with."""
        return self._format

    @property
    def blocksize(self) -> int:
        """Frames per output block."""
        return self._blocksize

    @property
    def is_open(self) -> bool:
        """Check if the output stream is open."""
        with self._lock:
            return self._stream is not None

    def open(self) -> None:
        """Open the output stream. Safe to call more than once.

        Raises:
            DeviceInitError: If the stream cannot be opened or started.
        """
        with self._lock:
            if self._stream is not None:
                return

            try:
                stream = sd.OutputStream(
                    samplerate=self._format.sample_rate,
                    channels=self._format.channels,
                    dtype=self._format.dtype.name,
                    blocksize=self._blocksize,
                    device=self._device,
                )
                stream.start()
            except Exception as e:
                raise DeviceInitError(f"Failed to initialize audio output: {e}") from e

            self._stream = stream

        logger.info(
            "device: opened output (device=%s, rate=%d, channels=%d, blocksize=%d)",
            self._device if self._device is not None else "default",
            self._format.sample_rate,
            self._format.channels,
            self._blocksize,
        )

    def play(self, clip: SoundClip) -> None:
        """Play a clip to completion.

        Args:
            clip: Clip in this device's format.

        Raises:
            ValueError: If the clip's format differs from the stream's.
            DeviceInitError: If the stream has to be opened and cannot be.
        """
        if clip.format != self._format:
            raise ValueError(
                f"Clip '{clip.identifier}' format {clip.format} does not match "
                f"device format {self._format}"
            )

        self.open()
        stream = self._stream
        if stream is None:
            raise DeviceInitError("Audio output was closed")

        if clip.frames:
            stream.write(clip.samples)

    def close(self) -> None:
        """Stop and close the output stream."""
        with self._lock:
            stream = self._stream
            self._stream = None

        if stream is None:
            return

        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.debug("device: error while closing output: %s", e)
        logger.info("device: closed output")

    def __enter__(self) -> AudioDevice:
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


def list_output_devices() -> list[dict[str, Any]]:
    """List all available audio output devices.

    Returns:
        List of device info dictionaries with keys:
        - index: Device index
        - name: Device name
        - max_output_channels: Number of output channels
        - default_samplerate: Default sample rate
        - is_default: Whether this is the default output device
    """
    devices = []
    default_output = sd.default.device[1]

    for i, device in enumerate(sd.query_devices()):
        if device["max_output_channels"] > 0:
            devices.append({
                "index": i,
                "name": device["name"],
                "max_output_channels": device["max_output_channels"],
                "default_samplerate": device["default_samplerate"],
                "is_default": i == default_output,
            })

    return devices
