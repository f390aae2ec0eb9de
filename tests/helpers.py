"""Shared test helper classes and utilities.

This module contains classes and utilities that need to be imported
directly in test files (as opposed to pytest fixtures which are
auto-injected).
"""

from __future__ import annotations

import string
import threading
import time
from pathlib import Path
from typing import Callable

import numpy as np
from scipy.io import wavfile

from phonical.audio.device import DeviceInitError
from phonical.audio.format import CANONICAL_FORMAT, SoundFormat


def make_tone(
    duration_s: float = 0.05,
    sample_rate: int = 22050,
    channels: int = 1,
    frequency: float = 440.0,
    dtype: type = np.int16,
) -> np.ndarray:
    """Generate a sine tone as PCM samples.

    Returns:
        Array of shape (frames,) for mono or (frames, channels) otherwise.
    """
    frames = int(sample_rate * duration_s)
    t = np.arange(frames, dtype=np.float64) / sample_rate
    wave = 0.5 * np.sin(2 * np.pi * frequency * t)
    if np.issubdtype(np.dtype(dtype), np.integer):
        wave = np.round(wave * np.iinfo(dtype).max)
    samples = wave.astype(dtype)
    if channels > 1:
        samples = np.column_stack([samples] * channels)
    return samples


def write_wav(path: Path, **tone_kwargs) -> Path:
    """Write a short tone WAV file.

    Returns:
        The path written.
    """
    sample_rate = tone_kwargs.get("sample_rate", 22050)
    wavfile.write(path, sample_rate, make_tone(**tone_kwargs))
    return path


def write_letter_sounds(directory: Path, letters: str = string.ascii_lowercase) -> Path:
    """Write <letter>.wav for every letter, each at a different pitch.

    Returns:
        The directory.
    """
    directory.mkdir(parents=True, exist_ok=True)
    for i, letter in enumerate(letters):
        write_wav(directory / f"{letter}.wav", frequency=220.0 + 20.0 * i)
    return directory


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.005) -> bool:
    """Poll until predicate() is true or the timeout expires.

    Returns:
        The final value of predicate().
    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class FakeAudioDevice:
    """In-memory stand-in for AudioDevice.

    Records the start and end of every play() so tests can check ordering
    and overlap. Set `gate` to an Event to hold play() until it is set.
    Like AudioDevice, open() is a no-op once the device is open.
    """

    def __init__(
        self,
        format: SoundFormat = CANONICAL_FORMAT,
        play_seconds: float = 0.0,
        fail_open: bool = False,
        fail_on: set[str] | None = None,
    ) -> None:
        self.format = format
        self.play_seconds = play_seconds
        self.fail_open = fail_open
        self.fail_on = fail_on or set()
        self.gate: threading.Event | None = None

        self.open_calls = 0
        self.close_calls = 0
        self.is_open = False
        self.events: list[tuple[str, str]] = []
        self.played: list[str] = []
        self._lock = threading.Lock()
        self._active = 0
        self.max_concurrent = 0

    def open(self) -> None:
        if self.is_open:
            return
        self.open_calls += 1
        if self.fail_open:
            raise DeviceInitError("Failed to initialize audio output: no device")
        self.is_open = True

    def play(self, clip) -> None:
        if not self.is_open:
            self.open()

        with self._lock:
            self._active += 1
            self.max_concurrent = max(self.max_concurrent, self._active)
            self.events.append(("start", clip.identifier))

        try:
            if clip.identifier in self.fail_on:
                raise RuntimeError(f"device error while playing {clip.identifier}")
            if self.gate is not None:
                self.gate.wait()
            if self.play_seconds:
                time.sleep(self.play_seconds)
            with self._lock:
                self.played.append(clip.identifier)
        finally:
            with self._lock:
                self._active -= 1
                self.events.append(("end", clip.identifier))

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False
