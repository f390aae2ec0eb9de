"""Phonical service object wiring keyboard input to phonics playback.

PhonicalApp owns the sound library, playback queue, output device and
playback engine. The keyboard listener (or any other producer) calls
handle_char() for each typed character; the engine plays the result on
its own thread.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from phonical.audio import (
    AudioDevice,
    DecodeError,
    PlaybackEngine,
    PlaybackQueue,
    SoundFormat,
    SoundLibrary,
)
from phonical.config import Config
from phonical.dispatch import KeyEventDispatcher

logger = logging.getLogger(__name__)


def default_sounds_dir() -> Path:
    """Get the directory of the sounds bundled with the package."""
    return Path(__file__).parent / "sounds"


def resolve_sounds_dir(config: Config, override: Path | str | None = None) -> Path:
    """Pick the sounds directory: explicit override, then config, then bundled."""
    if override:
        return Path(override)
    configured = config["sounds"].get("directory", "")
    if configured:
        return Path(configured).expanduser()
    return default_sounds_dir()


class PhonicalApp:
    """Explicitly constructed playback service.

    Lifecycle:
        app = PhonicalApp(config)
        app.startup()          # open device, preload, start engine
        app.handle_char("a")   # from the keyboard listener thread
        app.shutdown()         # stop engine, close device

    startup() raises DeviceInitError if no audio output is available;
    everything else (bad assets, full queue) is logged and tolerated.
    """

    def __init__(
        self,
        config: Config,
        sounds_dir: Path | str | None = None,
        device: AudioDevice | None = None,
    ) -> None:
        """Initialize the service (nothing is opened yet).

        Args:
            config: Application configuration.
            sounds_dir: Optional override of the configured sounds directory.
            device: Optional output device, mainly for tests.
        """
        audio = config["audio"]
        self._config = config
        self._format = SoundFormat(
            sample_rate=audio["sample_rate"],
            channels=audio["channels"],
            sample_width=audio["sample_width"],
        )

        self._dispatcher = KeyEventDispatcher()
        self._library = SoundLibrary(resolve_sounds_dir(config, sounds_dir), self._format)
        self._queue = PlaybackQueue(config["queue"]["capacity"])
        self._device = device or AudioDevice(
            self._format,
            device=audio.get("device"),
            latency_ms=audio.get("latency_ms", 16),
        )
        self._engine = PlaybackEngine(self._library, self._queue, self._device)

        self._lock = threading.Lock()
        self._started = False
        self._stopped = False

    @property
    def dispatcher(self) -> KeyEventDispatcher:
        return self._dispatcher

    @property
    def library(self) -> SoundLibrary:
        return self._library

    @property
    def queue(self) -> PlaybackQueue:
        return self._queue

    @property
    def device(self) -> AudioDevice:
        return self._device

    @property
    def engine(self) -> PlaybackEngine:
        return self._engine

    def preload(self) -> dict[str, DecodeError]:
        """Decode every letter's clip now.

        Returns:
            Failures keyed by identifier.
        """
        workers = self._config["sounds"].get("preload_workers", 0) or None
        return self._library.preload_all(self._dispatcher.identifiers(), max_workers=workers)

    def startup(self) -> None:
        """Open the output device, preload sounds and start playback.

        Raises:
            DeviceInitError: If the audio output cannot be opened.
        """
        with self._lock:
            if self._started:
                return
            self._started = True

        # Fatal if no output device is available
        self._device.open()

        if self._config["sounds"].get("preload", True):
            self.preload()

        self._engine.start()
        logger.info("app: started (sounds=%s)", self._library.sounds_dir)

    def handle_char(self, char: str) -> bool:
        """Queue the sound for a typed character.

        Never blocks; returns immediately even if the queue is full.

        Args:
            char: The typed character.

        Returns:
            True if a sound was queued.
        """
        identifier = self._dispatcher.dispatch(char)
        if identifier is None:
            return False

        logger.debug("app: key %r -> %s", char, identifier)
        return self._queue.try_enqueue(identifier)

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait until every queued sound has been played or skipped."""
        return self._engine.wait_idle(timeout)

    def shutdown(self, timeout: float | None = 2.0) -> None:
        """Stop playback and release the output device.

        A clip that is already playing is allowed to finish.

        Args:
            timeout: Maximum seconds to wait for the playback thread.
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True

        self._engine.stop(timeout)
        self._device.close()
        logger.info(
            "app: stopped (played=%d, skipped=%d, dropped=%d)",
            self._engine.played,
            self._engine.skipped,
            self._queue.dropped,
        )

    def __enter__(self) -> PhonicalApp:
        """Context manager entry."""
        self.startup()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.shutdown()
