"""Playback engine: the single consumer of the playback queue.

The engine owns one background thread that takes identifiers off the
queue in order, resolves them through the sound library and plays each
clip to completion before taking the next. Because there is exactly one
consumer, clips never overlap no matter how fast keys are pressed.

State machine:
    IDLE -> READY (device opened by start())
    READY -> PLAYING -> READY (one clip)
    any -> STOPPED (stop(); terminal)

Shutdown lets a clip that is already playing finish; nothing is dequeued
after stop().
"""

from __future__ import annotations

import logging
import threading
from enum import Enum, auto
from typing import TYPE_CHECKING

from phonical.audio.library import DecodeError

if TYPE_CHECKING:
    from phonical.audio.device import AudioDevice
    from phonical.audio.library import SoundLibrary
    from phonical.audio.playback_queue import PlaybackQueue

logger = logging.getLogger(__name__)


class EngineState(Enum):
    """Playback engine states.

    States:
        IDLE: Output device not opened yet.
        READY: Device open, waiting for the next queued sound.
        PLAYING: A clip is streaming to the device.
        STOPPED: Shut down; no further dequeues.
    """

    IDLE = auto()
    READY = auto()
    PLAYING = auto()
    STOPPED = auto()


class PlaybackEngine:
    """Single-consumer playback loop.

    Example:
        >>> engine = PlaybackEngine(library, queue, device)
        >>> engine.start()
        >>> queue.try_enqueue("a.wav")
        >>> engine.wait_idle(timeout=2.0)
        >>> engine.stop()
    """

    def __init__(
        self,
        library: SoundLibrary,
        queue: PlaybackQueue,
        device: AudioDevice,
    ) -> None:
        """Initialize the engine (does not start it).

        Args:
            library: Source of decoded clips.
            queue: Queue of identifiers to consume.
            device: Output the clips are played on.
        """
        self._library = library
        self._queue = queue
        self._device = device

        self._state = EngineState.IDLE
        self._cond = threading.Condition()
        self._start_lock = threading.Lock()
        self._thread: threading.Thread | None = None

        self._played = 0
        self._skipped = 0

    @property
    def state(self) -> EngineState:
        """Get the current state."""
        with self._cond:
            return self._state

    @property
    def is_running(self) -> bool:
        """Check if the consumer thread is alive."""
        thread = self._thread
        return thread is not None and thread.is_alive()

    @property
    def played(self) -> int:
        """Number of clips played to completion."""
        with self._cond:
            return self._played

    @property
    def skipped(self) -> int:
        """Number of queued sounds skipped because they could not be played."""
        with self._cond:
            return self._skipped

    def start(self) -> None:
        """Open the output device and start the consumer thread.

        Calling start() on a running engine is a no-op. Concurrent calls
        start exactly one consumer thread.

        Raises:
            DeviceInitError: If the output device cannot be opened.
            RuntimeError: If the engine has already been stopped.
        """
        with self._start_lock:
            with self._cond:
                if self._state == EngineState.STOPPED:
                    raise RuntimeError("PlaybackEngine cannot be restarted after stop()")
                if self._thread is not None:
                    return

            self._device.open()

            with self._cond:
                # stop() may have run while the device was opening
                if self._state == EngineState.STOPPED:
                    return
                self._state = EngineState.READY
                self._thread = threading.Thread(
                    target=self._run,
                    name="phonical-playback",
                    daemon=True,
                )
                self._thread.start()

        logger.debug("engine: started")

    def _run(self) -> None:
        """Consumer loop: dequeue, resolve, play, repeat."""
        try:
            while True:
                identifier = self._queue.dequeue()
                if identifier is None:
                    break
                try:
                    self._play_one(identifier)
                finally:
                    self._queue.task_done()
        finally:
            with self._cond:
                self._state = EngineState.STOPPED
                self._cond.notify_all()
            logger.debug("engine: consumer exited")

    def _play_one(self, identifier: str) -> None:
        """Resolve and play a single identifier, skipping it on failure."""
        try:
            clip = self._library.get(identifier)
        except DecodeError as e:
            with self._cond:
                self._skipped += 1
            logger.debug("engine: skipping unplayable sound: %s", e)
            return

        with self._cond:
            if self._state == EngineState.STOPPED:
                return
            self._state = EngineState.PLAYING
            self._cond.notify_all()

        try:
            logger.debug("engine: playing %s (%.2fs)", identifier, clip.duration)
            self._device.play(clip)
        except Exception as e:
            with self._cond:
                self._skipped += 1
            logger.error("engine: playback of %s failed: %s", identifier, e)
        else:
            with self._cond:
                self._played += 1
        finally:
            with self._cond:
                if self._state == EngineState.PLAYING:
                    self._state = EngineState.READY
                self._cond.notify_all()

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait until every queued sound has been played or skipped.

        Args:
            timeout: Maximum seconds to wait. None waits indefinitely.

        Returns:
            True if the queue drained, False on timeout.
        """
        return self._queue.join(timeout)

    def stop(self, timeout: float | None = None) -> None:
        """Stop the engine.

        A clip that is already playing is allowed to finish. Pending
        sounds are discarded.

        Args:
            timeout: Maximum seconds to wait for the consumer thread.
        """
        with self._cond:
            previous = self._state
            self._state = EngineState.STOPPED
            self._cond.notify_all()
            thread = self._thread

        self._queue.close()

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("engine: consumer did not exit within %.1fs", timeout or 0.0)

        if previous != EngineState.STOPPED:
            logger.debug("engine: stopped (played=%d, skipped=%d)", self.played, self.skipped)
