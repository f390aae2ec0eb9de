"""Sound library: lazy decoding and memoization of phonics clips.

Clips are decoded from files in a sounds directory on first request and
cached for the lifetime of the library. Decoding converts every clip to a
single playback format so the output stream never has to be reopened.

Thread Safety:
    Cache reads are plain dict lookups. A miss takes a per-identifier lock
    so two threads asking for the same uncached clip decode it once and
    both receive the same SoundClip object.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import numpy as np
import soundfile as sf
from scipy.io import wavfile

from phonical.audio.format import CANONICAL_FORMAT, SoundFormat, to_canonical

logger = logging.getLogger(__name__)

# Uncompressed containers read with scipy
WAV_EXTENSIONS = frozenset({".wav"})

# Compressed containers read with libsndfile
COMPRESSED_EXTENSIONS = frozenset({".mp3", ".flac", ".ogg"})

SUPPORTED_EXTENSIONS = WAV_EXTENSIONS | COMPRESSED_EXTENSIONS


class DecodeError(Exception):
    """Exception raised when a sound asset cannot be decoded.

    Covers missing files, corrupt data and unsupported encodings.
    """

    def __init__(self, identifier: str, cause: Exception | str) -> None:
        """Initialize the error.

        Args:
            identifier: The sound identifier that failed.
            cause: Underlying exception or description.
        """
        super().__init__(f"Failed to decode sound '{identifier}': {cause}")
        self.identifier = identifier
        self.cause = cause


@dataclass(frozen=True)
class SoundClip:
    """A decoded, ready-to-play audio buffer.

    Attributes:
        identifier: Stable key the clip is cached under (e.g. "a.wav").
        samples: Read-only array of shape (frames, channels).
        format: Format of samples.
    """

    identifier: str
    samples: np.ndarray
    format: SoundFormat

    @property
    def frames(self) -> int:
        """Number of frames in the clip."""
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        """Clip length in seconds."""
        return self.format.duration(self.frames)


def decode_file(path: Path) -> tuple[np.ndarray, int]:
    """Decode an audio file by extension.

    Args:
        path: File to read.

    Returns:
        Tuple of (samples, sample_rate). Samples keep the file's own dtype
        for WAV and are float32 for compressed formats.

    Raises:
        ValueError: If the extension is not supported or the data is corrupt.
        OSError: If the file cannot be read.
        RuntimeError: If libsndfile rejects the file.
    """
    ext = path.suffix.lower()
    if ext in WAV_EXTENSIONS:
        sample_rate, data = wavfile.read(path)
        return data, int(sample_rate)
    if ext in COMPRESSED_EXTENSIONS:
        data, sample_rate = sf.read(path, dtype="float32", always_2d=True)
        return data, int(sample_rate)
    raise ValueError(f"unsupported format: {path.name}")


class SoundLibrary:
    """Thread-safe cache of decoded sound clips.

    Entries are created on first request or by preload_all() and are never
    evicted. Failed decodes are not cached; the next request tries again.

    Example:
        >>> library = SoundLibrary(Path("sounds"))
        >>> clip = library.get("a.wav")
        >>> library.get("a.wav") is clip
        True
    """

    def __init__(
        self,
        sounds_dir: Path | str,
        target_format: SoundFormat = CANONICAL_FORMAT,
    ) -> None:
        """Initialize the library.

        Args:
            sounds_dir: Directory holding the sound assets.
            target_format: Format every clip is converted to.
        """
        self._sounds_dir = Path(sounds_dir)
        self._format = target_format
        self._cache: dict[str, SoundClip] = {}

        # Guards _cache writes and _decode_locks
        self._lock = threading.Lock()
        self._decode_locks: dict[str, threading.Lock] = {}

    @property
    def sounds_dir(self) -> Path:
        """Directory the assets are read from."""
        return self._sounds_dir

    @property
    def format(self) -> SoundFormat:
        """Format of every cached clip."""
        return self._format

    def __len__(self) -> int:
        return len(self._cache)

    def is_cached(self, identifier: str) -> bool:
        """Check whether a clip has already been decoded."""
        return identifier in self._cache

    def cached_identifiers(self) -> list[str]:
        """Get the identifiers currently in the cache, sorted."""
        with self._lock:
            return sorted(self._cache)

    def _decode_lock(self, identifier: str) -> threading.Lock:
        with self._lock:
            lock = self._decode_locks.get(identifier)
            if lock is None:
                lock = threading.Lock()
                self._decode_locks[identifier] = lock
            return lock

    def _decode(self, identifier: str) -> SoundClip:
        """Read and convert one asset.

        Raises:
            DecodeError: If the asset is missing, corrupt or unsupported.
        """
        # Identifiers are bare file names, never paths
        if not identifier or Path(identifier).name != identifier:
            raise DecodeError(identifier, "invalid identifier")

        path = self._sounds_dir / identifier
        if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            raise DecodeError(identifier, f"unsupported format: {path.suffix or '(none)'}")

        try:
            data, sample_rate = decode_file(path)
            samples = to_canonical(data, sample_rate, self._format)
        except (OSError, ValueError, RuntimeError) as e:
            raise DecodeError(identifier, e) from e

        samples.setflags(write=False)
        return SoundClip(identifier=identifier, samples=samples, format=self._format)

    def get(self, identifier: str) -> SoundClip:
        """Get a clip, decoding and caching it on first use.

        Args:
            identifier: Asset file name, e.g. "a.wav".

        Returns:
            The cached SoundClip. Repeated calls return the same object.

        Raises:
            DecodeError: If the asset cannot be decoded.
        """
        clip = self._cache.get(identifier)
        if clip is not None:
            return clip

        with self._decode_lock(identifier):
            # Another thread may have finished decoding while we waited
            clip = self._cache.get(identifier)
            if clip is not None:
                return clip

            clip = self._decode(identifier)
            with self._lock:
                self._cache[identifier] = clip

        logger.debug(
            "library: cached %s (%d frames, %.2fs)",
            identifier,
            clip.frames,
            clip.duration,
        )
        return clip

    def preload_all(
        self,
        identifiers: Iterable[str],
        max_workers: int | None = None,
    ) -> dict[str, DecodeError]:
        """Decode every identifier up front.

        One bad asset does not stop the others from loading.

        Args:
            identifiers: Identifiers to decode.
            max_workers: Decoder threads. None lets the executor choose.

        Returns:
            Failures keyed by identifier; empty if everything loaded.
        """
        identifiers = list(dict.fromkeys(identifiers))
        failures: dict[str, DecodeError] = {}
        if not identifiers:
            return failures

        logger.debug("library: preloading %d sounds from %s", len(identifiers), self._sounds_dir)

        with ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="phonical-preload",
        ) as pool:
            futures = {pool.submit(self.get, identifier): identifier for identifier in identifiers}
            for future in as_completed(futures):
                identifier = futures[future]
                try:
                    future.result()
                except DecodeError as e:
                    failures[identifier] = e
                    logger.debug("library: preload failed: %s", e)

        loaded = len(identifiers) - len(failures)
        if failures:
            logger.warning(
                "library: preloaded %d/%d sounds, failed: %s",
                loaded,
                len(identifiers),
                ", ".join(sorted(failures)),
            )
        else:
            logger.info("library: preloaded %d sounds", loaded)
        return failures
