"""Audio format conversion to the canonical playback format."""

from __future__ import annotations

from dataclasses import dataclass
from math import gcd

import numpy as np
from scipy.signal import resample_poly

# Integer PCM dtypes by sample width in bytes
_SAMPLE_DTYPES: dict[int, type[np.integer]] = {
    2: np.int16,
    4: np.int32,
}


@dataclass(frozen=True)
class SoundFormat:
    """PCM format descriptor.

    Attributes:
        sample_rate: Frames per second in Hz.
        channels: Number of interleaved channels.
        sample_width: Bytes per sample (2 = int16, 4 = int32).
    """

    sample_rate: int
    channels: int
    sample_width: int

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.channels <= 0:
            raise ValueError(f"channels must be positive, got {self.channels}")
        if self.sample_width not in _SAMPLE_DTYPES:
            raise ValueError(
                f"Unsupported sample_width {self.sample_width}, "
                f"expected one of {sorted(_SAMPLE_DTYPES)}"
            )

    @property
    def dtype(self) -> np.dtype:
        """NumPy dtype for samples in this format."""
        return np.dtype(_SAMPLE_DTYPES[self.sample_width])

    def duration(self, frames: int) -> float:
        """Duration in seconds of the given number of frames."""
        return frames / self.sample_rate


# 44.1kHz stereo int16, the format the output stream is opened with
CANONICAL_FORMAT = SoundFormat(sample_rate=44100, channels=2, sample_width=2)


def _to_float(audio: np.ndarray) -> np.ndarray:
    """Convert PCM samples of any common dtype to float32 in [-1, 1]."""
    if audio.dtype == np.uint8:
        # 8-bit WAV is unsigned with a 128 midpoint
        return (audio.astype(np.float32) - 128.0) / 128.0
    if np.issubdtype(audio.dtype, np.integer):
        scale = float(np.iinfo(audio.dtype).max) + 1.0
        return audio.astype(np.float32) / scale
    if np.issubdtype(audio.dtype, np.floating):
        return audio.astype(np.float32)
    raise ValueError(f"Unsupported sample dtype: {audio.dtype}")


def _match_channels(audio: np.ndarray, channels: int) -> np.ndarray:
    """Reshape (frames, n) audio to (frames, channels).

    Mono is duplicated across channels; any other mismatch is downmixed
    to mono first.
    """
    source_channels = audio.shape[1]
    if source_channels == channels:
        return audio
    if source_channels != 1:
        audio = np.mean(audio, axis=1, keepdims=True)
    return np.repeat(audio, channels, axis=1)


def to_canonical(
    audio: np.ndarray,
    source_rate: int,
    target: SoundFormat = CANONICAL_FORMAT,
) -> np.ndarray:
    """Convert decoded audio to the given playback format.

    Args:
        audio: Decoded samples, 1D (mono) or 2D (frames, channels), any
            integer or float dtype.
        source_rate: Sample rate of the input audio in Hz.
        target: Format to convert to.

    Returns:
        C-contiguous array of shape (frames, target.channels) with
        target.dtype samples.

    Raises:
        ValueError: If the input shape, rate or dtype cannot be converted.
    """
    if source_rate <= 0:
        raise ValueError(f"Invalid source sample rate: {source_rate}")

    if audio.ndim == 1:
        audio = audio.reshape(-1, 1)
    elif audio.ndim != 2:
        raise ValueError(f"Audio must be 1D or 2D, got {audio.ndim}D")

    if audio.shape[0] == 0:
        return np.zeros((0, target.channels), dtype=target.dtype)

    samples = _match_channels(_to_float(audio), target.channels)

    # Resample using polyphase filtering
    if source_rate != target.sample_rate:
        g = gcd(target.sample_rate, source_rate)
        up = target.sample_rate // g
        down = source_rate // g
        samples = resample_poly(samples, up, down, axis=0)

    samples = np.clip(samples.astype(np.float64), -1.0, 1.0)
    peak = float(np.iinfo(target.dtype).max)
    return np.ascontiguousarray(np.round(samples * peak).astype(target.dtype))
