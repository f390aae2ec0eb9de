"""Tests for the sound library."""

from __future__ import annotations

import threading

import numpy as np
import pytest

from tests.helpers import make_tone, write_wav


class TestDecodeError:
    """Tests for DecodeError exception."""

    def test_error_carries_identifier_and_cause(self):
        """Test that the identifier and cause are kept."""
        from phonical.audio.library import DecodeError

        cause = FileNotFoundError("gone")
        error = DecodeError("a.wav", cause)

        assert error.identifier == "a.wav"
        assert error.cause is cause
        assert "a.wav" in str(error)
        assert "gone" in str(error)


class TestSoundLibraryGet:
    """Tests for SoundLibrary.get."""

    def test_get_returns_canonical_clip(self, library):
        """Test that a 22.05kHz mono WAV becomes 44.1kHz stereo int16."""
        from phonical.audio.format import CANONICAL_FORMAT

        clip = library.get("a.wav")

        assert clip.identifier == "a.wav"
        assert clip.format == CANONICAL_FORMAT
        assert clip.samples.dtype == np.int16
        assert clip.samples.shape[1] == 2
        assert clip.duration == pytest.approx(0.05, abs=0.001)

    def test_get_is_memoized(self, library):
        """Test that repeated calls return the same cached object."""
        first = library.get("b.wav")
        second = library.get("b.wav")

        assert first is second
        assert np.array_equal(first.samples, second.samples)
        assert library.is_cached("b.wav")
        assert len(library) == 1

    def test_cache_hit_does_no_io(self, library, mocker):
        """Test that a cached clip is returned without touching the file."""
        library.get("c.wav")
        decode = mocker.patch("phonical.audio.library.decode_file")

        library.get("c.wav")

        decode.assert_not_called()

    def test_samples_are_read_only(self, library):
        """Test that consumers cannot mutate cached audio."""
        clip = library.get("d.wav")

        with pytest.raises(ValueError):
            clip.samples[0, 0] = 0

    def test_missing_asset_raises(self, library):
        """Test that a missing file raises DecodeError."""
        from phonical.audio.library import DecodeError

        (library.sounds_dir / "e.wav").unlink()

        with pytest.raises(DecodeError) as exc_info:
            library.get("e.wav")

        assert exc_info.value.identifier == "e.wav"
        assert isinstance(exc_info.value.cause, FileNotFoundError)
        assert not library.is_cached("e.wav")

    def test_corrupt_asset_raises(self, library):
        """Test that garbage in a .wav file raises DecodeError."""
        from phonical.audio.library import DecodeError

        (library.sounds_dir / "f.wav").write_bytes(b"this is not a wav file at all")

        with pytest.raises(DecodeError):
            library.get("f.wav")

    def test_unsupported_extension_raises(self, library):
        """Test that unknown containers are rejected before reading."""
        from phonical.audio.library import DecodeError

        (library.sounds_dir / "g.aac").write_bytes(b"\x00" * 16)

        with pytest.raises(DecodeError, match="unsupported format"):
            library.get("g.aac")

    @pytest.mark.parametrize("identifier", ["", "../a.wav", "sub/a.wav"])
    def test_path_identifiers_rejected(self, library, identifier):
        """Test that identifiers cannot escape the sounds directory."""
        from phonical.audio.library import DecodeError

        with pytest.raises(DecodeError, match="invalid identifier"):
            library.get(identifier)

    def test_failed_decode_is_not_cached(self, library):
        """Test that fixing an asset makes it playable on the next call."""
        from phonical.audio.library import DecodeError

        path = library.sounds_dir / "h.wav"
        path.write_bytes(b"broken")
        with pytest.raises(DecodeError):
            library.get("h.wav")

        write_wav(path)

        assert library.get("h.wav").frames > 0

    @pytest.mark.parametrize("ext", [".flac", ".ogg", ".mp3"])
    def test_compressed_asset(self, tmp_path, ext):
        """Test that compressed assets decode through soundfile."""
        import soundfile as sf

        from phonical.audio.library import COMPRESSED_EXTENSIONS, SoundLibrary

        assert ext in COMPRESSED_EXTENSIONS
        if ext[1:].upper() not in sf.available_formats():
            pytest.skip(f"libsndfile cannot write {ext}")

        frames = int(44100 * 0.05)
        sf.write(tmp_path / f"a{ext}", make_tone(sample_rate=44100), 44100)

        clip = SoundLibrary(tmp_path).get(f"a{ext}")

        assert clip.samples.shape[1] == 2
        assert clip.samples.dtype == np.int16
        # lossy codecs pad the stream
        assert abs(clip.frames - frames) <= 2048
        assert np.abs(clip.samples).max() > 0

    def test_custom_target_format(self, sounds_dir):
        """Test that clips follow the library's target format."""
        from phonical.audio.format import SoundFormat
        from phonical.audio.library import SoundLibrary

        target = SoundFormat(sample_rate=22050, channels=1, sample_width=4)

        clip = SoundLibrary(sounds_dir, target).get("a.wav")

        assert clip.samples.dtype == np.int32
        assert clip.samples.shape[1] == 1
        assert clip.format == target


class TestSoundLibraryConcurrency:
    """Tests for concurrent cache population."""

    def test_concurrent_misses_decode_once(self, library, mocker):
        """Test that parallel first requests share a single decode."""
        import phonical.audio.library as library_module

        spy = mocker.spy(library_module, "decode_file")
        barrier = threading.Barrier(8)
        results = []
        results_lock = threading.Lock()

        def worker():
            barrier.wait()
            clip = library.get("a.wav")
            with results_lock:
                results.append(clip)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5.0)

        assert len(results) == 8
        assert all(clip is results[0] for clip in results)
        assert spy.call_count == 1

    def test_concurrent_misses_on_different_ids(self, library):
        """Test that different identifiers load independently."""
        identifiers = [f"{c}.wav" for c in "abcdefgh"]
        threads = [threading.Thread(target=library.get, args=(i,)) for i in identifiers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5.0)

        assert library.cached_identifiers() == identifiers


class TestPreloadAll:
    """Tests for SoundLibrary.preload_all."""

    def test_preload_caches_everything(self, library):
        """Test that every letter is cached after preload."""
        from phonical.dispatch import KeyEventDispatcher

        identifiers = KeyEventDispatcher().identifiers()

        failures = library.preload_all(identifiers, max_workers=4)

        assert failures == {}
        assert library.cached_identifiers() == identifiers

    def test_preload_tolerates_bad_assets(self, library):
        """Test that one bad clip does not stop the rest from loading."""
        from phonical.audio.library import DecodeError

        (library.sounds_dir / "m.wav").unlink()
        (library.sounds_dir / "q.wav").write_bytes(b"corrupt")

        failures = library.preload_all(["a.wav", "m.wav", "q.wav", "z.wav"])

        assert set(failures) == {"m.wav", "q.wav"}
        assert all(isinstance(e, DecodeError) for e in failures.values())
        assert library.cached_identifiers() == ["a.wav", "z.wav"]

    def test_preload_logs_failures(self, library, caplog):
        """Test that a failed preload is reported as a warning."""
        (library.sounds_dir / "m.wav").unlink()

        with caplog.at_level("WARNING", logger="phonical"):
            library.preload_all(["a.wav", "m.wav"])

        assert "m.wav" in caplog.text

    def test_preload_empty(self, library):
        """Test that preloading nothing is a no-op."""
        assert library.preload_all([]) == {}
        assert len(library) == 0
