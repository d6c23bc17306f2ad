"""
Tests for audio clip import.
"""

import logging
import os

import numpy as np
import pytest

from clickslib.clips import ClipRegistry, load_clip, parse_channel_index, parse_clip_index
from clickslib.config import default_config
from clickslib.events import EventBus


class TestNameParsing:

    @pytest.mark.parametrize("name, expected", [
        ("0", 0), ("12", 12), ("-1", None), ("vox", None), ("", None),
    ])
    def test_channel_index(self, name, expected):
        assert parse_channel_index(name) == expected

    @pytest.mark.parametrize("name, expected", [
        ("0.wav", 0), ("7.aiff", 7), ("3.take2.wav", 3), ("intro.wav", None), ("-2.wav", None),
    ])
    def test_clip_index(self, name, expected):
        assert parse_clip_index(name) == expected


class TestImportMedia:

    def test_imports_every_clip(self, show_dir):
        registry = ClipRegistry()
        report = registry.import_media(str(show_dir))
        assert report.ok
        assert report.loaded == [(0, 0), (0, 1), (2, 0)]
        assert registry.keys() == [(0, 0), (0, 1), (2, 0)]
        assert registry.generation == 1

        clip = registry.get(0, 0)
        assert clip.length == 4800
        assert clip.samplerate == 48000
        assert clip.peak_buckets.size == 19
        assert clip.peak_buckets.max() == pytest.approx(1.0)
        assert registry.get(0, 1).peak_buckets.size == 4

    def test_stereo_clip_is_mono_summary(self, show_dir):
        registry = ClipRegistry()
        registry.import_media(str(show_dir))
        clip = registry.get(2, 0)
        assert clip.length == 4800
        assert clip.peak_buckets.ndim == 1

    def test_bad_entries_are_skipped(self, show_dir, wav_writer, caplog):
        media = show_dir / "playback_media"
        wav_writer(media / "vox" / "0.wav", np.zeros(100))
        wav_writer(media / "0" / "intro.wav", np.zeros(100))
        (media / "0" / "notes.txt").write_text("cue notes")
        (media / "3").mkdir()
        (media / "3" / "0.wav").write_bytes(b"RIFF\x00\x00not really a wave file")

        registry = ClipRegistry()
        with caplog.at_level(logging.WARNING, logger="clickslib.clips"):
            report = registry.import_media(str(show_dir))

        assert report.loaded == [(0, 0), (0, 1), (2, 0)]
        assert not report.ok
        skipped = {os.path.relpath(s.path, str(media)) for s in report.skipped}
        assert skipped == {
            "vox",
            os.path.join("0", "intro.wav"),
            os.path.join("0", "notes.txt"),
            os.path.join("3", "0.wav"),
        }
        assert "Skipping unreadable clip" in caplog.text

    def test_missing_media_folder_raises(self, tmp_path):
        registry = ClipRegistry()
        with pytest.raises(OSError):
            registry.import_media(str(tmp_path))
        assert registry.generation == 0

    def test_reimport_replaces_generation(self, show_dir):
        registry = ClipRegistry()
        registry.import_media(str(show_dir))
        (show_dir / "playback_media" / "0" / "1.wav").unlink()
        registry.import_media(str(show_dir))
        assert registry.generation == 2
        assert (0, 1) not in registry
        assert len(registry) == 2

    def test_custom_media_folder_and_bucket_size(self, tmp_path, wav_writer):
        wav_writer(tmp_path / "audio" / "1" / "4.wav", np.full(1000, 0.25))
        config = {**default_config(), "media_folder": "audio", "peak_bucket_size": 100,
                  "import_workers": 1}
        registry = ClipRegistry()
        registry.import_media(str(tmp_path), config)
        clip = registry.get(1, 4)
        assert clip.bucket_size == 100
        assert clip.peak_buckets.size == 10

    def test_progress_events(self, show_dir):
        bus = EventBus()
        seen = []
        bus.subscribe("clip.loaded", lambda **d: seen.append(("loaded", d["total"])))
        bus.subscribe("import.complete", lambda **d: seen.append(("done", d["loaded"])))
        ClipRegistry().import_media(str(show_dir), event_bus=bus)
        assert seen.count(("loaded", 3)) == 3
        assert seen[-1] == ("done", 3)


class TestClipRegistry:

    def test_iteration_is_sorted(self, clip_factory):
        registry = ClipRegistry()
        for key in [(2, 1), (0, 5), (0, 1)]:
            registry.add(clip_factory(*key, np.ones(10)))
        assert [c.key for c in registry] == [(0, 1), (0, 5), (2, 1)]
        assert registry.generation == 0

    def test_missing_lookup(self):
        assert ClipRegistry().get(0, 0) is None

    def test_snapshot_is_a_copy(self, clip_factory):
        registry = ClipRegistry({(0, 0): clip_factory(0, 0, np.ones(10))})
        snap = registry.snapshot()
        registry.replace({})
        assert (0, 0) in snap
        assert len(registry) == 0


def test_load_clip_reads_16_bit(tmp_path, wav_writer):
    path = wav_writer(tmp_path / "0.wav", np.full(512, 0.5))
    clip = load_clip(str(path), 0, 0, 256)
    assert clip.length == 512
    assert clip.peak_buckets.tolist() == pytest.approx([1.0, 1.0])
