from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from .audio import is_audio_file, list_dir_sorted, read_samples
from .config import default_config
from .events import CLIP_LOAD, CLIP_LOADED, CLIP_SKIPPED, IMPORT_COMPLETE, EventBus
from .log import dbg
from .models import Clip
from .peaks import summarize_peaks

log = logging.getLogger(__name__)


@dataclass
class SkippedFile:
    path: str
    reason: str


@dataclass
class ImportReport:
    """Outcome of one import run."""
    media_dir: str
    loaded: list[tuple[int, int]] = field(default_factory=list)
    skipped: list[SkippedFile] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.skipped


def parse_channel_index(dirname: str) -> int | None:
    """Channel index from a channel folder name, e.g. ``"3"``."""
    try:
        value = int(dirname)
    except ValueError:
        return None
    return value if value >= 0 else None


def parse_clip_index(filename: str) -> int | None:
    """Clip index from a clip file name: the part before the first dot."""
    stem = filename.split(".", 1)[0]
    try:
        value = int(stem)
    except ValueError:
        return None
    return value if value >= 0 else None


def load_clip(
    filepath: str,
    channel_index: int,
    clip_index: int,
    bucket_size: int,
) -> Clip:
    """Decode one audio file and summarize it into a :class:`Clip`."""
    samples, samplerate = read_samples(filepath)
    return Clip(
        channel_index=channel_index,
        clip_index=clip_index,
        path=filepath,
        peak_buckets=summarize_peaks(samples, bucket_size),
        length=int(samples.size),
        samplerate=samplerate,
        bucket_size=bucket_size,
    )


class ClipRegistry:
    """Imported clips keyed by ``(channel_index, clip_index)``.

    An import builds a complete new generation off to the side and swaps
    it in under a lock, so readers see either the previous generation or
    the new one.  Lookups are by value; a ``Clip`` is never mutated after
    it is stored.
    """

    def __init__(self, clips: Mapping[tuple[int, int], Clip] | None = None):
        self._clips: dict[tuple[int, int], Clip] = dict(clips or {})
        self._lock = threading.Lock()
        self.generation = 0

    def get(self, channel_index: int, clip_index: int) -> Clip | None:
        with self._lock:
            return self._clips.get((channel_index, clip_index))

    def snapshot(self) -> dict[tuple[int, int], Clip]:
        with self._lock:
            return dict(self._clips)

    def keys(self) -> list[tuple[int, int]]:
        return sorted(self.snapshot())

    def add(self, clip: Clip) -> None:
        with self._lock:
            clips = dict(self._clips)
            clips[clip.key] = clip
            self._clips = clips

    def replace(self, clips: Mapping[tuple[int, int], Clip]) -> None:
        with self._lock:
            self._clips = dict(clips)
            self.generation += 1

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._clips

    def __len__(self) -> int:
        with self._lock:
            return len(self._clips)

    def __iter__(self) -> Iterator[Clip]:
        snap = self.snapshot()
        return iter(snap[k] for k in sorted(snap))

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_media(
        self,
        show_dir: str,
        config: dict[str, Any] | None = None,
        event_bus: EventBus | None = None,
    ) -> ImportReport:
        """Re-populate the registry from ``<show_dir>/<media_folder>``.

        Layout is one folder per channel, named by channel index, holding
        one audio file per clip, named by clip index.  Files with
        unparsable names, unknown extensions or undecodable content are
        skipped and listed in the returned report.  An unreadable media
        folder raises :class:`OSError` and leaves the registry untouched.
        """
        cfg = {**default_config(), **(config or {})}
        media_dir = os.path.join(show_dir, cfg["media_folder"])
        bucket_size = int(cfg["peak_bucket_size"])
        report = ImportReport(media_dir=media_dir)

        t0 = time.perf_counter()
        jobs = _discover_clip_files(media_dir, report)

        total = len(jobs)
        max_workers = cfg.get("import_workers") or min(os.cpu_count() or 4, 8)
        workers = min(max_workers, total) if total else 1
        loaded: dict[tuple[int, int], Clip] = {}

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                pool.submit(
                    _load_one_clip, path, ch, cl, bucket_size, idx, total, event_bus
                ): (path, ch, cl)
                for idx, (path, ch, cl) in enumerate(jobs)
            }
            for future in as_completed(futures):
                path, ch, cl = futures[future]
                clip, error = future.result()
                if clip is None:
                    report.skipped.append(SkippedFile(path, error or "unreadable"))
                    continue
                loaded[(ch, cl)] = clip

        report.loaded = sorted(loaded)
        report.skipped.sort(key=lambda s: s.path)
        self.replace(loaded)

        report.duration_ms = (time.perf_counter() - t0) * 1000
        dbg(f"imported {len(loaded)} clips, skipped {len(report.skipped)} "
            f"in {report.duration_ms:.1f} ms")
        if event_bus:
            event_bus.emit(IMPORT_COMPLETE, loaded=len(loaded),
                           skipped=len(report.skipped))
        return report


def _discover_clip_files(
    media_dir: str,
    report: ImportReport,
) -> list[tuple[str, int, int]]:
    """Walk the media folder and return ``(path, channel, clip)`` jobs."""
    jobs: list[tuple[str, int, int]] = []
    for channel_name in list_dir_sorted(media_dir):
        channel_dir = os.path.join(media_dir, channel_name)
        if not os.path.isdir(channel_dir):
            continue
        channel_index = parse_channel_index(channel_name)
        if channel_index is None:
            log.warning("Skipping media folder %s: not a channel number", channel_dir)
            report.skipped.append(SkippedFile(channel_dir, "not a channel number"))
            continue
        try:
            entries = list_dir_sorted(channel_dir)
        except OSError as e:
            log.warning("Skipping channel folder %s: %s", channel_dir, e)
            report.skipped.append(SkippedFile(channel_dir, str(e)))
            continue
        for filename in entries:
            filepath = os.path.join(channel_dir, filename)
            if not os.path.isfile(filepath):
                continue
            if not is_audio_file(filename):
                report.skipped.append(SkippedFile(filepath, "not an audio file"))
                continue
            clip_index = parse_clip_index(filename)
            if clip_index is None:
                log.warning("Skipping clip file %s: not a clip number", filepath)
                report.skipped.append(SkippedFile(filepath, "not a clip number"))
                continue
            jobs.append((filepath, channel_index, clip_index))
    return jobs


def _load_one_clip(
    filepath: str,
    channel_index: int,
    clip_index: int,
    bucket_size: int,
    idx: int,
    total: int,
    event_bus: EventBus | None,
) -> tuple[Clip | None, str | None]:
    """Load a single clip (runs on the import thread pool)."""
    if event_bus:
        event_bus.emit(CLIP_LOAD, path=filepath, index=idx, total=total)
    try:
        t0 = time.perf_counter()
        clip = load_clip(filepath, channel_index, clip_index, bucket_size)
        dbg(f"clip {channel_index}/{clip_index}: {clip.length} samples in "
            f"{(time.perf_counter() - t0) * 1000:.1f} ms")
    except Exception as e:
        log.warning("Skipping unreadable clip %s: %s", filepath, e)
        if event_bus:
            event_bus.emit(CLIP_SKIPPED, path=filepath, index=idx,
                           total=total, error=str(e))
        return None, str(e)
    if event_bus:
        event_bus.emit(CLIP_LOADED, path=filepath, index=idx, total=total,
                       channel=channel_index, clip=clip_index)
    return clip, None
