from __future__ import annotations

import json
import os
from datetime import datetime
from typing import Any

from .audio import format_duration
from .clips import ClipRegistry, ImportReport
from .models import CueTimeline

REPORT_SCHEMA_VERSION = "1.0"


def clip_rows(registry: ClipRegistry) -> list[dict[str, Any]]:
    """One row per registered clip, ordered by channel then clip."""
    rows = []
    for clip in registry:
        rows.append({
            "channel": clip.channel_index,
            "clip": clip.clip_index,
            "path": clip.path,
            "samples": int(clip.length),
            "samplerate": int(clip.samplerate),
            "duration": format_duration(clip.length, clip.samplerate),
            "buckets": int(clip.peak_buckets.size),
        })
    return rows


def timeline_to_dict(timeline: CueTimeline, *, include_buckets: bool = False) -> dict[str, Any]:
    """Plain-JSON view of a resolved timeline.

    Bucket values are left out unless *include_buckets* is set; a long
    cue easily carries hundreds of thousands of them.
    """
    def slice_dict(s) -> dict[str, Any]:
        d = {
            "channel": s.channel,
            "clip": s.clip,
            "sample_start": int(s.sample_start),
            "sample_count": int(s.sample_count),
            "bucket_start": int(s.bucket_start),
            "bucket_end": int(s.bucket_end),
            "missing": bool(s.missing),
        }
        if include_buckets:
            d["buckets"] = [round(float(v), 4) for v in s.buckets]
        return d

    return {
        "total_width": float(timeline.total_width),
        "unresolved_events": timeline.unresolved_events,
        "beats": [
            {
                "index": b.index,
                "bar": b.bar_number,
                "count": b.count,
                "length": b.length,
                "x": float(b.x),
                "width": float(b.width),
                "time_samples": int(b.time_samples),
                "channels": [s.channel for s in p.slices],
            }
            for b, p in zip(timeline.beats, timeline.playback)
        ],
        "tempo": [
            {"beat": m.beat_index, "x": m.x, "tempo": m.tempo}
            for m in timeline.tempo_marks
        ],
        "gradual_tempo": [
            {"beat": m.beat_index, "x": m.x, "start_tempo": m.start_tempo,
             "end_tempo": m.end_tempo, "length": m.length, "end_x": m.end_x}
            for m in timeline.gradual_tempo_marks
        ],
        "rehearsal": [
            {"beat": m.beat_index, "x": m.x, "label": m.label}
            for m in timeline.rehearsal_marks
        ],
        "timecode": [
            {"beat": m.beat_index, "x": m.x,
             "instant": str(m.instant) if m.instant is not None else None}
            for m in timeline.timecode_marks
        ],
        "jumps": [
            {"beat": m.beat_index, "x": m.x, "symbol": m.symbol.value,
             "destination": m.destination, "destination_x": m.destination_x}
            for m in timeline.jump_marks
        ],
        "pauses": [
            {"beat": m.beat_index, "x": m.x, "behaviour": m.behaviour.value,
             "destination": m.destination}
            for m in timeline.pause_marks
        ],
        "playback_marks": [
            {"beat": m.beat_index, "x": m.x, "channel": m.channel,
             "started": m.started, "clip": m.clip}
            for m in timeline.playback_marks
        ],
        "playback": [
            {"beat": p.beat_index, "slices": [slice_dict(s) for s in p.slices]}
            for p in timeline.playback
            if p.slices
        ],
    }


def save_json(
    output_path: str,
    timeline: CueTimeline,
    registry: ClipRegistry,
    config: dict[str, Any],
    import_report: ImportReport | None = None,
    *,
    cue_name: str = "",
    include_buckets: bool = False,
) -> None:
    """Write the resolved cue and the clip inventory for automation tools."""
    data = {
        "schema_version": REPORT_SCHEMA_VERSION,
        "generated": datetime.now().isoformat(),
        "show_directory": os.path.abspath(config.get("_show_dir", "")),
        "config": {
            "sample_rate": config.get("sample_rate"),
            "ticks_per_second": config.get("ticks_per_second"),
            "peak_bucket_size": config.get("peak_bucket_size"),
            "base_beat_width": config.get("base_beat_width"),
            "proportional_beat_length": config.get("proportional_beat_length"),
        },
        "clips": clip_rows(registry),
        "skipped": [
            {"path": s.path, "reason": s.reason}
            for s in (import_report.skipped if import_report else [])
        ],
        "cue": {
            "name": cue_name,
            **timeline_to_dict(timeline, include_buckets=include_buckets),
        },
    }
    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
