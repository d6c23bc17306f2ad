from __future__ import annotations

import logging
import time
from typing import Any

from .config import default_config
from .cursor import EventCursor
from .jumps import classify_jump
from .log import dbg
from .models import (
    BeatCell,
    BeatPlayback,
    CueTimeline,
    Event,
    GradualTempoChange,
    GradualTempoMark,
    Jump,
    JumpMark,
    Pause,
    PauseMark,
    PlaybackMark,
    PlaybackStart,
    PlaybackStop,
    RehearsalMark,
    RehearsalMarkAt,
    TempoChange,
    TempoMark,
    Timecode,
    TimecodeMark,
    TimecodeStop,
)
from .playback import ClipSource, PlaybackTracker
from .scale import TimeScale
from .show import Cue

log = logging.getLogger(__name__)


def resolve_cue(
    cue: Cue,
    clips: ClipSource | None = None,
    config: dict[str, Any] | None = None,
) -> CueTimeline:
    """Resolve *cue* into drawable lanes in a single forward scan.

    For every beat, in order: place the beat, hand each event due at or
    before it to its lane (the playback tracker for starts and stops),
    slice the running clips against the beat, then advance the time
    head.  Nothing is cached between calls; resolve again after every
    edit.
    """
    cfg = {**default_config(), **(config or {})}
    scale = TimeScale.from_config(cfg)
    tracker = PlaybackTracker(
        clips,
        sample_rate=int(cfg["sample_rate"]),
        ticks_per_second=int(cfg["ticks_per_second"]),
        bucket_size=int(cfg["peak_bucket_size"]),
    )
    beats = cue.beats
    cursor = EventCursor(cue.events)
    timeline = CueTimeline()

    t0 = time.perf_counter()
    x = 0.0
    for idx, beat in enumerate(beats):
        width = scale.beat_width(beat.length)
        timeline.beats.append(BeatCell(
            index=idx,
            count=beat.count,
            bar_number=beat.bar_number,
            length=beat.length,
            x=x,
            width=width,
            time_samples=tracker.time_head,
        ))
        for event in cursor.take(idx):
            _place_event(timeline, event, idx, x, cue, scale, tracker)

        timeline.playback.append(BeatPlayback(
            beat_index=idx,
            slices=tracker.resolve(beat, width),
        ))
        tracker.advance(beat)
        x += width

    tracker.finish()
    timeline.total_width = x
    timeline.unresolved_events = cursor.remaining()
    if timeline.unresolved_events:
        dbg(f"{timeline.unresolved_events} events of cue {cue.name!r} "
            f"lie past its last beat")
    dbg(f"resolved cue {cue.name!r}: {len(beats)} beats, {len(cue.events)} events "
        f"in {(time.perf_counter() - t0) * 1000:.2f} ms")
    return timeline


def _place_event(
    timeline: CueTimeline,
    event: Event,
    idx: int,
    x: float,
    cue: Cue,
    scale: TimeScale,
    tracker: PlaybackTracker,
) -> None:
    d = event.description
    if d is None:
        return
    if isinstance(d, TempoChange):
        timeline.tempo_marks.append(TempoMark(idx, x, d.tempo))
    elif isinstance(d, GradualTempoChange):
        timeline.gradual_tempo_marks.append(GradualTempoMark(
            beat_index=idx,
            x=x,
            start_tempo=d.start_tempo,
            end_tempo=d.end_tempo,
            length=d.length,
            end_x=x + scale.span_width(cue.beats, idx, d.length),
        ))
    elif isinstance(d, RehearsalMark):
        timeline.rehearsal_marks.append(RehearsalMarkAt(idx, x, d.label))
    elif isinstance(d, Timecode):
        timeline.timecode_marks.append(TimecodeMark(idx, x, d.instant))
    elif isinstance(d, TimecodeStop):
        timeline.timecode_marks.append(TimecodeMark(idx, x, None))
    elif isinstance(d, Jump):
        timeline.jump_marks.append(JumpMark(
            beat_index=idx,
            x=x,
            symbol=classify_jump(d.requirement, d.when_jumped, d.when_passed),
            destination=d.destination,
            destination_x=scale.offset_of(d.destination, cue.beats),
        ))
    elif isinstance(d, Pause):
        timeline.pause_marks.append(PauseMark(idx, x, d.behaviour, d.destination))
    elif isinstance(d, PlaybackStart):
        tracker.start(d)
        timeline.playback_marks.append(PlaybackMark(idx, x, d.channel, True, d.clip))
    elif isinstance(d, PlaybackStop):
        tracker.stop(d.channel)
        timeline.playback_marks.append(PlaybackMark(idx, x, d.channel, False))
    else:
        log.warning("Ignoring unknown event description %r at beat %d", d, idx)
