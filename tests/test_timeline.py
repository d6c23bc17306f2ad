"""
Tests for cue resolution into timeline lanes.
"""

import numpy as np
import pytest

from clickslib.clips import ClipRegistry
from clickslib.config import default_config
from clickslib.models import (
    Beat,
    Event,
    GradualTempoChange,
    Jump,
    JumpRequirement,
    JumpSymbol,
    Pause,
    PauseBehaviour,
    PlaybackStart,
    PlaybackStop,
    RehearsalMark,
    TempoChange,
    Timecode,
    TimecodeInstant,
    TimecodeStop,
)
from clickslib.show import Cue
from clickslib.timeline import resolve_cue


class TestResolveCue:

    @pytest.fixture
    def cue(self, four_four):
        return Cue(name="Overture", beats=four_four, events=[
            Event(6, Jump(destination=2, requirement=JumpRequirement.JUMP_MODE_ON)),
            Event(0, TempoChange(120)),
            Event(4, RehearsalMark("A")),
            Event(1, GradualTempoChange(120, 90, 3)),
            Event(0, Timecode(TimecodeInstant(25, 1, 0, 0, 0))),
            Event(7, TimecodeStop()),
            Event(5, Pause(PauseBehaviour.JUMP, destination=0)),
            Event(2, PlaybackStart(channel=1, clip=0)),
            Event(5, PlaybackStop(channel=1)),
            Event(3, None),
        ])

    def test_beats_laid_out_left_to_right(self, cue):
        timeline = resolve_cue(cue)
        assert [b.index for b in timeline.beats] == list(range(8))
        assert [b.x for b in timeline.beats] == [10.0 * i for i in range(8)]
        assert timeline.total_width == 80.0
        assert timeline.beats[0].is_downbeat
        assert timeline.beats[4].bar_number == 2
        assert [b.time_samples for b in timeline.beats[:3]] == [0, 24000, 48000]

    def test_marker_lanes(self, cue):
        timeline = resolve_cue(cue)
        assert [(m.beat_index, m.tempo) for m in timeline.tempo_marks] == [(0, 120)]
        assert [(m.beat_index, m.label, m.x) for m in timeline.rehearsal_marks] == [(4, "A", 40.0)]
        assert [m.instant for m in timeline.timecode_marks] == [
            TimecodeInstant(25, 1, 0, 0, 0), None,
        ]
        assert timeline.pause_marks[0].behaviour == PauseBehaviour.JUMP
        assert timeline.pause_marks[0].destination == 0

    def test_gradual_tempo_spans_its_beats(self, cue):
        mark = resolve_cue(cue).gradual_tempo_marks[0]
        assert mark.x == 10.0
        assert mark.end_x == 40.0

    def test_jump_destination_offset(self, cue):
        jump = resolve_cue(cue).jump_marks[0]
        assert jump.symbol == JumpSymbol.REPEAT
        assert jump.x == 60.0
        assert jump.destination_x == 20.0

    def test_jump_past_the_end(self, four_four):
        cue = Cue(beats=four_four, events=[Event(1, Jump(destination=10))])
        jump = resolve_cue(cue).jump_marks[0]
        assert jump.destination_x == 100.0

    def test_playback_lane(self, cue):
        timeline = resolve_cue(cue)
        channels = [p.channels() for p in timeline.playback]
        assert channels == [[], [], [1], [1], [1], [], [], []]
        marks = [(m.beat_index, m.started) for m in timeline.playback_marks]
        assert marks == [(2, True), (5, False)]
        assert all(s.missing for p in timeline.playback for s in p.slices)

    def test_playback_reads_registered_clip(self, four_four, clip_factory):
        samples = np.concatenate([np.zeros(24000), np.full(24000, 0.5)])
        registry = ClipRegistry({(0, 3): clip_factory(0, 3, samples)})
        cue = Cue(beats=four_four, events=[Event(1, PlaybackStart(channel=0, clip=3))])
        timeline = resolve_cue(cue, registry)

        first = timeline.playback[1].slices[0]
        second = timeline.playback[2].slices[0]
        assert not first.missing
        assert (first.bucket_start, first.bucket_end) == (0, 93)
        assert not first.buckets.any()
        assert second.buckets.max() == pytest.approx(1.0)
        tail = timeline.playback[4].slices[0]
        assert tail.bucket_start >= registry.get(0, 3).peak_buckets.size
        assert not tail.buckets.any()

    def test_proportional_widths(self):
        beats = [Beat(length=500_000), Beat(length=1_000_000), Beat(length=250_000)]
        config = {**default_config(), "proportional_beat_length": True}
        timeline = resolve_cue(Cue(beats=beats), config=config)
        assert [b.width for b in timeline.beats] == [10.0, 20.0, 5.0]
        assert timeline.total_width == 35.0

    def test_events_past_last_beat_are_unresolved(self, four_four):
        cue = Cue(beats=four_four, events=[
            Event(2, RehearsalMark("B")), Event(8, RehearsalMark("C")), Event(30, TempoChange(60)),
        ])
        timeline = resolve_cue(cue)
        assert [m.label for m in timeline.rehearsal_marks] == ["B"]
        assert timeline.unresolved_events == 2

    def test_empty_cue(self):
        timeline = resolve_cue(Cue())
        assert timeline.beats == []
        assert timeline.total_width == 0.0
        assert timeline.unresolved_events == 0

    def test_resolution_is_repeatable(self, cue):
        a = resolve_cue(cue)
        b = resolve_cue(cue)
        assert [m.x for m in a.jump_marks] == [m.x for m in b.jump_marks]
        assert [p.channels() for p in a.playback] == [p.channels() for p in b.playback]
