from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

import numpy as np

TICKS_PER_MINUTE = 60_000_000
DEFAULT_BEAT_LENGTH = 500_000  # one beat at 120 BPM


class JumpRequirement(Enum):
    NONE = "none"
    JUMP_MODE_ON = "jump_mode_on"
    JUMP_MODE_OFF = "jump_mode_off"


class JumpModeChange(Enum):
    NONE = "none"
    SET_ON = "set_on"
    SET_OFF = "set_off"
    TOGGLE = "toggle"


class PauseBehaviour(Enum):
    HOLD = "hold"
    RESTART_BEAT = "restart_beat"
    RESTART_CUE = "restart_cue"
    NEXT_CUE = "next_cue"
    JUMP = "jump"


class JumpSymbol(Enum):
    """Marker shapes for the jump lane."""
    VOLTA = "volta"
    REPEAT_ONCE = "repeat_once"
    REPEAT = "repeat"
    STEP_OUT = "step_out"
    STEP_INTO = "step_into"
    PAUSE = "pause"


# ---------------------------------------------------------------------------
# Beats
# ---------------------------------------------------------------------------

@dataclass
class Beat:
    """One beat of a cue.

    Attributes:
        count:      1-based position within its bar.
        bar_number: Bar the beat belongs to; 0 marks count-in bars.
        length:     Duration in ticks (microseconds).
    """
    count: int = 1
    bar_number: int = 1
    length: int = DEFAULT_BEAT_LENGTH

    def is_downbeat(self) -> bool:
        return self.count == 1

    def is_count_in(self) -> bool:
        return self.bar_number == 0

    def tempo(self) -> int:
        """Tempo in BPM implied by the beat length."""
        if self.length <= 0:
            return 0
        return round(TICKS_PER_MINUTE / self.length)


# ---------------------------------------------------------------------------
# Event descriptions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimecodeInstant:
    frame_rate: int = 25
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    frames: int = 0

    def __str__(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}:{self.seconds:02d}:{self.frames:02d}"


@dataclass(frozen=True)
class TempoChange:
    tempo: int


@dataclass(frozen=True)
class GradualTempoChange:
    start_tempo: int
    end_tempo: int
    length: int  # in beats


@dataclass(frozen=True)
class RehearsalMark:
    label: str


@dataclass(frozen=True)
class Timecode:
    instant: TimecodeInstant


@dataclass(frozen=True)
class TimecodeStop:
    pass


@dataclass(frozen=True)
class Jump:
    destination: int
    requirement: JumpRequirement = JumpRequirement.NONE
    when_jumped: JumpModeChange = JumpModeChange.NONE
    when_passed: JumpModeChange = JumpModeChange.NONE


@dataclass(frozen=True)
class PlaybackStart:
    channel: int
    clip: int
    sample: int = 0


@dataclass(frozen=True)
class PlaybackStop:
    channel: int


@dataclass(frozen=True)
class Pause:
    behaviour: PauseBehaviour = PauseBehaviour.HOLD
    destination: int | None = None  # only used by PauseBehaviour.JUMP


EventDescription = Union[
    TempoChange,
    GradualTempoChange,
    RehearsalMark,
    Timecode,
    TimecodeStop,
    Jump,
    PlaybackStart,
    PlaybackStop,
    Pause,
]


@dataclass
class Event:
    """A sparse annotation attached to the beat at index ``location``.

    ``description`` may be None for an empty event slot; such events are
    consumed by the resolver and otherwise ignored.
    """
    location: int
    description: EventDescription | None = None


# ---------------------------------------------------------------------------
# Clips
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Clip:
    """Waveform summary of one imported audio file."""
    channel_index: int
    clip_index: int
    path: str
    peak_buckets: np.ndarray = field(repr=False)
    length: int
    samplerate: int
    bucket_size: int

    @property
    def key(self) -> tuple[int, int]:
        return (self.channel_index, self.clip_index)


@dataclass
class RunningClip:
    """A clip considered to be sounding while the resolver scans forward."""
    channel_index: int
    clip_index: int
    start_sample_offset: int
    cue_sample_offset_at_start: int


# ---------------------------------------------------------------------------
# Resolution results
# ---------------------------------------------------------------------------

@dataclass
class BeatCell:
    index: int
    count: int
    bar_number: int
    length: int
    x: float
    width: float
    time_samples: int

    @property
    def is_downbeat(self) -> bool:
        return self.count == 1

    @property
    def is_count_in(self) -> bool:
        return self.bar_number == 0


@dataclass
class TempoMark:
    beat_index: int
    x: float
    tempo: int


@dataclass
class GradualTempoMark:
    beat_index: int
    x: float
    start_tempo: int
    end_tempo: int
    length: int
    end_x: float


@dataclass
class RehearsalMarkAt:
    beat_index: int
    x: float
    label: str


@dataclass
class TimecodeMark:
    beat_index: int
    x: float
    instant: TimecodeInstant | None  # None for a timecode stop


@dataclass
class JumpMark:
    beat_index: int
    x: float
    symbol: JumpSymbol
    destination: int
    destination_x: float


@dataclass
class PauseMark:
    beat_index: int
    x: float
    behaviour: PauseBehaviour
    destination: int | None = None


@dataclass
class PlaybackMark:
    """Start or stop boundary drawn at the beat where the event fires."""
    beat_index: int
    x: float
    channel: int
    started: bool
    clip: int | None = None


@dataclass(eq=False)
class ChannelSlice:
    """The part of one running clip that falls inside one beat.

    ``buckets`` holds one summarized value per peak bucket of the beat's
    sample span.  Buckets past the end of the clip, or every bucket of a
    clip that is not registered (``missing``), are zero.
    """
    channel: int
    clip: int
    sample_start: int
    sample_count: int
    bucket_start: int
    bucket_end: int
    buckets: np.ndarray = field(repr=False)
    width: float
    missing: bool = False


@dataclass
class BeatPlayback:
    beat_index: int
    slices: list[ChannelSlice] = field(default_factory=list)

    def channels(self) -> list[int]:
        return [s.channel for s in self.slices]


@dataclass
class CueTimeline:
    """Everything a presentation layer needs to draw one cue."""
    beats: list[BeatCell] = field(default_factory=list)
    tempo_marks: list[TempoMark] = field(default_factory=list)
    gradual_tempo_marks: list[GradualTempoMark] = field(default_factory=list)
    rehearsal_marks: list[RehearsalMarkAt] = field(default_factory=list)
    timecode_marks: list[TimecodeMark] = field(default_factory=list)
    jump_marks: list[JumpMark] = field(default_factory=list)
    pause_marks: list[PauseMark] = field(default_factory=list)
    playback_marks: list[PlaybackMark] = field(default_factory=list)
    playback: list[BeatPlayback] = field(default_factory=list)
    total_width: float = 0.0
    unresolved_events: int = 0
