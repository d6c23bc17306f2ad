"""Shows, cues and their JSON interchange format.

Structural edits (:meth:`Cue.insert_beat`, :meth:`Cue.remove_beat`) keep
event locations pointing at the same beats but never renumber.  Call
:meth:`Cue.reorder_numbers` and :meth:`Cue.recalculate_tempo_changes`
as separate steps once the edit is done.  The timeline resolver only
reads the results.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any

from .config import ClicksError
from .cursor import EventCursor
from .models import (
    TICKS_PER_MINUTE,
    Beat,
    Event,
    EventDescription,
    GradualTempoChange,
    Jump,
    JumpModeChange,
    JumpRequirement,
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

SHOW_SCHEMA_VERSION = "1.0"
SHOW_FILENAME = "show.json"


class ShowFormatError(ClicksError):
    """Raised when a show file cannot be parsed."""


@dataclass
class Cue:
    name: str = ""
    beats: list[Beat] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)

    def get_beat(self, index: int) -> Beat | None:
        if 0 <= index < len(self.beats):
            return self.beats[index]
        return None

    def bar_length(self, bar_number: int) -> int:
        return sum(1 for b in self.beats if b.bar_number == bar_number)

    def events_at(self, index: int) -> list[Event]:
        return [e for e in self.events if e.location == index]

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    def insert_beat(self, index: int, beat: Beat) -> None:
        """Insert *beat* before *index*; later events move with their beats."""
        index = max(0, min(index, len(self.beats)))
        self.beats.insert(index, beat)
        for event in self.events:
            if event.location >= index:
                event.location += 1
            event.description = _shift_destination(event.description, index, +1)

    def remove_beat(self, index: int) -> Beat:
        """Remove the beat at *index* together with the events attached to it."""
        beat = self.beats.pop(index)
        kept = []
        for event in self.events:
            if event.location == index:
                continue
            if event.location > index:
                event.location -= 1
            event.description = _shift_destination(event.description, index, -1)
            kept.append(event)
        self.events = kept
        return beat

    # ------------------------------------------------------------------
    # Renumbering
    # ------------------------------------------------------------------

    def reorder_numbers(self) -> None:
        """Renumber counts and bars from the downbeat layout.

        A bar starts at the first beat and at every beat with count 1.
        Leading bars numbered 0 stay count-in bars; every other bar is
        numbered from 1 upwards.  Counts restart at 1 in each bar.
        """
        next_bar = 1
        counting_in = True
        bar = 0
        count = 0
        for i, beat in enumerate(self.beats):
            if i == 0 or beat.count == 1:
                counting_in = counting_in and beat.bar_number == 0
                if counting_in:
                    bar = 0
                else:
                    bar = next_bar
                    next_bar += 1
                count = 0
            count += 1
            beat.count = count
            beat.bar_number = bar

    def recalculate_tempo_changes(self, default_tempo: int = 120) -> None:
        """Rewrite beat lengths from the cue's tempo events.

        A tempo change holds from its beat onwards.  A gradual change
        moves linearly from ``start_tempo`` to ``end_tempo`` over
        ``length`` beats and then holds ``end_tempo``.
        """
        tempo = float(default_tempo)
        ramp: tuple[int, float, float, int] | None = None
        cursor = EventCursor(self.events)
        for i, beat in enumerate(self.beats):
            for event in cursor.take(i):
                d = event.description
                if isinstance(d, TempoChange):
                    tempo = float(d.tempo)
                    ramp = None
                elif isinstance(d, GradualTempoChange):
                    ramp = (i, float(d.start_tempo), float(d.end_tempo), max(1, d.length))
            current = tempo
            if ramp is not None:
                start_idx, start, end, length = ramp
                step = i - start_idx
                if step < length:
                    current = start + (end - start) * step / length
                else:
                    tempo = current = end
                    ramp = None
            if current > 0:
                beat.length = round(TICKS_PER_MINUTE / current)


@dataclass
class Show:
    name: str = ""
    cues: list[Cue] = field(default_factory=list)


def _shift_destination(
    description: EventDescription | None, index: int, delta: int,
) -> EventDescription | None:
    if isinstance(description, Jump) and description.destination >= index:
        return replace(description, destination=max(0, description.destination + delta))
    if (isinstance(description, Pause) and description.destination is not None
            and description.destination >= index):
        return replace(description, destination=max(0, description.destination + delta))
    return description


# ---------------------------------------------------------------------------
# JSON interchange
# ---------------------------------------------------------------------------

_EVENT_TYPES: dict[str, type] = {
    "tempo_change": TempoChange,
    "gradual_tempo_change": GradualTempoChange,
    "rehearsal_mark": RehearsalMark,
    "timecode": Timecode,
    "timecode_stop": TimecodeStop,
    "jump": Jump,
    "playback_start": PlaybackStart,
    "playback_stop": PlaybackStop,
    "pause": Pause,
}
_TYPE_NAMES = {cls: name for name, cls in _EVENT_TYPES.items()}

_ENUM_FIELDS: dict[str, type[Enum]] = {
    "requirement": JumpRequirement,
    "when_jumped": JumpModeChange,
    "when_passed": JumpModeChange,
    "behaviour": PauseBehaviour,
}


def description_to_dict(description: EventDescription) -> dict[str, Any]:
    out: dict[str, Any] = {"type": _TYPE_NAMES[type(description)]}
    for f in fields(description):
        value = getattr(description, f.name)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, TimecodeInstant):
            value = asdict(value)
        out[f.name] = value
    return out


def description_from_dict(data: dict[str, Any]) -> EventDescription:
    kind = data.get("type")
    cls = _EVENT_TYPES.get(kind)
    if cls is None:
        raise ShowFormatError(f"Unknown event type: {kind!r}")
    kwargs: dict[str, Any] = {}
    try:
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name in _ENUM_FIELDS:
                value = _ENUM_FIELDS[f.name](value)
            elif f.name == "instant":
                value = TimecodeInstant(**value)
            kwargs[f.name] = value
        return cls(**kwargs)
    except (TypeError, ValueError) as e:
        raise ShowFormatError(f"Invalid {kind} event: {e}")


def cue_to_dict(cue: Cue) -> dict[str, Any]:
    return {
        "name": cue.name,
        "beats": [asdict(b) for b in cue.beats],
        "events": [
            {
                "location": e.location,
                "description": (
                    description_to_dict(e.description)
                    if e.description is not None else None
                ),
            }
            for e in cue.events
        ],
    }


def cue_from_dict(data: dict[str, Any]) -> Cue:
    try:
        beats = [Beat(**b) for b in data.get("beats", [])]
        events = [
            Event(
                location=int(e["location"]),
                description=(
                    description_from_dict(e["description"])
                    if e.get("description") is not None else None
                ),
            )
            for e in data.get("events", [])
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise ShowFormatError(f"Invalid cue {data.get('name', '')!r}: {e}")
    return Cue(name=str(data.get("name", "")), beats=beats, events=events)


def show_to_dict(show: Show) -> dict[str, Any]:
    return {
        "schema_version": SHOW_SCHEMA_VERSION,
        "name": show.name,
        "cues": [cue_to_dict(c) for c in show.cues],
    }


def show_from_dict(data: dict[str, Any]) -> Show:
    if not isinstance(data, dict):
        raise ShowFormatError(f"Show must be a JSON object, got {type(data).__name__}")
    cues = data.get("cues", [])
    if not isinstance(cues, list):
        raise ShowFormatError("Show 'cues' must be a list")
    return Show(name=str(data.get("name", "")), cues=[cue_from_dict(c) for c in cues])


def find_show_file(path: str) -> str:
    """Accept either a show directory or the JSON file itself."""
    if os.path.isdir(path):
        return os.path.join(path, SHOW_FILENAME)
    return path


def load_show_json(path: str) -> Show:
    """Load a show from JSON.  Raises ShowFormatError on unreadable content."""
    filepath = find_show_file(path)
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ShowFormatError(f"Invalid JSON in show file {filepath}: {e}")
    except OSError as e:
        raise ShowFormatError(f"Cannot read show file {filepath}: {e}")
    return show_from_dict(data)


def save_show_json(show: Show, path: str) -> str:
    filepath = find_show_file(path)
    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(show_to_dict(show), f, indent=4, ensure_ascii=False)
    return filepath
