from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from .models import DEFAULT_BEAT_LENGTH, Beat


@dataclass(frozen=True)
class TimeScale:
    """Horizontal geometry of a cue.

    With ``proportional`` off every beat is ``base_width`` wide.  With it
    on, width is ``base_width * length / reference_length``; nothing is
    clamped, so very short or very long beats draw accordingly.
    """
    base_width: float = 10.0
    proportional: bool = False
    reference_length: int = DEFAULT_BEAT_LENGTH

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "TimeScale":
        return cls(
            base_width=float(config.get("base_beat_width", 10.0)),
            proportional=bool(config.get("proportional_beat_length", False)),
            reference_length=int(config.get("reference_beat_length", DEFAULT_BEAT_LENGTH)),
        )

    def beat_width(self, length: int) -> float:
        if not self.proportional:
            return self.base_width
        return self.base_width * length / self.reference_length

    def offset_of(self, index: int, beats: Sequence[Beat]) -> float:
        """Left edge of beat *index*: the summed widths of ``beats[:index]``.

        Indices past the end keep going at ``base_width`` per missing beat,
        so a marker for an out-of-range beat lands beyond the last one.
        """
        if index <= 0:
            return 0.0
        inside = min(index, len(beats))
        offset = sum(self.beat_width(b.length) for b in beats[:inside])
        return offset + (index - inside) * self.base_width

    def span_width(self, beats: Sequence[Beat], start: int, count: int) -> float:
        """Width covered by ``beats[start:start + count]`` (clipped to the cue)."""
        return sum(self.beat_width(b.length) for b in beats[start:start + max(0, count)])

    def total_width(self, beats: Sequence[Beat]) -> float:
        return sum(self.beat_width(b.length) for b in beats)
