from __future__ import annotations

from typing import Protocol

import numpy as np

from .audio import ticks_to_samples
from .models import (
    Beat,
    ChannelSlice,
    Clip,
    EventDescription,
    PlaybackStart,
    PlaybackStop,
    RunningClip,
)
from .peaks import PEAK_BUCKET_SIZE


class ClipSource(Protocol):
    def get(self, channel_index: int, clip_index: int) -> Clip | None: ...


class PlaybackTracker:
    """Which clips sound on which channel while a cue is scanned forward.

    The tracker keeps a cue-relative sample counter, ``time_head``, that
    points at the start of the current beat.  Driving it for one beat
    means: :meth:`consume` the beat's events, :meth:`resolve` the running
    clips against the beat, then :meth:`advance` past it.  After the last
    beat, :meth:`finish` drops whatever is still running.

    One clip per channel: a start on a busy channel cuts the old clip off.
    Clips missing from *clips* still run; their slices are all zero and
    flagged ``missing``.
    """

    def __init__(
        self,
        clips: ClipSource | None = None,
        *,
        sample_rate: int = 48000,
        ticks_per_second: int = 1_000_000,
        bucket_size: int = PEAK_BUCKET_SIZE,
    ):
        self._clips = clips
        self.sample_rate = sample_rate
        self.ticks_per_second = ticks_per_second
        self.bucket_size = bucket_size
        self.time_head = 0
        self._running: dict[int, RunningClip] = {}

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def start(self, event: PlaybackStart) -> RunningClip:
        self._running.pop(event.channel, None)
        running = RunningClip(
            channel_index=event.channel,
            clip_index=event.clip,
            start_sample_offset=event.sample,
            cue_sample_offset_at_start=self.time_head,
        )
        self._running[event.channel] = running
        return running

    def stop(self, channel: int) -> RunningClip | None:
        """Stop *channel*.  Stopping an idle channel does nothing."""
        return self._running.pop(channel, None)

    def consume(self, description: EventDescription | None) -> bool:
        """Apply a playback event; returns False for any other description."""
        if isinstance(description, PlaybackStart):
            self.start(description)
            return True
        if isinstance(description, PlaybackStop):
            self.stop(description.channel)
            return True
        return False

    def advance(self, beat: Beat) -> None:
        self.time_head += self.beat_samples(beat)

    def finish(self) -> list[int]:
        """End of cue: stop everything and return the channels stopped."""
        channels = sorted(self._running)
        self._running.clear()
        return channels

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def beat_samples(self, beat: Beat) -> int:
        return ticks_to_samples(beat.length, self.sample_rate, self.ticks_per_second)

    def is_active(self, channel: int) -> bool:
        return channel in self._running

    def active_channels(self) -> list[int]:
        return sorted(self._running)

    def running(self, channel: int) -> RunningClip | None:
        return self._running.get(channel)

    def resolve(self, beat: Beat, width: float) -> list[ChannelSlice]:
        """Slices of every running clip for the beat starting at ``time_head``."""
        sample_count = self.beat_samples(beat)
        slices = []
        for channel in sorted(self._running):
            rc = self._running[channel]
            first = self.time_head - rc.cue_sample_offset_at_start + rc.start_sample_offset
            bucket_start = first // self.bucket_size
            bucket_end = (first + sample_count) // self.bucket_size
            clip = self._clips.get(rc.channel_index, rc.clip_index) if self._clips else None
            slices.append(ChannelSlice(
                channel=rc.channel_index,
                clip=rc.clip_index,
                sample_start=first,
                sample_count=sample_count,
                bucket_start=bucket_start,
                bucket_end=bucket_end,
                buckets=_bucket_slice(clip, bucket_start, bucket_end),
                width=width,
                missing=clip is None,
            ))
        return slices


def _bucket_slice(clip: Clip | None, start: int, end: int) -> np.ndarray:
    """Buckets ``[start, end)`` of *clip*, zero wherever the clip has none."""
    out = np.zeros(max(0, end - start), dtype=np.float32)
    if clip is None or out.size == 0:
        return out
    peaks = clip.peak_buckets
    lo = max(start, 0)
    hi = min(end, peaks.size)
    if hi > lo:
        out[lo - start:hi - start] = peaks[lo:hi]
    return out
