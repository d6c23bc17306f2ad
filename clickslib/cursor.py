from __future__ import annotations

from typing import Iterator, Sequence

from .models import Event


class EventCursor:
    """Forward-only merge of a sparse event list onto a beat scan.

    Events are handed out in ascending ``location`` order, ties in their
    original list order.  The backing list may be unsorted; a stable sort
    of indices happens once here, so a full scan costs
    O(E log E + B) rather than rescanning the list at every beat.

    Beat indices passed to :meth:`at_or_before` must never decrease.  The
    cursor belongs to one resolution pass and is thrown away with it.
    """

    def __init__(self, events: Sequence[Event]):
        self._events = events
        self._order = sorted(range(len(events)), key=lambda i: events[i].location)
        self._pos = 0
        self._last_query: int | None = None

    def at_or_before(self, beat_index: int) -> bool:
        """True if an unconsumed event sits at or before *beat_index*."""
        assert self._last_query is None or beat_index >= self._last_query, (
            f"EventCursor queried at beat {beat_index} after beat {self._last_query}"
        )
        self._last_query = beat_index
        if self._pos >= len(self._order):
            return False
        return self._events[self._order[self._pos]].location <= beat_index

    def get_next(self) -> Event | None:
        """Consume and return the next event, or None when exhausted."""
        if self._pos >= len(self._order):
            return None
        event = self._events[self._order[self._pos]]
        self._pos += 1
        return event

    def take(self, beat_index: int) -> Iterator[Event]:
        """Yield every event due at or before *beat_index*."""
        while self.at_or_before(beat_index):
            event = self.get_next()
            if event is None:
                return
            yield event

    def remaining(self) -> int:
        return len(self._order) - self._pos
