from __future__ import annotations

import threading
from typing import Any, Callable

# Clip import progress.  Payload keys per event:
#   clip.load        path, index, total
#   clip.loaded      path, index, total, channel, clip
#   clip.skipped     path, index, total, error
#   import.complete  loaded, skipped
CLIP_LOAD = "clip.load"
CLIP_LOADED = "clip.loaded"
CLIP_SKIPPED = "clip.skipped"
IMPORT_COMPLETE = "import.complete"

IMPORT_EVENTS = frozenset({CLIP_LOAD, CLIP_LOADED, CLIP_SKIPPED, IMPORT_COMPLETE})

ImportHandler = Callable[..., Any]


class EventBus:
    """Publish/subscribe bus for clip import progress.

    Import workers emit from pool threads, so every operation is guarded
    by a lock.  Handlers run on the emitting thread.  Only the names in
    :data:`IMPORT_EVENTS` are accepted; a misspelt name raises instead of
    silently never firing.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[ImportHandler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: ImportHandler) -> None:
        _check_event(event_type)
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def subscribe_progress(self, handler: ImportHandler) -> None:
        """Register *handler* for every finished file, loaded or skipped."""
        self.subscribe(CLIP_LOADED, handler)
        self.subscribe(CLIP_SKIPPED, handler)

    def unsubscribe(self, event_type: str, handler: ImportHandler) -> None:
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def emit(self, event_type: str, **data: Any) -> None:
        _check_event(event_type)
        with self._lock:
            handlers = list(self._handlers.get(event_type, []))
        for handler in handlers:
            handler(**data)


def _check_event(event_type: str) -> None:
    if event_type not in IMPORT_EVENTS:
        raise ValueError(f"Unknown import event: {event_type!r}")
