"""Debug tracing for the timeline engine.

Usage::

    from clickslib.log import dbg

    dbg(f"resolved cue {cue.name}: {n} beats")

Output is only emitted when the environment variable ``CLICKS_DEBUG`` is
set to ``1`` or ``true`` (case-insensitive).  Each line carries a
timestamp and the calling class or module, so traces from the import
workers and the resolver can be told apart with grep.

Conditions a user should hear about (skipped clip files and the like) go
through the standard :mod:`logging` module instead.
"""

from __future__ import annotations

import inspect
import os
import sys
import time

_ENABLED: bool | None = None


def _is_enabled() -> bool:
    global _ENABLED
    if _ENABLED is None:
        val = os.environ.get("CLICKS_DEBUG", "").strip().lower()
        _ENABLED = val in ("1", "true")
    return _ENABLED


def set_enabled(enabled: bool | None) -> None:
    """Force tracing on or off.  ``None`` re-reads ``CLICKS_DEBUG``."""
    global _ENABLED
    _ENABLED = enabled


def _caller_name() -> str:
    """Return the class name (or module name) of the caller's caller."""
    frame = inspect.currentframe()
    try:
        # _caller_name -> dbg -> actual caller
        caller = frame.f_back.f_back if frame and frame.f_back else None
        if caller is None:
            return "?"
        self_obj = caller.f_locals.get("self")
        if self_obj is not None:
            return type(self_obj).__name__
        cls_obj = caller.f_locals.get("cls")
        if cls_obj is not None:
            return getattr(cls_obj, "__name__", str(cls_obj))
        mod = caller.f_globals.get("__name__", "")
        return mod.rsplit(".", 1)[-1] if mod else "?"
    finally:
        del frame


def dbg(msg: str) -> None:
    """Print a timestamped debug line to stderr if ``CLICKS_DEBUG`` is active.

    Format: ``[HH:MM:SS.mmm ClassName] message``
    """
    if not _is_enabled():
        return
    t = time.strftime("%H:%M:%S")
    ms = int((time.time() % 1) * 1000)
    name = _caller_name()
    print(f"[{t}.{ms:03d} {name}] {msg}", file=sys.stderr, flush=True)
