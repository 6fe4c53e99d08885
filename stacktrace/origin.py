"""Spawn-site tracking for supervised threads.

A thread's own stack ends in interpreter bootstrap code, so the place that
started it is lost. :func:`stacktrace.go` records that place before starting
the thread and the thread binds it on entry; the frame source then appends it
to every capture taken on that thread.
"""

from __future__ import annotations

import sys
import threading

from stacktrace.types import ProgramCounter

_local = threading.local()


def spawn_site(depth: int = 1) -> ProgramCounter | None:
    """Return a handle for the frame ``depth`` levels above the caller."""
    try:
        frame = sys._getframe(depth + 1)
    except ValueError:
        return None
    return ProgramCounter.of(frame)


def bind(pc: ProgramCounter | None) -> None:
    """Record ``pc`` as the origin of the current thread."""
    _local.pc = pc


def get() -> ProgramCounter | None:
    """Return the origin bound to the current thread, if any."""
    return getattr(_local, "pc", None)


__all__ = ["bind", "get", "spawn_site"]
