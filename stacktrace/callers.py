"""Raw stack capture.

:func:`callers` returns the handles of the current call stack, innermost
first. When given a traceback it returns the unwound frames first (raise site
first) and continues with the live callers of the frame that caught the
exception, which is the stack as it stood at the moment of the raise.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from itertools import islice
from types import FrameType, TracebackType

from stacktrace import origin
from stacktrace.types import ProgramCounter

INITIAL_DEPTH = 16


def callers(skip: int = 0, *, tb: TracebackType | None = None) -> list[ProgramCounter]:
    """Capture the current stack as a list of handles.

    Args:
        skip: Number of innermost entries to leave out. Without ``tb`` the
            first entry is the caller of ``callers``; with ``tb`` it is the
            frame that raised.
        tb: Traceback of an exception being handled.

    Returns:
        Handles innermost first, followed by the spawn site of the current
        thread when it was started by :func:`stacktrace.go`.
    """
    # A live walk starts at this frame, which never belongs in the result.
    depth = skip if tb is not None else skip + 1
    pcs: list[ProgramCounter | None] = [None] * INITIAL_DEPTH
    while True:
        n = _callers(depth, pcs, tb)
        if n < len(pcs):
            del pcs[n:]
            break
        pcs = [None] * (2 * len(pcs))

    result: list[ProgramCounter] = pcs  # type: ignore[assignment]
    spawned_at = origin.get()
    if spawned_at is not None:
        result.append(spawned_at)
    return result


def _callers(
    skip: int,
    pcs: list[ProgramCounter | None],
    tb: TracebackType | None = None,
) -> int:
    """Fill ``pcs`` with up to ``len(pcs)`` handles and return the count.

    ``skip=0`` is the frame that called ``_callers`` (or the raise site when
    ``tb`` is given).
    """
    start = None if tb is not None else sys._getframe(1)
    n = 0
    for pc in islice(_walk(start, tb), skip, skip + len(pcs)):
        pcs[n] = pc
        n += 1
    return n


def _walk(frame: FrameType | None, tb: TracebackType | None) -> Iterator[ProgramCounter]:
    if tb is not None:
        entries: list[TracebackType] = []
        while tb is not None:
            entries.append(tb)
            tb = tb.tb_next
        for entry in reversed(entries):
            yield ProgramCounter.of(entry.tb_frame, entry.tb_lineno)
        frame = entries[0].tb_frame.f_back

    while frame is not None:
        yield ProgramCounter.of(frame)
        frame = frame.f_back


__all__ = ["INITIAL_DEPTH", "callers"]
