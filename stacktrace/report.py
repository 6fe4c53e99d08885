"""Crash reports: a recovered exception together with its captured stack."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from types import TracebackType
from typing import NoReturn

from stacktrace.callers import callers
from stacktrace.callstack import filter_frames
from stacktrace.types import Frame, Predicate, ProgramCounter


@dataclass(frozen=True)
class CrashReport:
    """An exception recovered from supervised code.

    The stack is captured as raw handles when the report is built, so it
    reflects the moment of the failure; frames are resolved and filtered only
    when :meth:`frames` is iterated.

    Attributes:
        exception: The recovered exception.
        pcs: Captured handles, innermost first.
        thread_name: Name of the thread the exception was recovered on.
    """

    exception: BaseException
    pcs: tuple[ProgramCounter, ...]
    thread_name: str = field(default_factory=lambda: threading.current_thread().name)

    @classmethod
    def capture(
        cls,
        exception: BaseException,
        tb: TracebackType | None = None,
        skip: int = 0,
    ) -> CrashReport:
        """Build a report for ``exception`` from its traceback.

        ``tb`` defaults to ``exception.__traceback__``; ``skip`` drops that many
        frames from the raise site end.
        """
        if tb is None:
            tb = exception.__traceback__
        if tb is None:
            pcs = callers(skip + 1)
        else:
            pcs = callers(skip, tb=tb)
        return cls(exception=exception, pcs=tuple(pcs))

    def frames(self, predicate: Predicate | None = None) -> Iterator[Frame]:
        """Iterate the frames worth showing, innermost first."""
        return filter_frames(self.pcs, predicate)

    def reraise(self) -> NoReturn:
        """Raise the recovered exception again with its original traceback."""
        raise self.exception


__all__ = ["CrashReport"]
