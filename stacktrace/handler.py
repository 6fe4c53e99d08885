"""Panic handling for blocks, functions and background threads.

Three entry points share one reporting path:

- ``handle()``: context manager / decorator. An exception escaping the block
  is rendered and then either handled (control continues after the block) or
  fatal (the process exits with status 2).
- ``supervise()``: runs a callable and returns ``Ok(value)`` or
  ``Err(CrashReport)`` without rendering anything.
- ``go()``: runs a callable on a new thread; an exception is rendered and
  ends the whole process, instead of only the thread.

Usage::

    from stacktrace import go, handle

    with handle():
        risky()

    @handle(exit=True)
    def main() -> None:
        ...

    go(worker)
"""

from __future__ import annotations

import functools
import inspect
import threading
from collections.abc import Callable
from types import TracebackType
from typing import Any, TypeVar

from loguru import logger as loguru_logger

from stacktrace import origin
from stacktrace.callstack import trampoline
from stacktrace.render import render
from stacktrace.report import CrashReport
from stacktrace.result import Err, Ok, Result
from stacktrace.state import RenderState, default_state
from stacktrace.types import Predicate, Printer, ProgramCounter

loguru_logger = loguru_logger.bind(component="handler")

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])

EXIT_CODE = 2


def enable(state: RenderState | None = None) -> None:
    """Render panics again after :func:`disable`."""
    (default_state() if state is None else state).enable()


def disable(state: RenderState | None = None) -> None:
    """Swallow panics silently instead of rendering them."""
    (default_state() if state is None else state).disable()


def _report(
    state: RenderState | None,
    capture: Callable[[], CrashReport],
    *,
    exit: bool,
    printer: Printer | None,
    predicate: Predicate | None,
) -> None:
    if state is None:
        state = default_state()
    with state.locked() as snapshot:
        if not snapshot.enabled:
            loguru_logger.debug(
                "panic on thread {} suppressed, rendering is disabled",
                threading.current_thread().name,
            )
            return

        report = capture()
        loguru_logger.debug(
            "recovered {} on thread {}",
            type(report.exception).__name__,
            report.thread_name,
        )
        try:
            render(snapshot, report.exception, report.frames(predicate), printer)
        except (OSError, ValueError):
            loguru_logger.opt(exception=True).warning(
                "failed to write panic report to {!r}", snapshot.writer
            )

        if exit:
            loguru_logger.debug("exiting with status {}", EXIT_CODE)
            state.exit(EXIT_CODE)


class Handler:
    """Recover exceptions escaping a block or a decorated function.

    Decorating a coroutine function recovers exceptions raised while it is
    awaited.

    Only :class:`Exception` is recovered; ``KeyboardInterrupt``, ``SystemExit``
    and other ``BaseException`` subclasses propagate.

    Args:
        exit: Terminate the process with status 2 after rendering.
        printer: Writes the exception into the header line; defaults to
            ``str()`` of a :class:`~stacktrace.errors.Panic` payload or
            ``TypeName: message``.
        predicate: Keeps a frame when it returns True.
        state: Render state; the process-wide default when omitted.
    """

    __slots__ = ("exit", "predicate", "printer", "state")

    def __init__(
        self,
        exit: bool = False,
        printer: Printer | None = None,
        predicate: Predicate | None = None,
        *,
        state: RenderState | None = None,
    ) -> None:
        self.exit = exit
        self.printer = printer
        self.predicate = predicate
        self.state = state

    def __enter__(self) -> Handler:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is None or not isinstance(exc, Exception):
            return False
        _report(
            self.state,
            lambda: CrashReport.capture(exc, tb),
            exit=self.exit,
            printer=self.printer,
            predicate=self.predicate,
        )
        return True

    def __call__(self, func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with self:
                    return await func(*args, **kwargs)
                return None

            return trampoline(async_wrapper)  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with self:
                return func(*args, **kwargs)
            return None

        return trampoline(wrapper)  # type: ignore[return-value]


def handle(
    exit: bool = False,
    printer: Printer | None = None,
    predicate: Predicate | None = None,
    *,
    state: RenderState | None = None,
) -> Handler:
    """Return a :class:`Handler`; use it with ``with`` or as a decorator."""
    return Handler(exit, printer, predicate, state=state)


@trampoline
def supervise(task: Callable[..., T], *args: Any, **kwargs: Any) -> Result[T, CrashReport]:
    """Call ``task`` and return its outcome instead of raising.

    The stack is captured when the exception is recovered, so the report
    points at the raise site even after ``supervise`` has returned.
    """
    try:
        return Ok(task(*args, **kwargs))
    except Exception as exc:
        return Err(CrashReport.capture(exc))


class _SupervisedThread(threading.Thread):
    def __init__(
        self,
        task: Callable[[], Any],
        printer: Printer | None,
        predicate: Predicate | None,
        render_state: RenderState | None,
        spawned_at: ProgramCounter | None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._task = task
        self._printer = printer
        self._predicate = predicate
        self._render_state = render_state
        self._spawned_at = spawned_at

    @trampoline
    def run(self) -> None:
        origin.bind(self._spawned_at)
        result = supervise(self._task)
        if isinstance(result, Err):
            report = result.error
            _report(
                self._render_state,
                lambda: report,
                exit=True,
                printer=self._printer,
                predicate=self._predicate,
            )


def go(
    task: Callable[[], Any],
    printer: Printer | None = None,
    predicate: Predicate | None = None,
    *,
    state: RenderState | None = None,
    name: str | None = None,
    daemon: bool = True,
) -> threading.Thread:
    """Run ``task`` on a new thread; a failure is rendered and exits with status 2.

    The thread is a daemon by default, like any other background task that
    should not keep the interpreter alive. The caller of ``go`` is shown as
    the last frame of the report.
    """
    thread = _SupervisedThread(
        task,
        printer,
        predicate,
        state,
        origin.spawn_site(),
        name=name,
        daemon=daemon,
    )
    thread.start()
    return thread


__all__ = [
    "EXIT_CODE",
    "Handler",
    "disable",
    "enable",
    "go",
    "handle",
    "supervise",
]
