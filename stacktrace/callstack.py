"""Filtered, lazily resolved call stacks."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import TypeVar

from stacktrace.callers import callers
from stacktrace.symbols import qualified_name, split_function_path
from stacktrace.types import Frame, Predicate, ProgramCounter, code_qualname

F = TypeVar("F", bound=Callable[..., object])

# Interpreter plumbing that sits between user code and the thread or
# interpreter entry point.
RUNTIME_MODULES: frozenset[str] = frozenset(
    {
        "asyncio.base_events",
        "asyncio.events",
        "asyncio.runners",
        "concurrent.futures.process",
        "concurrent.futures.thread",
        "importlib._bootstrap",
        "importlib._bootstrap_external",
        "runpy",
        "threading",
    }
)

_trampolines: set[str] = set()


def trampoline(func: F) -> F:
    """Mark ``func`` as a library wrapper whose frames are never shown.

    The symbol is taken from the code object and the defining globals, so it
    still matches after ``functools.wraps`` has copied another function's
    ``__qualname__`` and ``__module__``.
    """
    code = func.__code__  # type: ignore[attr-defined]
    module = func.__globals__.get("__name__")  # type: ignore[attr-defined]
    _trampolines.add(qualified_name(module, code_qualname(code)))
    return func


def is_trampoline(function: str) -> bool:
    return function in _trampolines


def is_unexported_runtime(function: str) -> bool:
    """Report whether ``function`` is a private function of interpreter plumbing.

    ``threading.Thread._bootstrap_inner`` and
    ``concurrent.futures.thread._WorkItem.run`` are private;
    ``threading.Thread.run`` is not.
    """
    package, name = split_function_path(function)
    if package[:-1] not in RUNTIME_MODULES:
        return False
    receiver, _, name = name.rpartition(".")
    return not name or _is_private(name) or (bool(receiver) and _is_private(receiver))


def _is_private(name: str) -> bool:
    return name[0] in "_<"


def filter_frames(
    pcs: Iterable[ProgramCounter],
    predicate: Predicate | None = None,
) -> Iterator[Frame]:
    """Resolve ``pcs`` one at a time, yielding the frames worth showing.

    Frames are dropped when they belong to private interpreter plumbing, when
    they are a registered trampoline, or when ``predicate`` rejects them.
    """
    for pc in pcs:
        frame = pc.resolve()
        if (
            is_unexported_runtime(frame.function)
            or frame.function in _trampolines
            or (predicate is not None and not predicate(frame))
        ):
            continue
        yield frame


def call_stack(skip: int = 0, predicate: Predicate | None = None) -> Iterator[Frame]:
    """Capture the current stack and return its filtered frames.

    The stack is captured when ``call_stack`` is called; frames are resolved
    as the returned iterator is consumed. The first frame is the caller of
    ``call_stack`` unless ``skip`` leaves it out.
    """
    return filter_frames(callers(skip + 1), predicate)


__all__ = [
    "RUNTIME_MODULES",
    "call_stack",
    "filter_frames",
    "is_trampoline",
    "is_unexported_runtime",
    "trampoline",
]
