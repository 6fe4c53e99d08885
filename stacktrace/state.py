"""Render destination and policy.

A :class:`RenderState` decides where panic reports go, whether they are
colored, and whether they are rendered at all. Rendering holds the state's
lock for the whole report, so reports from threads failing at the same time
never interleave and a concurrent :meth:`RenderState.disable` is never seen
half-way through a report.

The process-wide default is built on import from ``sys.stderr`` and the
``NO_COLOR`` environment variable (https://no-color.org).
"""

from __future__ import annotations

import os
import sys
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TextIO

from frozendict import frozendict
from loguru import logger as loguru_logger

from stacktrace.errors import ConfigError
from stacktrace.render import PALETTE

loguru_logger = loguru_logger.bind(component="state")


class _Discard:
    """Writer that drops everything written to it."""

    def write(self, s: str) -> int:
        return len(s)

    def flush(self) -> None:
        pass

    def isatty(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "DISCARD"


DISCARD: Any = _Discard()


@dataclass(frozen=True)
class RenderSnapshot:
    """Settings read together at the start of one report."""

    writer: TextIO
    color: bool
    enabled: bool
    styles: frozendict[str, str]


class RenderState:
    """Destination, color policy and on/off switch for panic reports.

    Args:
        writer: Text stream receiving reports.
        color: Emit ANSI styling.
        enabled: Render reports at all; when False, panics are swallowed.
        styles: Palette overrides keyed by role name (see ``render.PALETTE``).
        exit: Called with the exit status after a fatal report.
    """

    __slots__ = ("_color", "_enabled", "_lock", "_styles", "_writer", "exit")

    def __init__(
        self,
        writer: TextIO,
        *,
        color: bool = False,
        enabled: bool = True,
        styles: Mapping[str, str] | None = None,
        exit: Callable[[int], object] = os._exit,
    ) -> None:
        if not callable(getattr(writer, "write", None)):
            raise ConfigError(f"writer must have a write() method, got {type(writer).__name__}")
        self._writer = writer
        self._color = color
        self._enabled = enabled
        self._styles = _merge_styles(styles)
        self._lock = threading.Lock()
        self.exit = exit

    @classmethod
    def from_environment(
        cls,
        stream: TextIO | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> RenderState:
        """Build a state for ``stream`` (default ``sys.stderr``).

        Color is enabled only when the stream is a terminal and ``NO_COLOR`` is
        unset or empty. On Windows a colored stream is wrapped so that ANSI
        sequences are translated for the console.
        """
        if stream is None:
            stream = sys.stderr
        if environ is None:
            environ = os.environ
        if stream is None:
            return cls(DISCARD)

        color = not environ.get("NO_COLOR") and _is_terminal(stream)
        writer = stream
        if color and sys.platform == "win32":
            from colorama import AnsiToWin32

            writer = AnsiToWin32(stream).stream
        return cls(writer, color=color)

    @property
    def writer(self) -> TextIO:
        return self._writer

    @property
    def color(self) -> bool:
        return self._color

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        with self._lock:
            self._enabled = True
        loguru_logger.debug("panic rendering enabled")

    def disable(self) -> None:
        with self._lock:
            self._enabled = False
        loguru_logger.debug("panic rendering disabled")

    @contextmanager
    def locked(self) -> Iterator[RenderSnapshot]:
        """Hold the lock and yield the settings in effect for one report."""
        with self._lock:
            yield RenderSnapshot(
                writer=self._writer,
                color=self._color,
                enabled=self._enabled,
                styles=self._styles,
            )

    def __repr__(self) -> str:
        return (
            f"RenderState(writer={self._writer!r}, color={self._color}, "
            f"enabled={self._enabled})"
        )


def _merge_styles(styles: Mapping[str, str] | None) -> frozendict[str, str]:
    if not styles:
        return PALETTE
    unknown = sorted(set(styles) - set(PALETTE))
    if unknown:
        raise ConfigError(f"unknown style roles: {', '.join(unknown)}")
    return frozendict({**PALETTE, **styles})


def _is_terminal(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except ValueError:
        # closed stream
        return False


_default = RenderState.from_environment()


def default_state() -> RenderState:
    """Return the process-wide state used when no state is passed."""
    return _default


def set_default_state(state: RenderState) -> RenderState:
    """Install ``state`` as the process-wide default and return the previous one."""
    global _default
    previous = _default
    _default = state
    return previous


__all__ = [
    "DISCARD",
    "RenderSnapshot",
    "RenderState",
    "default_state",
    "set_default_state",
]
