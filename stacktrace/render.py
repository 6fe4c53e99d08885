"""Panic report rendering.

A report is a header line followed by two lines per frame::

    panic: boom
    ->  at app.worker.parse+4
    ->       /srv/app/worker.py:31

        at app.worker.run+2
             /srv/app/worker.py:12

The innermost frame is marked with ``->`` and emphasized. Styling comes from
the snapshot's palette and is emitted only when the snapshot has color
enabled; removing the escape sequences from a colored report yields the plain
report exactly.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from typing import TYPE_CHECKING, Final

from frozendict import frozendict

from stacktrace.errors import Panic
from stacktrace.symbols import split_function_path
from stacktrace.types import Frame, Printer

if TYPE_CHECKING:
    from stacktrace.state import RenderSnapshot

_ESC = "\x1b["
RESET = f"{_ESC}0m"
BOLD = f"{_ESC}1m"
RED = f"{_ESC}31m"
YELLOW = f"{_ESC}33m"
BRIGHT_GREEN = f"{_ESC}92m"
BRIGHT_YELLOW = f"{_ESC}93m"
BRIGHT_BLUE = f"{_ESC}94m"
BRIGHT_CYAN = f"{_ESC}96m"
BRIGHT_WHITE = f"{_ESC}97m"

PALETTE: Final[frozendict[str, str]] = frozendict(
    {
        "reset": RESET,
        "header": BOLD + BRIGHT_CYAN,
        "value": BOLD + BRIGHT_BLUE,
        "marker": RED,
        # innermost frame
        "first_package": BOLD + BRIGHT_YELLOW,
        "first_function": BOLD + BRIGHT_GREEN,
        "first_offset": BOLD + BRIGHT_BLUE,
        "first_dir": BOLD + BRIGHT_WHITE,
        "first_file": BOLD + BRIGHT_CYAN,
        "first_colon": BOLD + BRIGHT_GREEN,
        # every other frame
        "package": YELLOW,
        "function": BRIGHT_GREEN,
        "offset": BRIGHT_BLUE,
        "dir": BRIGHT_WHITE,
        "file": BRIGHT_CYAN,
        "colon": BRIGHT_GREEN,
    }
)

_INT_DIGITS = 19  # len(str(2**63 - 1))
_INT_LIMIT = 1 << 63


def format_int(n: int) -> str:
    """Render ``n`` in decimal using a fixed-size digit buffer.

    Covers the range of a signed 64-bit integer; values outside it raise
    ``OverflowError``.
    """
    if n == 0:
        return "0"
    sign = ""
    if n < 0:
        sign = "-"
        n = -n
    if n > _INT_LIMIT or (n == _INT_LIMIT and not sign):
        raise OverflowError(f"{sign}{n} does not fit in 64 bits")
    buf = bytearray(_INT_DIGITS)
    i = _INT_DIGITS - 1
    while n >= 10:
        n, digit = divmod(n, 10)
        buf[i] = 0x30 + digit
        i -= 1
    buf[i] = 0x30 + n
    return sign + buf[i:].decode("ascii")


def frame_offset(frame: Frame) -> int | None:
    """Lines from the function's first line to the frame's line, if computable."""
    if (
        frame.entry_line is None
        or frame.entry_file != frame.file
        or frame.line < frame.entry_line
    ):
        return None
    return frame.line - frame.entry_line


def split_path(path: str) -> tuple[str, str]:
    """Split ``path`` into directory (with trailing separator) and file name."""
    cut = max(path.rfind("/"), path.rfind(os.sep))
    return path[: cut + 1], path[cut + 1 :]


def format_exception(exception: BaseException) -> str:
    if isinstance(exception, Panic):
        return str(exception.value)
    message = str(exception)
    name = type(exception).__qualname__
    return f"{name}: {message}" if message else name


class _Output:
    __slots__ = ("_color", "_styles", "_write")

    def __init__(self, snapshot: RenderSnapshot) -> None:
        self._write = snapshot.writer.write
        self._color = snapshot.color
        self._styles = snapshot.styles

    def write(self, s: str) -> None:
        self._write(s)

    def style(self, role: str) -> None:
        if self._color:
            self._write(self._styles[role])

    def styled(self, role: str, s: str) -> None:
        self.style(role)
        self._write(s)

    def offset(self, role: str, offset: int | None) -> None:
        if offset is not None:
            self.styled(role, "+")
            self._write(format_int(offset))
        self.style("reset")


def render(
    snapshot: RenderSnapshot,
    exception: BaseException,
    frames: Iterable[Frame],
    printer: Printer | None = None,
) -> None:
    """Write the report for ``exception`` and ``frames`` to the snapshot's writer."""
    out = _Output(snapshot)

    out.styled("header", "panic: ")
    out.style("reset")
    out.style("value")
    if printer is not None:
        printer(snapshot.writer, exception)
    else:
        out.write(format_exception(exception))
    out.styled("reset", "\n")

    first = True
    for frame in frames:
        package, function = split_function_path(frame.function)
        directory, name = split_path(frame.file)
        offset = frame_offset(frame)

        if first:
            out.styled("marker", "->")
            out.style("reset")
            out.write("  at ")
            out.styled("first_package", package)
            out.styled("first_function", function)
            out.offset("first_offset", offset)
            out.write("\n")
            out.styled("marker", "->")
            out.write("       ")
            out.styled("first_dir", directory)
            out.styled("first_file", name)
            out.styled("first_colon", ":")
            out.write(format_int(frame.line))
            out.styled("reset", "\n\n")
        else:
            out.write("    at ")
            out.styled("package", package)
            out.styled("function", function)
            out.offset("offset", offset)
            out.write("\n         ")
            out.styled("dir", directory)
            out.styled("file", name)
            out.styled("colon", ":")
            out.write(format_int(frame.line))
            out.styled("reset", "\n")
        first = False

    flush = getattr(snapshot.writer, "flush", None)
    if flush is not None:
        flush()


__all__ = [
    "PALETTE",
    "format_exception",
    "format_int",
    "frame_offset",
    "render",
    "split_path",
]
