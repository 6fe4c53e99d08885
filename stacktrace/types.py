"""Core types shared by the capture, filter and render stages."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from types import CodeType, FrameType
from typing import TextIO, TypeAlias

from stacktrace.symbols import qualified_name


@dataclass(frozen=True)
class Frame:
    """One resolved entry of a captured stack.

    Attributes:
        function: Qualified symbol, see :mod:`stacktrace.symbols`.
        file: Source file of the code that was executing.
        line: Line that was executing when the stack was captured.
        entry_file: File holding the function's first line, when known.
        entry_line: The function's first line, when known.
    """

    function: str
    file: str
    line: int
    entry_file: str | None = None
    entry_line: int | None = None


class ProgramCounter:
    """Opaque handle for one captured stack position.

    Holds the code object, the line that was executing at capture time and
    the defining module's name. Handles compare equal when they point at the
    same line of the same code; they are resolved into a :class:`Frame` with
    :meth:`resolve` and carry no other public surface.
    """

    __slots__ = ("_code", "_line", "_module")

    def __init__(self, code: CodeType, line: int, module: str | None) -> None:
        self._code = code
        self._line = line
        self._module = module

    @classmethod
    def of(cls, frame: FrameType, line: int | None = None) -> ProgramCounter:
        """Capture ``frame`` at ``line`` (default: the line it is executing)."""
        code = frame.f_code
        if line is None:
            line = frame.f_lineno
        if line is None:
            line = code.co_firstlineno
        return cls(code, line, frame.f_globals.get("__name__"))

    def resolve(self) -> Frame:
        code = self._code
        return Frame(
            function=qualified_name(self._module, code_qualname(code)),
            file=code.co_filename,
            line=self._line,
            entry_file=code.co_filename,
            entry_line=code.co_firstlineno,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProgramCounter):
            return NotImplemented
        return self._code is other._code and self._line == other._line

    def __hash__(self) -> int:
        return hash((id(self._code), self._line))

    def __repr__(self) -> str:
        return f"<ProgramCounter {self._code.co_name}:{self._line}>"


def code_qualname(code: CodeType) -> str:
    # co_qualname is only available from Python 3.11
    return getattr(code, "co_qualname", code.co_name)


Printer: TypeAlias = Callable[[TextIO, BaseException], None]
Predicate: TypeAlias = Callable[[Frame], bool]


__all__ = [
    "Frame",
    "code_qualname",
    "Predicate",
    "Printer",
    "ProgramCounter",
]
