from __future__ import annotations

from typing import Any


class StacktraceError(Exception):
    """Base error for stacktrace configuration problems."""


class ConfigError(StacktraceError, ValueError):
    """Raised when a RenderState is built from invalid settings."""


class Panic(Exception):
    """Raised to abort with an arbitrary payload.

    The rendered header shows ``str(value)`` rather than the exception type::

        raise Panic("boom")   # panic: boom
    """

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(value)

    def __str__(self) -> str:
        return str(self.value)


__all__ = ["ConfigError", "Panic", "StacktraceError"]
