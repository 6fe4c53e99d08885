"""
stacktrace - readable panic reports for Python programs and their threads.

When an exception escapes supervised code, the stack at the raise site is
captured, interpreter plumbing and the library's own wrappers are filtered
out, and a compact, colorized report is written to stderr::

    panic: boom
    ->  at app.jobs.parse+4
    ->       /srv/app/jobs.py:31

        at app.jobs.run+2
             /srv/app/jobs.py:12

Example:
    >>> from stacktrace import Panic, go, handle
    >>>
    >>> @handle(exit=True)
    >>> def main():
    ...     go(background_job)      # a failure here ends the process with status 2
    ...     raise Panic("boom")

Color follows the terminal and ``NO_COLOR``. Logging goes through loguru and
is disabled by default; call ``logger.enable("stacktrace")`` to see it.
"""

from loguru import logger

from stacktrace.callstack import call_stack, trampoline
from stacktrace.errors import ConfigError, Panic, StacktraceError
from stacktrace.handler import (
    EXIT_CODE,
    Handler,
    disable,
    enable,
    go,
    handle,
    supervise,
)
from stacktrace.report import CrashReport
from stacktrace.result import Err, Ok, Result
from stacktrace.state import (
    DISCARD,
    RenderSnapshot,
    RenderState,
    default_state,
    set_default_state,
)
from stacktrace.symbols import split_function_path
from stacktrace.types import Frame, Predicate, Printer

logger.disable("stacktrace")

__version__ = "0.1.0"

__all__ = [
    "DISCARD",
    "EXIT_CODE",
    "ConfigError",
    "CrashReport",
    "Err",
    "Frame",
    "Handler",
    "Ok",
    "Panic",
    "Predicate",
    "Printer",
    "RenderSnapshot",
    "RenderState",
    "Result",
    "StacktraceError",
    "__version__",
    "call_stack",
    "default_state",
    "disable",
    "enable",
    "go",
    "handle",
    "set_default_state",
    "split_function_path",
    "supervise",
    "trampoline",
]
