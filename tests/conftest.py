"""
Shared fixtures for stacktrace tests.

Every test renders into its own ``StringIO`` and replaces the process exit
hook with a recorder, so fatal reports can be asserted on without ending the
test run.
"""

from __future__ import annotations

import io
import threading

import pytest

from stacktrace import RenderState


class ExitRecorder:
    """Stand-in for ``os._exit`` that records the requested status."""

    def __init__(self) -> None:
        self.codes: list[int] = []
        self.called = threading.Event()

    def __call__(self, code: int) -> None:
        self.codes.append(code)
        self.called.set()


@pytest.fixture
def exit_recorder() -> ExitRecorder:
    return ExitRecorder()


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def plain_state(output: io.StringIO, exit_recorder: ExitRecorder) -> RenderState:
    return RenderState(output, color=False, exit=exit_recorder)


@pytest.fixture
def color_state(output: io.StringIO, exit_recorder: ExitRecorder) -> RenderState:
    return RenderState(output, color=True, exit=exit_recorder)
