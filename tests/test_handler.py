"""End-to-end tests for handle(), supervise() and go()."""

import asyncio
import io
import re
import threading
import time

import pytest
from loguru import logger

from stacktrace import (
    EXIT_CODE,
    CrashReport,
    Err,
    Ok,
    Panic,
    RenderState,
    disable,
    enable,
    go,
    handle,
    supervise,
)

FRAME_LINE_RE = re.compile(r"^(?:->  |    )at (\S+)$", re.MULTILINE)
LOCATION_LINE_RE = re.compile(r"^(?:->       |         )\S*:(\d+)$", re.MULTILINE)


def _functions(report):
    return [m.rsplit("+", 1)[0] for m in FRAME_LINE_RE.findall(report)]


def inner():
    raise Panic("boom")


def middle():
    inner()


def outer():
    middle()


def _only(*names):
    return lambda frame: frame.function.rpartition(".")[2] in names


class TestHandle:
    def test_three_deep_report(self, plain_state, output, exit_recorder):
        with handle(False, predicate=_only("inner", "middle", "outer"), state=plain_state):
            outer()

        report = output.getvalue()
        lines = report.splitlines()
        assert lines[0] == "panic: boom"
        assert lines[1].startswith("->  at ")
        assert lines[2].startswith("->       ")
        assert [f.rpartition(".")[2] for f in _functions(report)] == ["inner", "middle", "outer"]
        line_numbers = [int(n) for n in LOCATION_LINE_RE.findall(report)]
        assert len(line_numbers) == 3
        assert all(n > 0 for n in line_numbers)
        assert exit_recorder.codes == []

    def test_first_frame_is_raise_site(self, plain_state, output):
        with handle(state=plain_state):
            outer()

        report = output.getvalue()
        first_location = LOCATION_LINE_RE.search(report)
        assert int(first_location.group(1)) == inner.__code__.co_firstlineno + 1
        assert _functions(report)[:3] == [f"{__name__}.inner", f"{__name__}.middle", f"{__name__}.outer"]

    def test_no_exception_is_a_no_op(self, plain_state, output, exit_recorder):
        with handle(exit=True, state=plain_state):
            pass
        assert output.getvalue() == ""
        assert exit_recorder.codes == []

    def test_fatal_handle_exits_with_status_2(self, plain_state, output, exit_recorder):
        with handle(exit=True, state=plain_state):
            outer()
        assert output.getvalue().startswith("panic: boom\n")
        assert exit_recorder.codes == [EXIT_CODE] == [2]

    def test_disabled_writes_nothing(self, plain_state, output, exit_recorder):
        disable(plain_state)
        with handle(exit=True, state=plain_state):
            outer()
        assert output.getvalue() == ""
        assert exit_recorder.codes == []

        enable(plain_state)
        with handle(state=plain_state):
            outer()
        assert output.getvalue().startswith("panic: boom\n")

    def test_base_exceptions_propagate(self, plain_state, output):
        with pytest.raises(KeyboardInterrupt):
            with handle(state=plain_state):
                raise KeyboardInterrupt
        assert output.getvalue() == ""

    def test_exception_header(self, plain_state, output):
        with handle(state=plain_state):
            raise ValueError("bad value")
        assert output.getvalue().startswith("panic: ValueError: bad value\n")

    def test_panic_payload_is_printed(self, plain_state, output):
        with handle(state=plain_state):
            raise Panic({"job": 7})
        assert output.getvalue().startswith("panic: {'job': 7}\n")

    def test_decorator(self, plain_state, output):
        @handle(state=plain_state)
        def job(fail):
            if fail:
                raise ValueError("bad")
            return "done"

        assert job(False) == "done"
        assert output.getvalue() == ""

        assert job(True) is None
        report = output.getvalue()
        assert report.startswith("panic: ValueError: bad\n")
        functions = _functions(report)
        assert functions[0].endswith(".job")
        assert not any(f.endswith(".wrapper") for f in functions)
        assert job.__name__ == "job"

    def test_async_decorator(self, plain_state, output):
        @handle(state=plain_state)
        async def job(fail):
            await asyncio.sleep(0)
            if fail:
                raise Panic("async boom")
            return "done"

        assert asyncio.run(job(False)) == "done"
        assert output.getvalue() == ""

        assert asyncio.run(job(True)) is None
        report = output.getvalue()
        assert report.startswith("panic: async boom\n")
        functions = _functions(report)
        assert functions[0].endswith(".job")
        assert not any(f.endswith(".async_wrapper") for f in functions)
        assert job.__name__ == "job"

    def test_writer_failure_is_logged(self, exit_recorder):
        class BrokenWriter:
            def write(self, s):
                raise OSError("disk full")

        messages = []
        logger.enable("stacktrace")
        sink_id = logger.add(messages.append, level="WARNING", format="{message}")
        try:
            state = RenderState(BrokenWriter(), exit=exit_recorder)
            with handle(exit=True, state=state):
                outer()
        finally:
            logger.remove(sink_id)
            logger.disable("stacktrace")

        assert exit_recorder.codes == [2]
        assert any("failed to write panic report" in m for m in messages)


class TestSupervise:
    def test_ok(self):
        result = supervise(lambda x: x * 2, 21)
        assert result == Ok(42)
        assert result.unwrap() == 42

    def test_err_carries_report(self):
        def fail():
            raise ValueError("nope")

        result = supervise(fail)
        assert isinstance(result, Err)
        report = result.unwrap_err()
        assert isinstance(report, CrashReport)
        assert isinstance(report.exception, ValueError)
        assert report.thread_name == threading.current_thread().name

        functions = [f.function for f in report.frames()]
        assert functions[0].endswith("fail")
        assert functions[1].endswith("test_err_carries_report")
        assert not any(f.endswith(".supervise") for f in functions)

    def test_err_reraises(self):
        def fail():
            raise KeyError("k")

        result = supervise(fail)
        with pytest.raises(KeyError):
            result.unwrap()
        with pytest.raises(KeyError):
            result.unwrap_err().reraise()

    def test_base_exceptions_propagate(self):
        def interrupt():
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            supervise(interrupt)


class TestGo:
    def test_successful_task(self, plain_state, output, exit_recorder):
        done = []
        thread = go(lambda: done.append(True), state=plain_state)
        thread.join(5)
        assert done == [True]
        assert output.getvalue() == ""
        assert exit_recorder.codes == []

    def test_failing_task_exits(self, plain_state, output, exit_recorder):
        def task():
            raise Panic("worker failed")

        thread = go(task, state=plain_state, name="worker-1")
        thread.join(5)

        assert thread.name == "worker-1"
        assert thread.daemon
        assert exit_recorder.codes == [2]
        report = output.getvalue()
        assert report.startswith("panic: worker failed\n")
        functions = _functions(report)
        assert functions[0].endswith("task")
        assert functions[-1].endswith("test_failing_task_exits")
        assert not any(f.startswith("threading.") for f in functions)

    def test_disabled_task_writes_nothing(self, plain_state, output, exit_recorder):
        def task():
            raise Panic("quiet")

        plain_state.disable()
        go(task, state=plain_state).join(5)
        assert output.getvalue() == ""
        assert exit_recorder.codes == []

    def test_printer_and_predicate(self, plain_state, output):
        def printer(writer, exc):
            writer.write("custom")

        def task():
            raise Panic("ignored")

        go(task, printer, _only("task"), state=plain_state).join(5)
        report = output.getvalue()
        assert report.startswith("panic: custom\n")
        assert len(_functions(report)) == 1

    def test_concurrent_reports_do_not_interleave(self, plain_state, output, exit_recorder):
        workers = 8
        barrier = threading.Barrier(workers)

        def make(i):
            def work():
                barrier.wait()
                raise Panic(f"worker {i}")

            return work

        threads = [go(make(i), state=plain_state) for i in range(workers)]
        for thread in threads:
            thread.join(5)

        block = r"panic: worker \d\n->  at .*\n->       .*\n\n    at .*\n         .*\n"
        assert re.fullmatch(f"(?:{block}){{{workers}}}", output.getvalue())
        assert exit_recorder.codes == [2] * workers


class TestRenderLock:
    def test_disable_waits_for_render_in_flight(self, exit_recorder):
        class SlowWriter(io.StringIO):
            def __init__(self):
                super().__init__()
                self.started = threading.Event()
                self.timeline = []

            def write(self, s):
                if not self.started.is_set():
                    self.started.set()
                    time.sleep(0.05)
                return super().write(s)

            def flush(self):
                self.timeline.append("render_done")

        writer = SlowWriter()
        state = RenderState(writer, exit=exit_recorder)

        def fail():
            with handle(state=state):
                outer()

        thread = threading.Thread(target=fail)
        thread.start()
        assert writer.started.wait(5)
        state.disable()
        writer.timeline.append("disable_done")
        thread.join(5)

        assert writer.timeline == ["render_done", "disable_done"]
        report = writer.getvalue()
        assert report.startswith("panic: boom\n")
        assert f"{__name__}.inner" in report

        with handle(state=state):
            outer()
        assert writer.getvalue() == report
