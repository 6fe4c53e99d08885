"""Micro-benchmarks for the panic reporting path.

Usage
-----
    uv run python benchmarks/benchmark_runner.py --runs 5000

Each run raises a panic at the bottom of a call chain and recovers it with
``handle()``; the report is rendered into a discarding writer, so the timing
covers capture, filtering and formatting but no I/O.
"""

from __future__ import annotations

import argparse
import statistics
import time
from typing import Iterable

from stacktrace import DISCARD, Panic, RenderState, handle


def _chain(depth: int) -> None:
    if depth == 0:
        raise Panic("benchmark")
    _chain(depth - 1)


def _run_once(state: RenderState, depth: int) -> None:
    with handle(state=state):
        _chain(depth)


def benchmark(
    runs: int,
    *,
    depth: int,
    color: bool,
    label: str = "handle"
) -> dict[str, float]:
    """Time ``runs`` recovered panics raised ``depth`` calls deep."""
    state = RenderState(DISCARD, color=color)
    timings: list[float] = []

    for _ in range(runs):
        start = time.perf_counter()
        _run_once(state, depth)
        elapsed = (time.perf_counter() - start) * 1000.0
        timings.append(elapsed)

    return {
        "label": label,
        "runs": runs,
        "depth": depth,
        "min_ms": min(timings),
        "max_ms": max(timings),
        "mean_ms": statistics.mean(timings),
        "median_ms": statistics.median(timings),
    }


def format_report(results: Iterable[tuple[str, dict[str, float]]]) -> str:
    lines = ["stacktrace benchmark results:"]
    for label, stats in results:
        lines.append(f"  {label}:")
        lines.append(
            "    runs={runs} depth={depth} | min={min_ms:.3f}ms "
            "median={median_ms:.3f}ms mean={mean_ms:.3f}ms max={max_ms:.3f}ms".format(**stats)
        )
    return "\n".join(lines)


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark panic capture and rendering")
    parser.add_argument("--runs", type=int, default=1000, help="Number of recovered panics")
    parser.add_argument(
        "--depth",
        type=int,
        default=16,
        help="Call chain depth below the handler",
    )
    args = parser.parse_args()

    plain = benchmark(args.runs, depth=args.depth, color=False, label="plain")
    colored = benchmark(args.runs, depth=args.depth, color=True, label="color")
    print(format_report([("handle (plain)", plain), ("handle (color)", colored)]))


if __name__ == "__main__":  # pragma: no cover - CLI script
    main()
