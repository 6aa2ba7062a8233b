"""Timing helpers for the benchmark suite."""

import time


class Timer:
    """High-resolution timer used as context manager."""

    def __init__(self):
        self.start_ns = 0
        self.end_ns = 0

    def __enter__(self):
        self.start_ns = time.perf_counter_ns()
        return self

    def __exit__(self, *exc):
        self.end_ns = time.perf_counter_ns()

    @property
    def elapsed_ns(self) -> int:
        return self.end_ns - self.start_ns

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_ns / 1_000_000.0


def format_ns(ns: float) -> str:
    """Format nanoseconds into a human-readable string."""
    if ns < 1_000:
        return f"{ns:.0f} ns"
    elif ns < 1_000_000:
        return f"{ns / 1_000:.1f} µs"
    elif ns < 1_000_000_000:
        return f"{ns / 1_000_000:.2f} ms"
    return f"{ns / 1_000_000_000:.3f} s"


def format_overhead(baseline_ns: float, measured_ns: float) -> str:
    """How much slower ``measured_ns`` is than the plain-Python baseline."""
    if baseline_ns <= 0:
        return "n/a"
    return f"{measured_ns / baseline_ns:.1f}x"
