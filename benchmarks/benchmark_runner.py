"""
LazyBatch Benchmark Runner
==========================

Runs all benchmarks, prints a summary table and optionally stores the
raw results as JSON.

Usage:
    python -m benchmarks.benchmark_runner [--iterations N] [--json results.json]
"""

import argparse
import gc
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional

from tabulate import tabulate

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from benchmarks.benchmark_suite import BenchmarkResult, get_all_benchmarks
from lazybatch.utils.helpers import Timer, format_ns, format_overhead


ITERATIONS = 30      # Benchmark iterations
WARMUP = 5           # Warmup iterations


def time_function(func: Callable, args: tuple, iterations: int, warmup: int) -> List[int]:
    """Time a function call over multiple iterations, returning list of ns times."""
    for _ in range(warmup):
        func(*args)

    times = []
    for _ in range(iterations):
        gc.disable()
        try:
            with Timer() as t:
                func(*args)
        finally:
            gc.enable()
        times.append(t.elapsed_ns)
    return times


def check_correctness(result1: Any, result2: Any) -> bool:
    """Check if two results are equivalent."""
    if isinstance(result1, float) and isinstance(result2, float):
        return abs(result1 - result2) <= 1e-9 * max(abs(result1), abs(result2), 1.0)
    return result1 == result2


def run_benchmark_pair(
    name: str,
    category: str,
    baseline_func: Callable,
    baseline_args: tuple,
    lazybatch_func: Callable,
    lazybatch_args: tuple,
    iterations: int = ITERATIONS,
    warmup: int = WARMUP,
) -> BenchmarkResult:
    """Run a single benchmark (baseline vs lazybatch)."""
    result = BenchmarkResult(name=name, category=category)

    try:
        result.baseline_result = baseline_func(*baseline_args)
        result.baseline_times_ns = time_function(baseline_func, baseline_args, iterations, warmup)
    except Exception as e:
        result.error = f"Baseline error: {e}"
        result.correct = False
        return result

    try:
        result.lazybatch_result = lazybatch_func(*lazybatch_args)
        result.lazybatch_times_ns = time_function(lazybatch_func, lazybatch_args, iterations, warmup)
        result.correct = check_correctness(result.baseline_result, result.lazybatch_result)
    except Exception as e:
        result.error = f"LazyBatch error: {e}"
        result.correct = False

    return result


def run_all_benchmarks(iterations: int = ITERATIONS, warmup: int = WARMUP) -> List[BenchmarkResult]:
    """Run all benchmarks and return results."""
    results = []
    for category, benchmarks in get_all_benchmarks().items():
        print(f"  Category: {category.upper()}")
        for name, (baseline_func, baseline_args, lb_func, lb_args) in benchmarks.items():
            print(f"    Running {name}...", flush=True)
            results.append(run_benchmark_pair(
                name, category,
                baseline_func, baseline_args,
                lb_func, lb_args,
                iterations, warmup,
            ))
    return results


def summary_table(results: List[BenchmarkResult]) -> str:
    rows = []
    for r in results:
        if r.error:
            rows.append([r.category, r.name, '-', '-', '-', r.error])
            continue
        rows.append([
            r.category,
            r.name,
            format_ns(r.baseline_median_ns),
            format_ns(r.lazybatch_median_ns),
            format_overhead(r.baseline_median_ns, r.lazybatch_median_ns),
            'OK' if r.correct else 'MISMATCH',
        ])
    return tabulate(
        rows,
        headers=['Category', 'Benchmark', 'Baseline', 'LazyBatch', 'Overhead', 'Status'],
        tablefmt='github',
    )


def save_results(results: List[BenchmarkResult], path: Path):
    payload = {
        'timestamp': datetime.now().isoformat(),
        'python_version': sys.version,
        'results': [
            {
                'name': r.name,
                'category': r.category,
                'baseline_median_ns': r.baseline_median_ns,
                'lazybatch_median_ns': r.lazybatch_median_ns,
                'correct': r.correct,
                'error': r.error,
            }
            for r in results
        ],
    }
    path.write_text(json.dumps(payload, indent=2))


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Run the LazyBatch benchmarks")
    parser.add_argument('--iterations', type=int, default=ITERATIONS)
    parser.add_argument('--warmup', type=int, default=WARMUP)
    parser.add_argument('--json', type=Path, default=None, help="write raw results to this file")
    args = parser.parse_args(argv)

    print("=" * 60)
    print("  LazyBatch Benchmarks")
    print("=" * 60)
    results = run_all_benchmarks(args.iterations, args.warmup)
    print()
    print(summary_table(results))

    if args.json is not None:
        save_results(results, args.json)
        print(f"\nResults written to {args.json}")


if __name__ == '__main__':
    main()
