"""
LazyBatch Benchmark Suite
=========================

Workloads comparing plain Python against the same work expressed with
LazyBatch, grouped by category:

1. **Sequence**: query operators
   - where / select chains
   - group_by with an aggregate per group
   - multi-level ordering
   - distinct over unhashable items

2. **Compiler**: lambda strings
   - compilation (cold cache)
   - invocation of a compiled lambda

3. **Batch**: pipelines of operations
   - many small steps
   - steps with before/after/complete hooks

Methodology
-----------
- Each benchmark runs N iterations after W warmup iterations
- Time is measured with time.perf_counter_ns()
- Overhead is reported as lazybatch_median / baseline_median
"""

import statistics
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from lazybatch import LambdaCompiler, from_array, new_batch


@dataclass
class BenchmarkResult:
    """Result of a single benchmark."""
    name: str
    category: str
    baseline_times_ns: List[int] = field(default_factory=list)
    lazybatch_times_ns: List[int] = field(default_factory=list)
    baseline_result: Any = None
    lazybatch_result: Any = None
    correct: bool = True
    error: Optional[str] = None

    @property
    def baseline_median_ns(self) -> float:
        return statistics.median(self.baseline_times_ns) if self.baseline_times_ns else 0

    @property
    def lazybatch_median_ns(self) -> float:
        return statistics.median(self.lazybatch_times_ns) if self.lazybatch_times_ns else 0


def _records(n: int) -> List[Dict[str, Any]]:
    return [
        {'id': i, 'group': i % 17, 'score': (i * 7919) % 1000, 'name': f"item-{i % 113}"}
        for i in range(n)
    ]


class SequenceBenchmarks:
    """Query operators against list comprehensions and builtins."""

    @staticmethod
    def filter_project_baseline(items):
        return [x['score'] * 2 for x in items if x['score'] % 3 == 0]

    @staticmethod
    def filter_project_lazybatch(items):
        return (from_array(items)
                .where("x => x.score % 3 == 0")
                .select("x => x.score * 2")
                .to_array())

    @staticmethod
    def group_sum_baseline(items):
        totals: Dict[int, int] = {}
        for x in items:
            totals[x['group']] = totals.get(x['group'], 0) + x['score']
        return totals

    @staticmethod
    def group_sum_lazybatch(items):
        return {
            g.key: g.select("x => x.score").sum()
            for g in from_array(items).group_by("x => x.group")
        }

    @staticmethod
    def ordering_baseline(items):
        return sorted(items, key=lambda x: (x['group'], -x['score'], x['id']))

    @staticmethod
    def ordering_lazybatch(items):
        return (from_array(items)
                .order_by("x => x.group")
                .then_by_descending("x => x.score")
                .then_by("x => x.id")
                .to_array())

    @staticmethod
    def distinct_baseline(items):
        seen = []
        for x in items:
            key = {'name': x['name']}
            if key not in seen:
                seen.append(key)
        return seen

    @staticmethod
    def distinct_lazybatch(items):
        return from_array(items).select(lambda x: {'name': x['name']}).distinct().to_array()


class CompilerBenchmarks:
    """Lambda strings against Python lambdas."""

    EXPRESSIONS = [f"x => x * {i} + {i}" for i in range(50)]

    @staticmethod
    def compile_baseline(expressions):
        return len([lambda x, i=i: x * i + i for i, _ in enumerate(expressions)])

    @staticmethod
    def compile_lazybatch(expressions):
        compiler = LambdaCompiler(cache_size=0)
        return len([compiler.compile(e) for e in expressions])

    @staticmethod
    def invoke_baseline(n):
        f = lambda x: x * 2 + 1
        return sum(f(i) for i in range(n))

    @staticmethod
    def invoke_lazybatch(n):
        f = LambdaCompiler().compile("x => x * 2 + 1")
        return sum(f(i) for i in range(n))


class BatchBenchmarks:
    """Batch pipelines against a plain loop over step functions."""

    @staticmethod
    def steps_baseline(n):
        value = 0
        steps = [lambda v: v + 1] * n
        for step in steps:
            value = step(value)
        return value

    @staticmethod
    def steps_lazybatch(n):
        op = new_batch(lambda ctx: ctx.set_result_and_value(0))
        for _ in range(n):
            op = op.next(lambda ctx: ctx.set_result_and_value(ctx.value + 1))
        return op.start()

    @staticmethod
    def hooks_baseline(n):
        events = []
        for i in range(n):
            events.append('before')
            events.append(i)
            events.append('after')
            events.append('complete')
        return len(events)

    @staticmethod
    def hooks_lazybatch(n):
        events = []
        op = new_batch(lambda ctx: events.append(ctx.index)).before(
            lambda ctx: events.append('before')).after(
            lambda ctx: events.append('after'))
        for _ in range(n - 1):
            op = op.next(lambda ctx: events.append(ctx.index))
            op.complete(lambda ctx: events.append('complete'))
        op.batch.first_operation.complete(lambda ctx: events.append('complete'))
        op.start()
        return len(events)


def get_all_benchmarks() -> Dict[str, Dict[str, Tuple[Callable, tuple, Callable, tuple]]]:
    """
    Return all benchmarks organized by category.

    Returns a dict:
        { category: { name: (baseline_func, args, lazybatch_func, args) } }
    """
    records = _records(5000)
    small = _records(500)

    return {
        'sequence': {
            'filter_project': (
                SequenceBenchmarks.filter_project_baseline, (records,),
                SequenceBenchmarks.filter_project_lazybatch, (records,),
            ),
            'group_sum': (
                SequenceBenchmarks.group_sum_baseline, (records,),
                SequenceBenchmarks.group_sum_lazybatch, (records,),
            ),
            'ordering': (
                SequenceBenchmarks.ordering_baseline, (records,),
                SequenceBenchmarks.ordering_lazybatch, (records,),
            ),
            'distinct': (
                SequenceBenchmarks.distinct_baseline, (small,),
                SequenceBenchmarks.distinct_lazybatch, (small,),
            ),
        },
        'compiler': {
            'compile': (
                CompilerBenchmarks.compile_baseline, (CompilerBenchmarks.EXPRESSIONS,),
                CompilerBenchmarks.compile_lazybatch, (CompilerBenchmarks.EXPRESSIONS,),
            ),
            'invoke': (
                CompilerBenchmarks.invoke_baseline, (10000,),
                CompilerBenchmarks.invoke_lazybatch, (10000,),
            ),
        },
        'batch': {
            'steps': (
                BatchBenchmarks.steps_baseline, (200,),
                BatchBenchmarks.steps_lazybatch, (200,),
            ),
            'hooks': (
                BatchBenchmarks.hooks_baseline, (200,),
                BatchBenchmarks.hooks_lazybatch, (200,),
            ),
        },
    }
