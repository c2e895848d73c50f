"""
Latency timing utilities for SoulBench.

Wraps `time.perf_counter_ns` so every measurement in the project is taken the
same way and reported as float milliseconds with sub-millisecond precision.

Usage examples:
    from soulbench.utils.timer import measure_ms, timed

    rows, elapsed_ms = measure_ms(cursor.fetchall)

    samples = SampleSet("dsql")
    with timed(samples):
        run_query()
"""

from __future__ import annotations

import contextlib
import functools
import time
from typing import Any, Callable, Generator, Optional, Tuple, TypeVar

from soulbench.domain.models import SampleSet

T = TypeVar("T")

_NS_PER_MS = 1_000_000


def _elapsed_ms(start_ns: int) -> float:
    return (time.perf_counter_ns() - start_ns) / _NS_PER_MS


def measure_ms(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Tuple[T, float]:
    """
    Call `fn` and return its result together with the elapsed milliseconds.

    Exceptions from `fn` propagate untouched; nothing is measured for them.
    """
    start = time.perf_counter_ns()
    result = fn(*args, **kwargs)
    return result, _elapsed_ms(start)


@contextlib.contextmanager
def timed(samples: SampleSet) -> Generator[None, None, None]:
    """
    Context manager that appends the block's elapsed time to `samples`.

    The sample is recorded only when the block completes; a failed call must
    not contribute a misleadingly short timing.
    """
    start = time.perf_counter_ns()
    yield
    samples.append(_elapsed_ms(start))


def timed_function(
    samples: SampleSet,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator recording every successful call of the wrapped function.

    Example
    -------
        samples = SampleSet("dynamo")

        @timed_function(samples)
        def get_profile():
            ...

        for _ in range(50):
            get_profile()
        compute_stats(samples)
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            with timed(samples):
                return func(*args, **kwargs)

        return wrapper

    return decorator


def progress_step(iterations: int, fraction: float = 0.1) -> Optional[int]:
    """Iteration interval at which to log progress, or None for tiny runs."""
    if iterations < 10:
        return None
    return max(1, int(iterations * fraction))


__all__ = ["measure_ms", "timed", "timed_function", "progress_step"]
