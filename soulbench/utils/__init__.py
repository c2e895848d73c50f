"""
Utilities package for SoulBench.

Exports shared helpers for logging and latency timing.
Keep this package lightweight and free of domain-specific logic.
"""

from soulbench.utils.logging import configure_logging, get_logger
from soulbench.utils.timer import measure_ms, progress_step, timed, timed_function

__all__ = [
    "configure_logging",
    "get_logger",
    "measure_ms",
    "progress_step",
    "timed",
    "timed_function",
]
