"""
Exception hierarchy for SoulBench.

The statistics layer never raises for numeric input; these errors cover the
inputs the harness reads from disk.
"""

from __future__ import annotations


class SoulBenchError(Exception):
    """Base class for all SoulBench errors."""


class ScenarioConfigError(SoulBenchError):
    """Raised when a scenario file is missing, malformed, or inconsistent."""


class SampleFileError(SoulBenchError):
    """Raised when a raw-sample file cannot be read or validated."""


__all__ = ["SoulBenchError", "ScenarioConfigError", "SampleFileError"]
