"""
Scenarios package for SoulBench.

Re-exports the scenario/operation interfaces, the SQL operation, and the
scenario file loader so callers can import from `soulbench.scenarios`.
"""

from soulbench.scenarios.abstract import (
    AbstractScenario,
    CallableOperation,
    ComparisonScenario,
    Operation,
    Scenario,
)
from soulbench.scenarios.loader import load_scenario_file
from soulbench.scenarios.sql import SqlOperation

__all__ = [
    # Abstracts
    "AbstractScenario",
    "Operation",
    "Scenario",
    # Concrete
    "CallableOperation",
    "ComparisonScenario",
    "SqlOperation",
    # Loading
    "load_scenario_file",
]
