"""
Scenario file loading.

A scenario file is JSON naming the backends (label -> DSN) and the scenarios
to run, each with exactly one query per backend:

    {
      "backends": {
        "dynamo_mirror": "postgresql://...",
        "dsql": "postgresql://admin@cluster.dsql.us-east-1.on.aws/postgres"
      },
      "scenarios": [
        {
          "name": "user_profile",
          "description": "Load one soul contract with its events",
          "expected_winner": "dynamo_mirror",
          "operations": [
            {"backend": "dynamo_mirror", "query": "SELECT ...", "params": ["soul-001"]},
            {"backend": "dsql", "query": "SELECT ...", "params": ["soul-001"]}
          ]
        }
      ]
    }

Query text and credentials belong to the user; this module only validates the
shape and wires up `SqlOperation`s.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from soulbench.errors import ScenarioConfigError
from soulbench.scenarios.abstract import ComparisonScenario
from soulbench.scenarios.sql import SqlOperation


class OperationSpec(BaseModel):
    backend: str = Field(..., min_length=1)
    query: str = Field(..., min_length=1)
    params: List[Any] = Field(default_factory=list)


class ScenarioSpec(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    expected_winner: Optional[str] = None
    note: Optional[str] = None
    operations: List[OperationSpec]

    @field_validator("operations")
    @classmethod
    def _exactly_two(cls, value: List[OperationSpec]) -> List[OperationSpec]:
        if len(value) != 2:
            raise ValueError(f"expected exactly 2 operations, got {len(value)}")
        if value[0].backend == value[1].backend:
            raise ValueError("both operations target the same backend")
        return value

    @model_validator(mode="after")
    def _winner_is_a_participant(self) -> "ScenarioSpec":
        labels = {op.backend for op in self.operations}
        if self.expected_winner is not None and self.expected_winner not in labels:
            raise ValueError(
                f"expected_winner '{self.expected_winner}' is not one of {sorted(labels)}"
            )
        return self


class ScenarioFile(BaseModel):
    backends: Dict[str, str]
    scenarios: List[ScenarioSpec]

    @model_validator(mode="after")
    def _check_references(self) -> "ScenarioFile":
        seen: set[str] = set()
        for scenario in self.scenarios:
            if scenario.name in seen:
                raise ValueError(f"duplicate scenario name '{scenario.name}'")
            seen.add(scenario.name)
            for op in scenario.operations:
                if op.backend not in self.backends:
                    raise ValueError(
                        f"scenario '{scenario.name}' uses unknown backend '{op.backend}'"
                    )
        return self


def parse_scenario_file(data: Dict[str, Any]) -> ScenarioFile:
    """Validate an already-decoded scenario document."""
    try:
        return ScenarioFile.model_validate(data)
    except ValidationError as exc:
        raise ScenarioConfigError(f"Invalid scenario file: {exc}") from exc


def build_scenarios(document: ScenarioFile) -> List[ComparisonScenario]:
    """Turn a validated document into runnable scenarios (no connections yet)."""
    scenarios: List[ComparisonScenario] = []
    for spec in document.scenarios:
        op_a, op_b = (
            SqlOperation(
                backend=op.backend,
                dsn=document.backends[op.backend],
                query=op.query,
                params=op.params,
            )
            for op in spec.operations
        )
        scenarios.append(
            ComparisonScenario(
                name=spec.name,
                operation_a=op_a,
                operation_b=op_b,
                description=spec.description,
                expected_winner=spec.expected_winner,
                note=spec.note,
            )
        )
    return scenarios


def load_scenario_file(path: Path | str) -> List[ComparisonScenario]:
    """
    Read, validate, and build the scenarios in `path`.

    Raises
    ------
    ScenarioConfigError
        If the file is missing, is not JSON, or fails validation.
    """
    file_path = Path(path)
    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise ScenarioConfigError(f"Scenario file not found: {file_path}") from exc
    except json.JSONDecodeError as exc:
        raise ScenarioConfigError(f"Scenario file is not valid JSON: {exc}") from exc

    return build_scenarios(parse_scenario_file(data))


__all__ = [
    "OperationSpec",
    "ScenarioFile",
    "ScenarioSpec",
    "build_scenarios",
    "load_scenario_file",
    "parse_scenario_file",
]
