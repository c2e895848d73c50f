"""
Scenario and operation interfaces for SoulBench.

A scenario pits two backends against each other on the same logical task
(profile lookup, batch read, analytics rollup, ...). Each backend contributes
one `Operation`: a zero-argument callable the orchestrator times repeatedly.
What the operation does (SQL, a key-value SDK call, anything else) is opaque
to the harness.
"""

from __future__ import annotations

import abc
from typing import Any, Callable, Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class Operation(Protocol):
    """
    One timed unit of work against a single backend.

    Attributes
    ----------
    backend : str
        Label used in reports (e.g., "dynamodb", "dsql").
    """

    backend: str

    def __call__(self) -> Any:
        """Perform the work once. Raising marks this iteration as failed."""
        ...

    def close(self) -> None:
        """Release any client resources. Must be idempotent."""
        ...


@runtime_checkable
class Scenario(Protocol):
    """
    Common interface all benchmark scenarios implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    description : str
        A human-friendly summary of what is being compared.
    expected_winner : str | None
        Backend label the scenario is expected to favour, if any.
    note : str | None
        Free-form caveat printed with the results.
    """

    name: str
    description: str
    expected_winner: Optional[str]
    note: Optional[str]

    def operations(self) -> Tuple[Operation, Operation]:
        """Return the (backend A, backend B) operations to time."""
        ...


class AbstractScenario(abc.ABC):
    """
    Optional ABC helper for class-based scenarios.

    Subclasses set the descriptive attributes and implement `operations`.
    """

    name: str
    description: str = ""
    expected_winner: Optional[str] = None
    note: Optional[str] = None

    @abc.abstractmethod
    def operations(self) -> Tuple[Operation, Operation]:  # pragma: no cover - interface only
        """Return the two operations to time."""
        raise NotImplementedError


class CallableOperation:
    """
    Adapt any zero-argument callable into an Operation.

    Handy for library callers who already hold a client (e.g. a DynamoDB
    table resource) and only want the harness to time it.
    """

    def __init__(
        self,
        backend: str,
        fn: Callable[[], Any],
        on_close: Optional[Callable[[], None]] = None,
    ) -> None:
        self.backend = backend
        self._fn = fn
        self._on_close = on_close
        self._closed = False

    def __call__(self) -> Any:
        return self._fn()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            self._on_close()


class ComparisonScenario(AbstractScenario):
    """
    A scenario assembled from two ready-made operations.
    """

    def __init__(
        self,
        name: str,
        operation_a: Operation,
        operation_b: Operation,
        description: str = "",
        expected_winner: Optional[str] = None,
        note: Optional[str] = None,
    ) -> None:
        self.name = name
        self.description = description
        self.expected_winner = expected_winner
        self.note = note
        self._operations = (operation_a, operation_b)

    def operations(self) -> Tuple[Operation, Operation]:
        return self._operations


__all__ = [
    "AbstractScenario",
    "CallableOperation",
    "ComparisonScenario",
    "Operation",
    "Scenario",
]
