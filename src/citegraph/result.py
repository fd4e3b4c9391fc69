"""result.py
================
Tagged success/failure values returned by every analysis engine.

Expected domain conditions (bad parameters, an empty graph, a ``k`` above the
degeneracy, an Infomap run that never settles) come back as :class:`Err`
rather than being raised, so callers branch on ``result.ok``:

>>> res = k_core(G, 3)
>>> if res.ok:
...     print(sorted(res.value.nodes))
... else:
...     print(res.error.kind, res.error.details)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, TypeVar, Union

__all__ = [
    "ErrorKind",
    "AlgorithmError",
    "ResultError",
    "Ok",
    "Err",
    "Result",
    "invalid_input",
    "empty_graph",
    "invalid_k",
    "convergence_failure",
]

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories shared by all engines."""

    INVALID_INPUT = "invalid-input"
    EMPTY_GRAPH = "empty-graph"
    INVALID_K = "invalid-k"
    CONVERGENCE_FAILURE = "convergence-failure"


@dataclass(frozen=True)
class AlgorithmError:
    """Why an engine could not produce a value."""

    kind: ErrorKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, **self.details}


class ResultError(RuntimeError):
    """Raised when :meth:`Err.unwrap` is called."""

    def __init__(self, error: AlgorithmError):
        super().__init__(f"{error.kind.value}: {error.message}")
        self.error = error


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: AlgorithmError

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self):
        raise ResultError(self.error)

    def unwrap_or(self, default: Any) -> Any:
        return default


Result = Union[Ok[T], Err]


# ---------------------------------------------------------------------------#
# constructors                                                               #
# ---------------------------------------------------------------------------#


def invalid_input(message: str, **details: Any) -> Err:
    return Err(AlgorithmError(ErrorKind.INVALID_INPUT, message, details))


def empty_graph(message: str = "graph has no nodes") -> Err:
    return Err(AlgorithmError(ErrorKind.EMPTY_GRAPH, message))


def invalid_k(k: int, degeneracy: int) -> Err:
    return Err(
        AlgorithmError(
            ErrorKind.INVALID_K,
            f"no {k}-core exists (degeneracy is {degeneracy})",
            {"k": k, "degeneracy": degeneracy},
        )
    )


def convergence_failure(iterations: int, message: str | None = None) -> Err:
    return Err(
        AlgorithmError(
            ErrorKind.CONVERGENCE_FAILURE,
            message or f"no trial converged within {iterations} iterations",
            {"iterations": iterations},
        )
    )
