"""
Weight-table entries for maximum entropy models.

Each predicate owns one entry: the ids of the outcomes it is active for
(strictly increasing) and one parameter per active outcome. Outcomes that
are not listed contribute nothing for that predicate, which keeps model
evaluation proportional to the number of touched (predicate, outcome) pairs.
"""

from typing import Sequence

import numpy as np


class Context:
    """Read-only parameters of one predicate."""

    __slots__ = ("_outcomes", "_parameters")

    def __init__(self, outcomes: Sequence[int], parameters: Sequence[float]):
        outcomes = np.asarray(outcomes, dtype=np.int64)
        parameters = np.asarray(parameters, dtype=np.float64)
        if outcomes.ndim != 1 or parameters.shape != outcomes.shape:
            raise ValueError(
                f"outcomes and parameters must be 1-D of equal length, "
                f"got {outcomes.shape} and {parameters.shape}"
            )
        if outcomes.size > 1 and np.any(np.diff(outcomes) <= 0):
            raise ValueError("active outcome ids must be strictly increasing")
        self._outcomes = outcomes
        self._parameters = parameters

    @property
    def outcomes(self) -> np.ndarray:
        return self._outcomes

    @property
    def parameters(self) -> np.ndarray:
        return self._parameters

    def __len__(self) -> int:
        return int(self._outcomes.size)

    def freeze(self) -> "Context":
        """Copy of this entry whose arrays cannot be written."""
        outcomes = self._outcomes.copy()
        parameters = self._parameters.copy()
        outcomes.setflags(write=False)
        parameters.setflags(write=False)
        return Context(outcomes, parameters)

    def __repr__(self) -> str:
        pairs = ", ".join(
            f"{o}:{p:.4g}" for o, p in zip(self._outcomes.tolist(), self._parameters.tolist())
        )
        return f"{self.__class__.__name__}({pairs})"


class MutableContext(Context):
    """Entry whose parameters are updated in place during training."""

    __slots__ = ()

    def update_parameter(self, index: int, value: float) -> None:
        self._parameters[index] += value

    def add(self, values: np.ndarray) -> None:
        """Add a vector aligned with the active outcomes."""
        self._parameters += values
