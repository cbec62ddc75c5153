"""
Priors over outcomes for maximum entropy models.

A prior writes an additive log score per outcome into the distribution
buffer before the model adds its feature weights.
"""

from typing import Optional, Protocol, Sequence, runtime_checkable

import numpy as np


@runtime_checkable
class Prior(Protocol):
    """Protocol for outcome priors."""

    def log_prior(
        self,
        dist: np.ndarray,
        context: Sequence[int],
        values: Optional[Sequence[float]] = None,
    ) -> None:
        """Fill ``dist`` with the log prior of each outcome for ``context``."""
        ...

    def set_labels(self, outcome_labels: Sequence[str], pred_labels: Sequence[str]) -> None:
        """Receive the label tables of the model the prior is attached to."""
        ...


class UniformPrior:
    """Every outcome is equally likely a priori."""

    def __init__(self):
        self.num_outcomes = 0

    def log_prior(
        self,
        dist: np.ndarray,
        context: Sequence[int],
        values: Optional[Sequence[float]] = None,
    ) -> None:
        dist.fill(0.0)

    def set_labels(self, outcome_labels: Sequence[str], pred_labels: Sequence[str]) -> None:
        self.num_outcomes = len(outcome_labels)


class FixedPrior:
    """Prior given by fixed outcome probabilities, independent of context.

    Args:
        probabilities: Mapping from outcome label to prior probability.
            Outcomes not listed share the remaining mass equally.
    """

    def __init__(self, probabilities: dict):
        self.probabilities = dict(probabilities)
        self._log_probs: Optional[np.ndarray] = None

    def set_labels(self, outcome_labels: Sequence[str], pred_labels: Sequence[str]) -> None:
        listed = sum(self.probabilities.get(label, 0.0) for label in outcome_labels)
        missing = [label for label in outcome_labels if label not in self.probabilities]
        rest = max(0.0, 1.0 - listed) / len(missing) if missing else 0.0
        probs = np.array(
            [self.probabilities.get(label, rest) for label in outcome_labels], dtype=np.float64
        )
        if np.any(probs <= 0):
            raise ValueError("prior probabilities must be positive for every outcome")
        self._log_probs = np.log(probs / probs.sum())

    def log_prior(
        self,
        dist: np.ndarray,
        context: Sequence[int],
        values: Optional[Sequence[float]] = None,
    ) -> None:
        if self._log_probs is None:
            raise RuntimeError("set_labels must be called before log_prior")
        dist[:] = self._log_probs
