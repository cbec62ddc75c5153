"""
Evaluation Metrics for Sequence Labeling.

Classes:
- Mean: Running arithmetic mean
- FMeasure: Span precision, recall and F-measure
- EvaluationMonitor: Callbacks invoked per evaluated sample
- Evaluator: Base class that runs a tagger over reference samples
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, List, Optional, Protocol, Sequence, TypeVar

from ..logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Mean:
    """Running mean of added values."""

    def __init__(self):
        self._sum = 0.0
        self._count = 0

    def add(self, value: float, count: int = 1) -> None:
        self._sum += value * count
        self._count += count

    def mean(self) -> float:
        """Mean of the added values, 0 when nothing was added."""
        return self._sum / self._count if self._count > 0 else 0.0

    def count(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return f"Mean({self.mean():.4f}, count={self._count})"


class FMeasure:
    """
    Precision, recall and F-measure over predicted and reference items.

    Items are compared with ``==``, so two spans match only when their
    boundaries and types agree. Scores accumulate across calls to
    ``update_scores``.
    """

    def __init__(self):
        self.selected = 0
        self.target = 0
        self.true_positive = 0

    @staticmethod
    def count_true_positives(references: Sequence[Any], predictions: Sequence[Any]) -> int:
        """Number of predictions that also occur among the references."""
        remaining = list(references)
        matches = 0
        for prediction in predictions:
            if prediction in remaining:
                remaining.remove(prediction)
                matches += 1
        return matches

    def update_scores(self, references: Sequence[Any], predictions: Sequence[Any]) -> None:
        self.true_positive += self.count_true_positives(references, predictions)
        self.selected += len(predictions)
        self.target += len(references)

    def merge_into(self, other: "FMeasure") -> None:
        """Add the counts of ``other`` to this measure."""
        self.selected += other.selected
        self.target += other.target
        self.true_positive += other.true_positive

    @property
    def precision(self) -> float:
        return self.true_positive / self.selected if self.selected > 0 else 0.0

    @property
    def recall(self) -> float:
        return self.true_positive / self.target if self.target > 0 else 0.0

    @property
    def f_measure(self) -> float:
        """Harmonic mean of precision and recall, -1 when both are zero."""
        p, r = self.precision, self.recall
        if p + r > 0:
            return 2 * p * r / (p + r)
        return -1.0

    def __repr__(self) -> str:
        return (
            f"Precision: {self.precision:.4f}\n"
            f"Recall: {self.recall:.4f}\n"
            f"F-Measure: {self.f_measure:.4f}"
        )


class EvaluationMonitor(Protocol[T]):
    """Receives every reference sample with the tagger's prediction for it."""

    def correctly_classified(self, reference: T, prediction: T) -> None: ...

    def misclassified(self, reference: T, prediction: T) -> None: ...


class Evaluator(ABC, Generic[T]):
    """
    Runs a tagger over reference samples and accumulates a score.

    Args:
        monitors: Notified of each sample after it is processed
    """

    def __init__(self, monitors: Optional[Iterable[EvaluationMonitor]] = None):
        self.monitors: List[EvaluationMonitor] = list(monitors or [])

    @abstractmethod
    def process_sample(self, reference: T) -> T:
        """Tag ``reference``, update the score, and return the prediction."""
        pass

    def evaluate(self, samples: Iterable[T]) -> "Evaluator[T]":
        count = 0
        for reference in samples:
            prediction = self.process_sample(reference)
            for monitor in self.monitors:
                if prediction == reference:
                    monitor.correctly_classified(reference, prediction)
                else:
                    monitor.misclassified(reference, prediction)
            count += 1
        logger.debug("Evaluated %d samples", count)
        return self
