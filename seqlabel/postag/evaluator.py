"""
Word accuracy of a part-of-speech tagger.
"""

from typing import Iterable, Optional

from ..evaluation import EvaluationMonitor, Evaluator, Mean
from .tagger import POSSample, POSTagger


class POSEvaluator(Evaluator[POSSample]):
    """
    Fraction of tokens whose predicted tag equals the reference tag.

    Args:
        tagger: The tagger under evaluation
        monitors: Notified of each sample after it is processed
    """

    def __init__(
        self,
        tagger: POSTagger,
        monitors: Optional[Iterable[EvaluationMonitor]] = None,
    ):
        super().__init__(monitors)
        self.tagger = tagger
        self._word_accuracy = Mean()

    def process_sample(self, reference: POSSample) -> POSSample:
        predicted = self.tagger.tag(reference.sentence)
        for expected, actual in zip(reference.tags, predicted):
            self._word_accuracy.add(1.0 if expected == actual else 0.0)
        return POSSample(reference.sentence, predicted)

    @property
    def word_accuracy(self) -> float:
        return self._word_accuracy.mean()

    @property
    def word_count(self) -> int:
        return self._word_accuracy.count()

    def __repr__(self) -> str:
        return f"Accuracy: {self.word_accuracy:.4f} Number of Samples: {self.word_count}"


__all__ = ["POSEvaluator"]
