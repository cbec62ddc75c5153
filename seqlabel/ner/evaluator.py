"""
Span-level evaluation of a name finder.
"""

from typing import Iterable, Optional

from ..core.types import Span
from ..evaluation import EvaluationMonitor, Evaluator, FMeasure
from .bio_codec import DEFAULT_TYPE
from .name_finder import NameFinder, NameSample


class NameFinderEvaluator(Evaluator[NameSample]):
    """
    Scores found names against reference names with precision, recall and
    F-measure. Untyped reference names count as ``default`` names.

    Args:
        name_finder: The name finder under evaluation
        monitors: Notified of each sample after it is processed
    """

    def __init__(
        self,
        name_finder: NameFinder,
        monitors: Optional[Iterable[EvaluationMonitor]] = None,
    ):
        super().__init__(monitors)
        self.name_finder = name_finder
        self.fmeasure = FMeasure()

    def process_sample(self, reference: NameSample) -> NameSample:
        if reference.clear_adaptive_data:
            self.name_finder.clear_adaptive_data()

        predicted = self.name_finder.find(reference.sentence, reference.additional_context)
        references = [
            name if name.type is not None else Span(name.start, name.end, DEFAULT_TYPE)
            for name in reference.names
        ]
        self.fmeasure.update_scores(references, predicted)

        return NameSample(
            reference.sentence,
            predicted,
            reference.additional_context,
            reference.clear_adaptive_data,
        )


__all__ = ["NameFinderEvaluator"]
