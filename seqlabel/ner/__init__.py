"""
Named entity recognition on top of the maximum entropy sequence tagger.
"""

from .bio_codec import (
    START,
    CONTINUE,
    OTHER,
    DEFAULT_TYPE,
    split_outcome,
    SequenceCodec,
    BioCodec,
    NameFinderSequenceValidator,
)
from .name_finder import (
    NameSample,
    generate_events,
    name_sample_events,
    drop_overlapping_spans,
    NameFinder,
)
from .evaluator import NameFinderEvaluator

__all__ = [
    "START",
    "CONTINUE",
    "OTHER",
    "DEFAULT_TYPE",
    "split_outcome",
    "SequenceCodec",
    "BioCodec",
    "NameFinderSequenceValidator",
    "NameSample",
    "generate_events",
    "name_sample_events",
    "drop_overlapping_spans",
    "NameFinder",
    "NameFinderEvaluator",
]
