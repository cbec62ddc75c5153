"""
Part-of-speech tagging on top of the maximum entropy sequence tagger.
"""

from .tagger import (
    POSSample,
    TagDictionary,
    TagDictionaryValidator,
    pos_sample_events,
    POSTagger,
)
from .evaluator import POSEvaluator

__all__ = [
    "POSSample",
    "TagDictionary",
    "TagDictionaryValidator",
    "pos_sample_events",
    "POSTagger",
    "POSEvaluator",
]
