"""
Maximum entropy part-of-speech tagger.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np

from ..config import TrainingParameters
from ..core.types import Event
from ..logging import get_logger
from ..maxent import GISModel, Prior, train_model
from ..sequence_models import (
    DEFAULT_BEAM_SIZE,
    BeamSearch,
    BeamSearchContextGenerator,
    Sequence as LabelSequence,
    TokenContextGenerator,
)

logger = get_logger(__name__)

NAMESPACE = "postag"


@dataclass
class POSSample:
    """A tokenized sentence with one tag per token."""

    sentence: List[str]
    tags: List[str]

    def __post_init__(self):
        self.sentence = list(self.sentence)
        self.tags = list(self.tags)
        if len(self.sentence) != len(self.tags):
            raise ValueError(
                f"{len(self.sentence)} tokens but {len(self.tags)} tags"
            )


class TagDictionary:
    """Maps words to the tags they may receive.

    Args:
        entries: Word to allowed tags
        case_sensitive: Look words up as given instead of lowercased
    """

    def __init__(self, entries: Optional[Dict[str, Iterable[str]]] = None, case_sensitive: bool = True):
        self.case_sensitive = case_sensitive
        self._entries: Dict[str, Set[str]] = {}
        for word, tags in (entries or {}).items():
            self.put(word, tags)

    def _key(self, word: str) -> str:
        return word if self.case_sensitive else word.lower()

    def put(self, word: str, tags: Iterable[str]) -> None:
        self._entries[self._key(word)] = set(tags)

    def get_tags(self, word: str) -> Optional[Set[str]]:
        """Allowed tags of ``word``, or None if the word is unknown."""
        return self._entries.get(self._key(word))

    def __contains__(self, word: str) -> bool:
        return self._key(word) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def from_samples(
        cls, samples: Iterable[POSSample], cutoff: int = 1, case_sensitive: bool = True
    ) -> "TagDictionary":
        """Dictionary of the tags each word received in ``samples``.

        Only words seen at least ``cutoff`` times are entered.
        """
        counts: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        for sample in samples:
            for word, tag in zip(sample.sentence, sample.tags):
                key = word if case_sensitive else word.lower()
                counts[key][tag] += 1

        dictionary = cls(case_sensitive=case_sensitive)
        for word, tag_counts in counts.items():
            if sum(tag_counts.values()) >= cutoff:
                dictionary.put(word, tag_counts.keys())
        return dictionary


class TagDictionaryValidator:
    """Restricts each known word to its dictionary tags."""

    def __init__(self, tag_dictionary: TagDictionary):
        self.tag_dictionary = tag_dictionary

    def valid_sequence(
        self,
        index: int,
        tokens: Sequence[str],
        outcomes_so_far: Sequence[str],
        outcome: str,
    ) -> bool:
        tags = self.tag_dictionary.get_tags(tokens[index])
        if tags is None:
            return True
        return outcome in tags


def pos_sample_events(
    samples: Iterable[POSSample], context_generator: BeamSearchContextGenerator
) -> Iterable[Event]:
    """One training event per token of every sample."""
    for sample in samples:
        for i, tag in enumerate(sample.tags):
            yield Event(tag, context_generator.get_context(i, sample.sentence, sample.tags))


class POSTagger:
    """Tags tokens with parts of speech.

    Args:
        model: Model trained on POS sample events
        context_generator: Must match the generator used in training
        beam_size: Number of partial tag sequences kept per token
        tag_dictionary: Restricts known words to their dictionary tags
    """

    def __init__(
        self,
        model: GISModel,
        context_generator: Optional[BeamSearchContextGenerator] = None,
        beam_size: int = DEFAULT_BEAM_SIZE,
        tag_dictionary: Optional[TagDictionary] = None,
    ):
        self.model = model
        self.size = beam_size
        self.context_generator = context_generator or TokenContextGenerator()
        self.tag_dictionary = tag_dictionary
        validator = TagDictionaryValidator(tag_dictionary) if tag_dictionary is not None else None
        self.beam = BeamSearch(beam_size, self.context_generator, model, validator)
        self._best_sequence: Optional[LabelSequence] = None

    @property
    def num_tags(self) -> int:
        return self.model.num_outcomes

    def tag(self, tokens: Sequence[str], additional_context=None) -> List[str]:
        """Most probable tag of each token."""
        self._best_sequence = self.beam.best_sequence(tokens, additional_context)
        return self._best_sequence.outcomes

    def tag_top_k(self, num_taggings: int, tokens: Sequence[str]) -> List[List[str]]:
        """Up to ``num_taggings`` alternative taggings, best first."""
        sequences = self.beam.best_sequences(num_taggings, tokens)
        return [s.outcomes for s in sequences]

    def top_k_sequences(self, tokens: Sequence[str], additional_context=None) -> List[LabelSequence]:
        """Every sequence left in the beam, best first."""
        return self.beam.best_sequences(self.size, tokens, additional_context)

    def probs(self) -> List[float]:
        """Per-token probabilities of the last tagged sentence."""
        if self._best_sequence is None:
            raise ValueError("tag must be called before probs")
        return self._best_sequence.probs

    def get_ordered_tags(
        self, tokens: Sequence[str], tags: Sequence[str], index: int
    ) -> Tuple[List[str], List[float]]:
        """All tags for position ``index`` ordered by probability.

        ``tags`` supplies the history the context generator sees.

        Returns:
            Tags, most probable first, and their probabilities
        """
        probs = self.model.eval(self.context_generator.get_context(index, tokens, tags))
        order = np.argsort(-probs, kind="stable")
        return (
            [self.model.get_outcome(int(i)) for i in order],
            [float(probs[i]) for i in order],
        )

    @staticmethod
    def train(
        samples: Iterable[POSSample],
        params: Optional[TrainingParameters] = None,
        context_generator: Optional[BeamSearchContextGenerator] = None,
        prior: Optional[Prior] = None,
    ) -> GISModel:
        """Train a POS model.

        Parameters are read from the ``postag`` namespace, falling back to
        the global settings.
        """
        context_generator = context_generator or TokenContextGenerator()
        events = list(pos_sample_events(samples, context_generator))
        logger.info("Generated %d POS tagger events", len(events))
        return train_model(events, params, prior=prior, namespace=NAMESPACE)


__all__ = [
    "NAMESPACE",
    "POSSample",
    "TagDictionary",
    "TagDictionaryValidator",
    "pos_sample_events",
    "POSTagger",
]
