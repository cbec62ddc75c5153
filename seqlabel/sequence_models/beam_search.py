"""
Beam Search Decoding

Approximate search for the most probable label sequence over a token
sequence. A per-position maximum entropy model scores each candidate label,
a context generator turns a partial label history into model features, and
a sequence validator rejects illegal transitions.
"""

import math
from typing import Any, List, Optional, Protocol, Sequence as SequenceType, Tuple, runtime_checkable

import numpy as np

from ..cache import LRUCache
from ..errors import InferenceError
from ..logging import get_logger

logger = get_logger(__name__)

DEFAULT_BEAM_SIZE = 3
ZERO_LOG = -100000.0
MIN_PROB = float(np.finfo(np.float64).tiny)


@runtime_checkable
class BeamSearchContextGenerator(Protocol):
    """Produces the features of one position from the labels decided before it."""

    def get_context(
        self,
        index: int,
        tokens: SequenceType[str],
        prior_outcomes: SequenceType[str],
        additional_context: Optional[Any] = None,
    ) -> List[str]: ...


@runtime_checkable
class SequenceValidator(Protocol):
    """Decides whether ``outcome`` may follow ``outcomes_so_far`` at ``index``."""

    def valid_sequence(
        self,
        index: int,
        tokens: SequenceType[str],
        outcomes_so_far: SequenceType[str],
        outcome: str,
    ) -> bool: ...


@runtime_checkable
class SequenceModel(Protocol):
    """The part of a model the decoder relies on."""

    num_outcomes: int

    def eval(self, context, values=None, outsums=None) -> np.ndarray: ...

    def get_outcome(self, index: int) -> str: ...


class Sequence:
    """A partial or complete label sequence with its cumulative log score.

    Args:
        outcomes: Labels assigned so far
        probs: Probability of each label when it was chosen
        score: Sum of the log probabilities
    """

    __slots__ = ("_outcomes", "_probs", "_score")

    def __init__(
        self,
        outcomes: Optional[SequenceType[str]] = None,
        probs: Optional[SequenceType[float]] = None,
        score: float = 0.0,
    ):
        self._outcomes: List[str] = list(outcomes or [])
        if probs is None:
            probs = [1.0] * len(self._outcomes)
        self._probs: List[float] = [float(p) for p in probs]
        if len(self._probs) != len(self._outcomes):
            raise ValueError(
                f"{len(self._outcomes)} outcomes but {len(self._probs)} probabilities"
            )
        self._score = score

    def extend(self, outcome: str, prob: float) -> "Sequence":
        """New sequence with ``outcome`` appended; this one is left untouched."""
        return Sequence(
            self._outcomes + [outcome],
            self._probs + [prob],
            self._score + math.log(prob),
        )

    @property
    def outcomes(self) -> List[str]:
        return list(self._outcomes)

    @property
    def probs(self) -> List[float]:
        return list(self._probs)

    @property
    def score(self) -> float:
        return self._score

    def __len__(self) -> int:
        return len(self._outcomes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sequence):
            return NotImplemented
        return (
            self._outcomes == other._outcomes
            and self._probs == other._probs
            and self._score == other._score
        )

    def __repr__(self) -> str:
        return f"Sequence(score={self._score:.4f}, outcomes={self._outcomes})"


class BeamSearch:
    """Beam search over label sequences.

    Args:
        size: Number of partial sequences kept at each position
        context_generator: Feature generator for a position
        model: Per-position model
        validator: Transition constraint; every outcome is valid when None
        cache_size: Number of evaluated contexts to memoize (0 disables)
    """

    def __init__(
        self,
        size: int,
        context_generator: BeamSearchContextGenerator,
        model: SequenceModel,
        validator: Optional[SequenceValidator] = None,
        cache_size: int = 0,
    ):
        if size < 1:
            raise ValueError(f"beam size must be at least 1: {size}")
        self.size = size
        self.context_generator = context_generator
        self.model = model
        self.validator = validator
        self.contexts_cache: Optional[LRUCache] = LRUCache(cache_size) if cache_size > 0 else None

    def _valid_sequence(
        self, index: int, tokens: SequenceType[str], outcomes: SequenceType[str], outcome: str
    ) -> bool:
        if self.validator is None:
            return True
        return self.validator.valid_sequence(index, tokens, outcomes, outcome)

    def _eval(self, context: List[str]) -> np.ndarray:
        if self.contexts_cache is None:
            return self.model.eval(context)
        return self.contexts_cache.get_or_set(tuple(context), lambda: self._frozen_eval(context))

    def _frozen_eval(self, context: List[str]) -> np.ndarray:
        scores = self.model.eval(context)
        scores.setflags(write=False)
        return scores

    def _advance(
        self,
        index: int,
        tokens: SequenceType[str],
        scored: List[Tuple[Sequence, np.ndarray]],
        min_sequence_score: float,
        include_zero: bool,
    ) -> List[Sequence]:
        """Extend each beam member with every valid outcome.

        Outcomes of zero probability are skipped unless ``include_zero`` is
        set, in which case their probability is raised to ``MIN_PROB``.
        """
        successors: List[Sequence] = []
        for top, scores in scored:
            history = top.outcomes
            for oi, prob in enumerate(scores):
                if prob <= 0:
                    if not include_zero:
                        continue
                    prob = MIN_PROB
                outcome = self.model.get_outcome(oi)
                if not self._valid_sequence(index, tokens, history, outcome):
                    continue
                successor = top.extend(outcome, float(prob))
                if successor.score > min_sequence_score:
                    successors.append(successor)
        return successors

    def best_sequences(
        self,
        num_sequences: int,
        tokens: SequenceType[str],
        additional_context: Optional[Any] = None,
        min_sequence_score: float = ZERO_LOG,
    ) -> List[Sequence]:
        """Top ranked label sequences for ``tokens``.

        Args:
            num_sequences: Maximum number of sequences to return
            tokens: The input sequence
            additional_context: Passed to the context generator unchanged
            min_sequence_score: Successors scoring at or below this are dropped

        Returns:
            Up to ``num_sequences`` complete sequences, best first

        Raises:
            InferenceError: If no partial sequence can be extended at some
                position
        """
        beam: List[Sequence] = [Sequence()]

        for i in range(len(tokens)):
            scored = []
            for top in beam:
                context = self.context_generator.get_context(
                    i, tokens, top.outcomes, additional_context
                )
                scored.append((top, self._eval(context)))

            successors = self._advance(i, tokens, scored, min_sequence_score, False)
            if not successors:
                # no valid outcome kept a nonzero probability
                logger.debug("Advancing all valid outcomes at position %d", i)
                successors = self._advance(i, tokens, scored, min_sequence_score, True)

            if not successors:
                raise InferenceError(
                    f"No valid continuation at position {i} for token {tokens[i]!r}",
                    position=i,
                )

            # stable sort, ties keep generation order
            successors.sort(key=lambda s: s.score, reverse=True)
            beam = successors[: self.size]

        return beam[: max(0, num_sequences)]

    def best_sequence(
        self, tokens: SequenceType[str], additional_context: Optional[Any] = None
    ) -> Sequence:
        """The single best label sequence for ``tokens``."""
        return self.best_sequences(1, tokens, additional_context)[0]


__all__ = [
    "DEFAULT_BEAM_SIZE",
    "ZERO_LOG",
    "MIN_PROB",
    "BeamSearchContextGenerator",
    "SequenceValidator",
    "SequenceModel",
    "Sequence",
    "BeamSearch",
]
