"""
Maximum entropy name finder.

Binds a trained model, a context generator and the BIO codec to a beam
search decoder that tags every token and returns the entity spans found.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from ..config import TrainingParameters
from ..core.types import Event, Span
from ..errors import ValidationError
from ..logging import get_logger
from ..maxent import GISModel, Prior, train_model
from ..sequence_models import (
    DEFAULT_BEAM_SIZE,
    AdaptiveContextGenerator,
    BeamSearch,
    Sequence as LabelSequence,
    SequenceValidator,
    TokenContextGenerator,
)
from .bio_codec import BioCodec, SequenceCodec

logger = get_logger(__name__)

NAMESPACE = "ner"


@dataclass
class NameSample:
    """A tokenized sentence with its annotated names.

    Attributes:
        sentence: Tokens of the sentence
        names: Name spans over the tokens
        additional_context: Optional extra features per token
        clear_adaptive_data: Start of a new document
    """

    sentence: List[str]
    names: List[Span] = field(default_factory=list)
    additional_context: Optional[List[List[str]]] = None
    clear_adaptive_data: bool = False

    def __post_init__(self):
        self.sentence = list(self.sentence)
        self.names = list(self.names)
        for name in self.names:
            if name.end > len(self.sentence):
                raise ValueError(
                    f"{name!r} exceeds sentence of {len(self.sentence)} tokens"
                )


def generate_events(
    tokens: Sequence[str],
    outcomes: Sequence[str],
    context_generator: AdaptiveContextGenerator,
    additional_context: Optional[Sequence[Sequence[str]]] = None,
) -> List[Event]:
    """One event per token, then remember the sentence's labels."""
    events = [
        Event(outcomes[i], context_generator.get_context(i, tokens, outcomes, additional_context))
        for i in range(len(outcomes))
    ]
    context_generator.update_adaptive_data(tokens, outcomes)
    return events


def name_sample_events(
    samples: Iterable[NameSample],
    context_generator: AdaptiveContextGenerator,
    codec: Optional[SequenceCodec] = None,
    name_type: Optional[str] = None,
) -> Iterable[Event]:
    """Training events of every sample.

    Args:
        samples: Annotated sentences
        context_generator: Generator whose adaptive data follows the samples
        codec: Label scheme (BIO by default)
        name_type: Overrides the type of every name when given
    """
    codec = codec or BioCodec()
    for sample in samples:
        if sample.clear_adaptive_data:
            context_generator.clear_adaptive_data()
        names = sample.names
        if name_type is not None:
            names = [Span(n.start, n.end, name_type) for n in names]
        outcomes = codec.encode(names, len(sample.sentence))
        yield from generate_events(
            sample.sentence, outcomes, context_generator, sample.additional_context
        )


def drop_overlapping_spans(spans: Iterable[Span]) -> List[Span]:
    """Sort ``spans`` and drop every span intersecting an earlier kept one."""
    kept: List[Span] = []
    for span in sorted(spans):
        if kept and kept[-1].intersects(span):
            continue
        kept.append(span)
    return kept


class NameFinder:
    """Finds names in tokenized sentences.

    Args:
        model: Model trained on name sample events
        context_generator: Must match the generator used in training
        beam_size: Number of partial label sequences kept per token
        validator: Transition constraint (the codec's validator by default)
        codec: Label scheme (BIO by default)

    Raises:
        ValidationError: If the model's outcomes do not fit the codec
    """

    def __init__(
        self,
        model: GISModel,
        context_generator: Optional[AdaptiveContextGenerator] = None,
        beam_size: int = DEFAULT_BEAM_SIZE,
        validator: Optional[SequenceValidator] = None,
        codec: Optional[SequenceCodec] = None,
    ):
        self.codec = codec or BioCodec()
        if not self.codec.are_outcomes_compatible(model.outcome_labels):
            raise ValidationError(
                "Model outcomes are not compatible with the name finder label scheme",
                field="outcomes",
                actual=list(model.outcome_labels),
            )
        self.model = model
        self.context_generator = context_generator or TokenContextGenerator()
        self.beam = BeamSearch(
            beam_size,
            self.context_generator,
            model,
            validator or self.codec.create_sequence_validator(),
        )
        self._best_sequence: Optional[LabelSequence] = None

    def find(
        self,
        tokens: Sequence[str],
        additional_context: Optional[Sequence[Sequence[str]]] = None,
    ) -> List[Span]:
        """Names in ``tokens``.

        Args:
            tokens: Tokens of one sentence
            additional_context: Optional extra features per token

        Returns:
            Name spans, in sentence order
        """
        self._best_sequence = self.beam.best_sequence(tokens, additional_context)
        outcomes = self._best_sequence.outcomes
        self.context_generator.update_adaptive_data(tokens, outcomes)
        return self.codec.decode(outcomes)

    def clear_adaptive_data(self) -> None:
        """Forget previous decisions; call at the end of a document."""
        self.context_generator.clear_adaptive_data()

    def probs(self) -> List[float]:
        """Per-token probabilities of the last decoded sentence."""
        if self._best_sequence is None:
            raise ValueError("find must be called before probs")
        return self._best_sequence.probs

    def span_probs(self, spans: Sequence[Span]) -> List[float]:
        """Mean token probability of each span of the last decoded sentence."""
        probs = self.probs()
        result = []
        for span in spans:
            if span.length == 0:
                result.append(0.0)
                continue
            result.append(sum(probs[span.start : span.end]) / span.length)
        return result

    @staticmethod
    def train(
        samples: Iterable[NameSample],
        params: Optional[TrainingParameters] = None,
        context_generator: Optional[AdaptiveContextGenerator] = None,
        name_type: Optional[str] = None,
        prior: Optional[Prior] = None,
    ) -> GISModel:
        """Train a name finder model.

        Parameters are read from the ``ner`` namespace, falling back to
        the global settings.

        Args:
            samples: Annotated sentences
            params: Training parameters (defaults when omitted)
            context_generator: Feature generator (token window by default)
            name_type: Overrides the type of every name when given
            prior: Outcome prior (uniform by default)
        """
        context_generator = context_generator or TokenContextGenerator()
        events = list(name_sample_events(samples, context_generator, name_type=name_type))
        context_generator.clear_adaptive_data()
        logger.info("Generated %d name finder events", len(events))
        return train_model(events, params, prior=prior, namespace=NAMESPACE)


__all__ = [
    "NAMESPACE",
    "NameSample",
    "generate_events",
    "name_sample_events",
    "drop_overlapping_spans",
    "NameFinder",
]
