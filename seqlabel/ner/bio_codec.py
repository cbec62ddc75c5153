"""
BIO label codec for named entity recognition.

Converts entity spans to per-token labels and back:
- ``{type}-start``: first token of an entity
- ``{type}-continue``: any following token of the same entity
- ``other``: outside every entity

The codec also supplies the sequence validator that keeps the beam search
from emitting a ``-continue`` label that does not extend an open entity of
the same type.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from ..core.types import Span
from ..errors import OutcomeFormatError

START = "start"
CONTINUE = "continue"
OTHER = "other"
DEFAULT_TYPE = "default"

START_SUFFIX = "-" + START
CONTINUE_SUFFIX = "-" + CONTINUE


def split_outcome(outcome: str) -> Tuple[Optional[str], str]:
    """Split a label into (entity type, role).

    The role is ``start``, ``continue`` or ``other``.

    Raises:
        OutcomeFormatError: If the label is not ``other`` and not a typed
            ``-start`` or ``-continue`` label
    """
    if outcome == OTHER:
        return None, OTHER
    for suffix, role in ((START_SUFFIX, START), (CONTINUE_SUFFIX, CONTINUE)):
        if outcome.endswith(suffix):
            name_type = outcome[: -len(suffix)]
            if not name_type:
                raise OutcomeFormatError(
                    f"Outcome {outcome!r} has no entity type", outcome=outcome
                )
            return name_type, role
    raise OutcomeFormatError(
        f"Outcome {outcome!r} is not a start, continue or other label", outcome=outcome
    )


class SequenceCodec(ABC):
    """Abstract base class for span label schemes."""

    @abstractmethod
    def encode(self, spans: Sequence[Span], length: int) -> List[str]:
        """Convert spans to one label per token."""
        pass

    @abstractmethod
    def decode(self, outcomes: Sequence[str]) -> List[Span]:
        """Convert one label per token back to spans."""
        pass

    @abstractmethod
    def create_sequence_validator(self) -> "NameFinderSequenceValidator":
        """Validator rejecting label transitions the scheme forbids."""
        pass

    @abstractmethod
    def are_outcomes_compatible(self, outcomes: Sequence[str]) -> bool:
        """Whether a model with these outcomes can be decoded by this scheme."""
        pass


class BioCodec(SequenceCodec):
    """BIO tagging scheme with ``-start``/``-continue``/``other`` labels.

    Example: ``[Span(0, 2, "PER")]`` over four tokens encodes to
             ``["PER-start", "PER-continue", "other", "other"]``
    """

    def encode(self, spans: Sequence[Span], length: int) -> List[str]:
        """Convert non-overlapping spans to BIO labels."""
        outcomes = [OTHER] * length
        for span in spans:
            if span.end > length:
                raise ValueError(f"{span!r} exceeds sequence length {length}")
            name_type = span.type if span.type is not None else DEFAULT_TYPE
            if span.length == 0:
                continue
            outcomes[span.start] = name_type + START_SUFFIX
            for i in range(span.start + 1, span.end):
                outcomes[i] = name_type + CONTINUE_SUFFIX
        return outcomes

    def decode(self, outcomes: Sequence[str]) -> List[Span]:
        """Convert BIO labels to spans.

        A ``-continue`` label with no open span opens one; ``other`` closes
        the open span.

        Raises:
            OutcomeFormatError: On the first label outside the scheme, with
                its position
        """
        spans: List[Span] = []
        start = -1
        end = -1
        open_type: Optional[str] = None

        for i, outcome in enumerate(outcomes):
            try:
                name_type, role = split_outcome(outcome)
            except OutcomeFormatError as e:
                raise OutcomeFormatError(e.message, outcome=outcome, position=i) from e

            if role == START:
                if start != -1:
                    spans.append(Span(start, end, open_type))
                start, end, open_type = i, i + 1, name_type
            elif role == CONTINUE:
                if start == -1:
                    start, open_type = i, name_type
                end = i + 1
            elif start != -1:
                spans.append(Span(start, end, open_type))
                start, end, open_type = -1, -1, None

        if start != -1:
            spans.append(Span(start, end, open_type))
        return spans

    def create_sequence_validator(self) -> "NameFinderSequenceValidator":
        return NameFinderSequenceValidator()

    def are_outcomes_compatible(self, outcomes: Sequence[str]) -> bool:
        """True iff some ``-start`` label exists and every ``-continue``
        type also has a ``-start`` label. Labels outside the scheme,
        untyped ones included, make the inventory incompatible."""
        start_types = set()
        continue_types = set()
        for outcome in outcomes:
            try:
                name_type, role = split_outcome(outcome)
            except OutcomeFormatError:
                return False
            if role == START:
                start_types.add(name_type)
            elif role == CONTINUE:
                continue_types.add(name_type)

        if not start_types:
            return False
        return continue_types <= start_types


class NameFinderSequenceValidator:
    """Accepts ``-start`` and ``other`` anywhere; ``-continue`` only right
    after a ``-start`` or ``-continue`` of the same type."""

    def valid_sequence(
        self,
        index: int,
        tokens: Sequence[str],
        outcomes_so_far: Sequence[str],
        outcome: str,
    ) -> bool:
        name_type, role = split_outcome(outcome)
        if role != CONTINUE:
            return True
        if not outcomes_so_far:
            return False
        previous_type, previous_role = split_outcome(outcomes_so_far[-1])
        if previous_role == OTHER:
            return False
        return previous_type == name_type


__all__ = [
    "START",
    "CONTINUE",
    "OTHER",
    "DEFAULT_TYPE",
    "split_outcome",
    "SequenceCodec",
    "BioCodec",
    "NameFinderSequenceValidator",
]
