"""Core types shared by the trainer, the decoders and the label codecs."""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class Span:
    """Half-open interval ``[start, end)`` over token positions.

    Spans order by start, then end, then type (untyped spans first).
    """

    start: int
    end: int
    type: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"start index must be zero or greater: {self.start}")
        if self.end < 0:
            raise ValueError(f"end index must be zero or greater: {self.end}")
        if self.start > self.end:
            raise ValueError(
                f"start index must not be larger than end index: start={self.start}, end={self.end}"
            )

    def __lt__(self, other: "Span") -> bool:
        return self._key() < other._key()

    def __le__(self, other: "Span") -> bool:
        return self._key() <= other._key()

    def __gt__(self, other: "Span") -> bool:
        return self._key() > other._key()

    def __ge__(self, other: "Span") -> bool:
        return self._key() >= other._key()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Span):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def _key(self):
        return (self.start, self.end, self.type is not None, self.type or "")

    @property
    def length(self) -> int:
        return self.end - self.start

    def __len__(self) -> int:
        return self.length

    def contains(self, other) -> bool:
        """True if ``other`` (a span or an index) lies within this span."""
        if isinstance(other, Span):
            return self.start <= other.start and other.end <= self.end
        return self.start <= other < self.end

    def intersects(self, other: "Span") -> bool:
        """True if the spans share a position or one contains the other."""
        return (
            self.contains(other)
            or other.contains(self)
            or (self.start <= other.start < self.end)
            or (self.start < other.end <= self.end)
        )

    def crosses(self, other: "Span") -> bool:
        """True if the spans overlap without either containing the other."""
        return (
            not self.contains(other)
            and not other.contains(self)
            and (
                (self.start <= other.start < self.end)
                or (self.start < other.end <= self.end)
            )
        )

    def covered_text(self, tokens: Sequence[str]) -> List[str]:
        return list(tokens[self.start : self.end])

    def __repr__(self) -> str:
        if self.type is None:
            return f"Span({self.start}, {self.end})"
        return f"Span({self.start}, {self.end}, {self.type!r})"


def spans_to_strings(spans: Sequence[Span], tokens: Sequence[str]) -> List[str]:
    """Join the tokens covered by each span with single spaces."""
    return [" ".join(span.covered_text(tokens)) for span in spans]


@dataclass
class Event:
    """One training instance: an outcome observed with a context.

    Attributes:
        outcome: The observed label
        context: Ordered predicate strings active for this instance
        values: Optional real value per predicate (1.0 when absent)
    """

    outcome: str
    context: List[str]
    values: Optional[List[float]] = None

    def __post_init__(self):
        self.context = list(self.context)
        if self.values is not None:
            self.values = [float(v) for v in self.values]
            if len(self.values) != len(self.context):
                raise ValueError(
                    f"Event has {len(self.context)} predicates but {len(self.values)} values"
                )

    def __str__(self) -> str:
        if self.values is None:
            return f"{self.outcome} [{' '.join(self.context)}]"
        pairs = " ".join(f"{p}={v}" for p, v in zip(self.context, self.values))
        return f"{self.outcome} [{pairs}]"
