"""
Reference context generator for sequence labeling.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from .beam_search import BeamSearchContextGenerator

BOS = "bos"
EOS = "eos"


@runtime_checkable
class AdaptiveContextGenerator(BeamSearchContextGenerator, Protocol):
    """A context generator that remembers decisions made within a document."""

    def update_adaptive_data(self, tokens: Sequence[str], outcomes: Sequence[str]) -> None: ...

    def clear_adaptive_data(self) -> None: ...


class TokenContextGenerator:
    """Token window, label history and previous-decision features.

    For position ``i`` the context holds a bias feature, the current token,
    the tokens within ``window`` positions, the two previous outcomes, and,
    once the token was labelled earlier in the same document, the label it
    received then. ``additional_context`` may be a per-token list of extra
    feature lists; the entries for ``i`` are appended as given.

    Args:
        window: Number of neighbouring tokens on each side
        lowercase: Lowercase token features
    """

    def __init__(self, window: int = 1, lowercase: bool = True):
        if window < 0:
            raise ValueError(f"window must not be negative: {window}")
        self.window = window
        self.lowercase = lowercase
        self._previous_decisions: Dict[str, str] = {}

    def _norm(self, token: str) -> str:
        return token.lower() if self.lowercase else token

    def get_context(
        self,
        index: int,
        tokens: Sequence[str],
        prior_outcomes: Sequence[str],
        additional_context: Optional[Any] = None,
    ) -> List[str]:
        token = tokens[index]
        features = ["def", f"w={self._norm(token)}"]
        if token[:1].isupper():
            features.append("cap")

        for offset in range(1, self.window + 1):
            before = index - offset
            after = index + offset
            features.append(f"p{offset}={self._norm(tokens[before]) if before >= 0 else BOS}")
            features.append(f"n{offset}={self._norm(tokens[after]) if after < len(tokens) else EOS}")

        po = prior_outcomes[index - 1] if index > 0 else BOS
        ppo = prior_outcomes[index - 2] if index > 1 else BOS
        features.append(f"po={po}")
        features.append(f"pow={po},{self._norm(token)}")
        features.append(f"ppo={ppo},{po}")

        previous = self._previous_decisions.get(token)
        if previous is not None:
            features.append(f"pd={previous}")

        if additional_context is not None and index < len(additional_context):
            features.extend(additional_context[index])

        return features

    def update_adaptive_data(self, tokens: Sequence[str], outcomes: Sequence[str]) -> None:
        """Remember the label each token received."""
        if len(tokens) != len(outcomes):
            raise ValueError(
                f"{len(tokens)} tokens but {len(outcomes)} outcomes"
            )
        for token, outcome in zip(tokens, outcomes):
            self._previous_decisions[token] = outcome

    def clear_adaptive_data(self) -> None:
        """Forget all remembered decisions, e.g. at a document boundary."""
        self._previous_decisions.clear()


__all__ = ["BOS", "EOS", "AdaptiveContextGenerator", "TokenContextGenerator"]
