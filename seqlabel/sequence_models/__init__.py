"""
Sequence decoding: beam search and context generation.
"""

from .beam_search import (
    DEFAULT_BEAM_SIZE,
    ZERO_LOG,
    BeamSearchContextGenerator,
    SequenceValidator,
    SequenceModel,
    Sequence,
    BeamSearch,
)
from .context_generator import AdaptiveContextGenerator, TokenContextGenerator

__all__ = [
    "DEFAULT_BEAM_SIZE",
    "ZERO_LOG",
    "BeamSearchContextGenerator",
    "SequenceValidator",
    "SequenceModel",
    "Sequence",
    "BeamSearch",
    "AdaptiveContextGenerator",
    "TokenContextGenerator",
]
