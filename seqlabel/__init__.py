"""
seqlabel
========
Statistical sequence labeling with maximum entropy models:
- GIS training of log-linear classifiers over sparse string features
- Sparse model evaluation
- Beam search decoding under pluggable transition constraints
- BIO span codec, name finder and part-of-speech tagger
"""

__version__ = "0.1.0"

from .core.types import Span, Event, spans_to_strings
from .errors import (
    SeqLabelError,
    DataError,
    IndexedDataError,
    TrainingError,
    InferenceError,
    ValidationError,
    OutcomeFormatError,
    ConfigurationError,
)
from .config import TrainingParameters, load_yaml
from .maxent import (
    GISModel,
    GISTrainer,
    IndexedData,
    OnePassDataIndexer,
    UniformPrior,
    train_model,
)
from .sequence_models import BeamSearch, Sequence, TokenContextGenerator
from .evaluation import FMeasure, Mean
from .ner import BioCodec, NameFinder, NameFinderEvaluator, NameSample, drop_overlapping_spans
from .postag import POSEvaluator, POSTagger, POSSample, TagDictionary

__all__ = [
    "__version__",
    # Core types
    "Span",
    "Event",
    "spans_to_strings",
    # Errors
    "SeqLabelError",
    "DataError",
    "IndexedDataError",
    "TrainingError",
    "InferenceError",
    "ValidationError",
    "OutcomeFormatError",
    "ConfigurationError",
    # Configuration
    "TrainingParameters",
    "load_yaml",
    # Maximum entropy
    "GISModel",
    "GISTrainer",
    "IndexedData",
    "OnePassDataIndexer",
    "UniformPrior",
    "train_model",
    # Decoding
    "BeamSearch",
    "Sequence",
    "TokenContextGenerator",
    # Taggers
    "BioCodec",
    "NameFinder",
    "NameSample",
    "drop_overlapping_spans",
    "POSTagger",
    "POSSample",
    "TagDictionary",
    # Evaluation
    "FMeasure",
    "Mean",
    "NameFinderEvaluator",
    "POSEvaluator",
]
