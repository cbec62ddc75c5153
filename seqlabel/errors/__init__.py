"""
seqlabel error hierarchy.
"""

from .core import (
    SeqLabelError,
    DataError,
    IndexedDataError,
    TrainingError,
    InferenceError,
    ValidationError,
    OutcomeFormatError,
    ConfigurationError,
    ErrorCollector,
)

__all__ = [
    "SeqLabelError",
    "DataError",
    "IndexedDataError",
    "TrainingError",
    "InferenceError",
    "ValidationError",
    "OutcomeFormatError",
    "ConfigurationError",
    "ErrorCollector",
]
