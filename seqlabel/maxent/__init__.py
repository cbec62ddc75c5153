"""
seqlabel Maximum Entropy Module
===============================
Maximum entropy classifiers trained with Generalized Iterative Scaling.

Example:
    >>> from seqlabel.core import Event
    >>> from seqlabel.maxent import OnePassDataIndexer, GISTrainer
    >>>
    >>> events = [Event("yes", ["w=a"]), Event("no", ["w=b"])]
    >>> model = GISTrainer().train_model(100, OnePassDataIndexer(events))
    >>> model.eval(["w=a"])
"""

from .context import Context, MutableContext
from .prior import Prior, UniformPrior, FixedPrior
from .indexer import IndexedData, DataIndexer, OnePassDataIndexer, index_events
from .model import EvalParameters, GISModel, eval_context
from .gis import GISTrainer, ShardResult, train_model, LL_THRESHOLD

__all__ = [
    # Weight table
    "Context",
    "MutableContext",
    # Priors
    "Prior",
    "UniformPrior",
    "FixedPrior",
    # Indexing
    "IndexedData",
    "DataIndexer",
    "OnePassDataIndexer",
    "index_events",
    # Model
    "EvalParameters",
    "GISModel",
    "eval_context",
    # Training
    "GISTrainer",
    "ShardResult",
    "train_model",
    "LL_THRESHOLD",
]
