"""
Evaluation of trained taggers against reference samples.
"""

from .core import Mean, FMeasure, EvaluationMonitor, Evaluator

__all__ = [
    "Mean",
    "FMeasure",
    "EvaluationMonitor",
    "Evaluator",
]
