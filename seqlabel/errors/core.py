"""
Error Handling Module for seqlabel.

Every exception raised on purpose by the trainer, the model evaluator,
the decoders and the label codecs derives from ``SeqLabelError``. Each
carries a short machine-readable code and a ``details`` dict with the
values that identify the failure (iteration, token position, config key).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type


# =============================================================================
# EXCEPTIONS
# =============================================================================


class SeqLabelError(Exception):
    """Base exception for all seqlabel errors.

    Keyword arguments beyond ``code``, ``details`` and ``cause`` are stored
    in ``details``.

    Attributes:
        message: Error message
        code: Error code (``default_code`` or the class name when omitted)
        details: Values describing the failure
        cause: Exception that triggered this one, if any
    """

    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code or type(self).__name__
        self.details = dict(details or {})
        self.details.update(context)
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "cause": repr(self.cause) if self.cause is not None else None,
        }

    def __str__(self) -> str:
        if not self.details:
            return f"[{self.code}] {self.message}"
        return f"[{self.code}] {self.message} | Details: {self.details}"


class DataError(SeqLabelError):
    """Training events or samples cannot be used."""

    default_code = "DATA_ERROR"

    def __init__(self, message: str, data_source: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, data_source=data_source, **kwargs)


class IndexedDataError(DataError):
    """Indexed training arrays disagree with each other."""

    default_code = "INDEXED_DATA_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Any = None,
        actual: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            data_source="indexed_data",
            field=field,
            expected=expected,
            actual=actual,
            **kwargs,
        )


class TrainingError(SeqLabelError):
    """The iterative scaling loop failed, e.g. a worker raised."""

    default_code = "TRAINING_ERROR"

    def __init__(self, message: str, iteration: Optional[int] = None, **kwargs: Any) -> None:
        super().__init__(message, iteration=iteration, **kwargs)


class InferenceError(SeqLabelError):
    """The beam search cannot extend any partial sequence."""

    default_code = "INFERENCE_ERROR"

    def __init__(self, message: str, position: Optional[int] = None, **kwargs: Any) -> None:
        super().__init__(message, position=position, **kwargs)


class ValidationError(SeqLabelError):
    """A label or a model does not fit what a decoder expects."""

    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Any = None,
        actual: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, field=field, expected=expected, actual=actual, **kwargs)


class OutcomeFormatError(ValidationError):
    """A label is neither `other` nor a typed start or continue label."""

    default_code = "OUTCOME_FORMAT_ERROR"

    def __init__(
        self,
        message: str,
        outcome: Optional[str] = None,
        position: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, field="outcome", actual=outcome, position=position, **kwargs)
        self.outcome = outcome
        self.position = position


class ConfigurationError(SeqLabelError):
    """A config file cannot be read or a training parameter is invalid."""

    default_code = "CONFIG_ERROR"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_file: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, config_key=config_key, config_file=config_file, **kwargs)


# =============================================================================
# COLLECTION
# =============================================================================


class ErrorCollector:
    """Collects validation problems so they can be reported together.

    Example:
        >>> collector = ErrorCollector()
        >>> collector.add("outcome_list", "length mismatch", expected=3, actual=2)
        >>> collector.raise_if_errors(IndexedDataError)
    """

    def __init__(self) -> None:
        self.errors: List[Dict[str, Any]] = []

    def add(self, field: str, message: str, **details: Any) -> None:
        self.errors.append({"field": field, "message": message, **details})

    def has_errors(self) -> bool:
        return bool(self.errors)

    def raise_if_errors(self, error_cls: Type[SeqLabelError] = DataError) -> None:
        """Raise one ``error_cls`` summarizing every collected problem.

        For ``IndexedDataError`` the first problem also fills the
        ``field``/``expected``/``actual`` details.
        """
        if not self.errors:
            return
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in self.errors)
        details = {"errors": list(self.errors)}
        if issubclass(error_cls, IndexedDataError):
            first = self.errors[0]
            raise error_cls(
                summary,
                field=first["field"],
                expected=first.get("expected"),
                actual=first.get("actual"),
                details=details,
            )
        raise error_cls(summary, details=details)

    def __len__(self) -> int:
        return len(self.errors)


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
