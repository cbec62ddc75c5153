"""
Core types shared across seqlabel.
"""

from .types import Span, Event, spans_to_strings

__all__ = ["Span", "Event", "spans_to_strings"]
