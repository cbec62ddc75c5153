"""
seqlabel cache helpers.
"""

from .core import CacheStats, LRUCache

__all__ = ["CacheStats", "LRUCache"]
