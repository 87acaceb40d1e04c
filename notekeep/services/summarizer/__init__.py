"""Summarizer services."""

from .base import Summarizer, SummaryResult
from .cache import CachedSummarizer
from .dummy import DummySummarizer

__all__ = ["CachedSummarizer", "DummySummarizer", "Summarizer", "SummaryResult"]
