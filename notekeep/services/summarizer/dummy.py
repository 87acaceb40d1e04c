"""Dummy summarizer for offline usage."""

from __future__ import annotations

import re

from .base import Summarizer, SummaryResult

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")


class DummySummarizer(Summarizer):
    def __init__(self, max_points: int = 3, max_chars: int = 120) -> None:
        self.max_points = max_points
        self.max_chars = max_chars

    async def _summarize(self, text: str) -> SummaryResult:
        points = []
        for sentence in _SENTENCE_SPLIT.split(text):
            sentence = sentence.strip(" -*\t")
            if not sentence:
                continue
            if len(sentence) > self.max_chars:
                sentence = sentence[: self.max_chars].rstrip() + "..."
            points.append(f"* {sentence}")
            if len(points) >= self.max_points:
                break
        return SummaryResult(summary="\n".join(points))


__all__ = ["DummySummarizer"]
