"""Content-addressed memoisation for summaries."""

from __future__ import annotations

import hashlib
from collections import OrderedDict

from .base import Summarizer, SummaryResult


def content_key(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class CachedSummarizer(Summarizer):
    """Reuse earlier successful summaries for identical content.

    Errors are never cached so a later attempt can succeed.
    """

    def __init__(self, inner: Summarizer, max_entries: int = 256) -> None:
        self.inner = inner
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, SummaryResult]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def _summarize(self, text: str) -> SummaryResult:
        key = content_key(text)
        cached = self._entries.get(key)
        if cached is not None:
            self._entries.move_to_end(key)
            return cached

        result = await self.inner.summarize(text)
        if result.ok:
            self._entries[key] = result
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return result


__all__ = ["CachedSummarizer", "content_key"]
