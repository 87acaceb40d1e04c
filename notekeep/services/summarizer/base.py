"""Summarizer abstractions."""

from __future__ import annotations

import abc
from typing import Optional

from pydantic import BaseModel


class SummaryResult(BaseModel):
    summary: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.summary)


class Summarizer(abc.ABC):
    """Turn note text into a short summary. Failures are reported, not raised."""

    async def summarize(self, text: str) -> SummaryResult:
        if not text or not isinstance(text, str) or not text.strip():
            return SummaryResult(error='Invalid request body. "text" field is required.')
        return await self._summarize(text)

    @abc.abstractmethod
    async def _summarize(self, text: str) -> SummaryResult:
        raise NotImplementedError


__all__ = ["Summarizer", "SummaryResult"]
