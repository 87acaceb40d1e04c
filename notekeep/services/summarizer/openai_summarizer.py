"""OpenAI-powered note summarisation."""

from __future__ import annotations

from typing import Optional

from ...config import get_settings
from ...logging import get_logger
from .base import Summarizer, SummaryResult

LOGGER = get_logger(__name__)

SUMMARY_INSTRUCTIONS = """Summarize this note content in a clean, minimal format.

Format requirements:
1. Start immediately with the content - NO introductory phrases like "Here's a summary" or "In summary"
2. Use a single asterisk (*) at the start of each key point (with a space after the asterisk)
3. For category headings, use: ** Category Name ** (with spaces around the text)
4. Keep it brief and focused on actionable items
5. Include only the essential information
6. Use simple, direct language with no fluff"""


class OpenAISummarizer(Summarizer):
    def __init__(self, model: Optional[str] = None) -> None:
        settings = get_settings()
        self.model = model or settings.openai_summary_model
        try:
            from openai import AsyncOpenAI, OpenAIError  # type: ignore
        except ImportError as exc:  # pragma: no cover - runtime dependency guard
            raise RuntimeError("openai package is required for OpenAISummarizer") from exc
        client_kwargs = {}
        if settings.openai_api_key:
            client_kwargs["api_key"] = settings.openai_api_key

        try:
            self.client = AsyncOpenAI(**client_kwargs)
            self._openai_error_cls = OpenAIError
        except OpenAIError as exc:
            message = str(exc)
            if "api_key" in message.lower():
                raise RuntimeError(
                    "OpenAI API key not configured. Set the OPENAI_API_KEY environment variable "
                    "or configure NOTEKEEP_OPENAI_API_KEY from the Environment menu."
                ) from exc
            raise RuntimeError(f"Failed to initialise OpenAI summary client: {message}") from exc

    async def _summarize(self, text: str) -> SummaryResult:
        LOGGER.info("Requesting OpenAI summary (%d characters)", len(text))
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=[
                    {"role": "system", "content": SUMMARY_INSTRUCTIONS},
                    {"role": "user", "content": text},
                ],
            )
        except self._openai_error_cls as exc:
            LOGGER.error("Error in summarization request: %s", exc)
            return SummaryResult(error="Failed to generate summary")

        summary = (getattr(response, "output_text", None) or "").strip()
        if not summary:
            return SummaryResult(error="Summary response was empty")
        return SummaryResult(summary=summary)


__all__ = ["OpenAISummarizer", "SUMMARY_INSTRUCTIONS"]
