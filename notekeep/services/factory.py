"""Factories for runtime service selection."""

from __future__ import annotations

from typing import Optional

from ..config import Settings, get_settings
from .identity import IdentityProvider, StaticIdentity
from .store.base import NoteStoreClient
from .store.memory import InMemoryNoteStore
from .store.sqlite import SQLiteNoteStore
from .summarizer.base import Summarizer
from .summarizer.cache import CachedSummarizer
from .summarizer.dummy import DummySummarizer


class ServiceConfigurationError(ValueError):
    """Raised when an unknown backend is requested."""


def _normalise(name: Optional[str]) -> str:
    if not name:
        return "none"
    return name.strip().lower()


def resolve_store_backend(
    name: Optional[str],
    settings: Optional[Settings] = None,
    identity: Optional[IdentityProvider] = None,
) -> NoteStoreClient:
    settings = settings or get_settings()
    identity = identity or StaticIdentity(settings.owner_id)
    backend = _normalise(name)
    if backend in {"memory", "dummy"}:
        return InMemoryNoteStore(identity, latency=settings.store_latency_seconds)
    if backend == "sqlite":
        return SQLiteNoteStore(identity, path=settings.database_path)
    raise ServiceConfigurationError(f"Unknown note store backend: {name}")


def resolve_summarizer_backend(name: Optional[str]) -> Optional[Summarizer]:
    backend = _normalise(name)
    if backend in {"", "none", "off"}:
        return None
    if backend == "dummy":
        return CachedSummarizer(DummySummarizer())
    if backend == "openai":
        from .summarizer.openai_summarizer import OpenAISummarizer

        return CachedSummarizer(OpenAISummarizer())
    raise ServiceConfigurationError(f"Unknown summarizer backend: {name}")


__all__ = [
    "ServiceConfigurationError",
    "resolve_store_backend",
    "resolve_summarizer_backend",
]
