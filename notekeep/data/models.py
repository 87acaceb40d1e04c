"""Data models used by notekeep."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NoteFields(BaseModel):
    """User-editable note fields passed to create and update calls."""

    title: str
    content: Optional[str] = None
    summary: Optional[str] = None

    def as_update(self) -> Dict[str, Any]:
        return {"title": self.title, "content": self.content or None, "summary": self.summary or None}


class Note(BaseModel):
    """A single note record. Instances are immutable; use ``model_copy`` to derive new ones."""

    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: Optional[str] = None
    title: str
    content: Optional[str] = None
    summary: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def with_fields(self, fields: NoteFields, updated_at: Optional[datetime] = None) -> "Note":
        return self.model_copy(update={**fields.as_update(), "updated_at": updated_at or utcnow()})


@dataclass(frozen=True)
class CollectionKey:
    """Identifies one cached query result, e.g. an owner's notes newest first."""

    name: str = "notes"
    order: str = "created_at_desc"

    def __str__(self) -> str:
        return f"{self.name}:{self.order}"


ALL_NOTES = CollectionKey()


__all__ = ["ALL_NOTES", "CollectionKey", "Note", "NoteFields", "utcnow"]
