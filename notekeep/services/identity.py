"""Owner identity used to scope and authorise note store calls."""

from __future__ import annotations

import abc
from typing import Optional


class IdentityProvider(abc.ABC):
    @abc.abstractmethod
    def current_owner(self) -> Optional[str]:
        """Return the authenticated owner id, or ``None`` when signed out."""


class StaticIdentity(IdentityProvider):
    """Identity fixed at construction time, typically from settings."""

    def __init__(self, owner_id: Optional[str]) -> None:
        self.owner_id = owner_id

    def current_owner(self) -> Optional[str]:
        return self.owner_id or None

    def sign_out(self) -> None:
        self.owner_id = None


__all__ = ["IdentityProvider", "StaticIdentity"]
