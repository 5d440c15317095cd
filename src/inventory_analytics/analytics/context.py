"""
Group/session context consumed by the engine.

The engine never authenticates; it only asks "who is the current user" and
"which group are they in".
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from .models import UserIdentity


class GroupContextProvider(Protocol):
    """Lookups the application layer provides about the current session."""

    def get_current_user(self) -> Optional[UserIdentity]:
        ...

    def get_current_group_id(self) -> Optional[str]:
        ...


@dataclass
class StaticGroupContext:
    """Context holder set directly by the composition root."""
    user: Optional[UserIdentity] = None
    group_id: Optional[str] = None

    def get_current_user(self) -> Optional[UserIdentity]:
        return self.user

    def get_current_group_id(self) -> Optional[str]:
        return self.group_id
