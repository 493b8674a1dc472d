"""Authenticated user identity."""
from dataclasses import dataclass
from typing import Optional

from ..enums import UserRole


@dataclass(frozen=True)
class UserIdentity:
    """
    Who is calling.

    Resolved from a bearer credential by the identity provider; the order
    core never loads user documents itself.
    """
    user_id: str
    role: UserRole
    email: str
    telegram_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
