"""Repository interface for carts."""

from abc import ABC, abstractmethod
from typing import Optional

from ..entities.cart import Cart


class CartRepository(ABC):
    """At most one live cart per user."""

    @abstractmethod
    async def get_by_owner(self, owner_id: str) -> Optional[Cart]:
        pass

    @abstractmethod
    async def save(self, cart: Cart) -> None:
        pass
