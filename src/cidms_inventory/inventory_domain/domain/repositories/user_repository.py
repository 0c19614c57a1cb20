"""User (actor) repository interface."""
from abc import ABC, abstractmethod
from typing import Optional

from cidms_inventory.inventory_domain.domain.entities.actor import Actor


class IUserRepository(ABC):

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[Actor]:
        """Retrieves a user by id, or None."""
        pass
