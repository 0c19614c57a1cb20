# src/cidms_inventory/inventory_domain/domain/services/inventory_authorizer.py
"""Capability checks consumed by the stock adjustment service."""
from abc import ABC, abstractmethod
from typing import Optional

from cidms_inventory.inventory_domain.domain.entities.actor import Actor, UserRole, UserStatus
from cidms_inventory.inventory_domain.domain.repositories.user_repository import IUserRepository

MANAGE_INVENTORY = "manage_inventory"

ROLE_CAPABILITIES: dict[UserRole, frozenset[str]] = {
    UserRole.ADMIN: frozenset({MANAGE_INVENTORY}),
    UserRole.STAFF: frozenset({MANAGE_INVENTORY}),
    UserRole.DELIVERY: frozenset(),
    UserRole.CUSTOMER: frozenset(),
}


class IInventoryAuthorizer(ABC):

    @abstractmethod
    def get_actor(self, actor_id: int) -> Optional[Actor]:
        pass

    @abstractmethod
    def can_manage_inventory(self, actor: Actor) -> bool:
        pass


class RoleBasedInventoryAuthorizer(IInventoryAuthorizer):
    """Grants capabilities by role; only active users hold any."""

    def __init__(self, user_repo: IUserRepository) -> None:
        self.user_repo = user_repo

    def get_actor(self, actor_id: int) -> Optional[Actor]:
        return self.user_repo.get_user(actor_id)

    def has_capability(self, actor: Actor, capability: str) -> bool:
        if actor.status != UserStatus.ACTIVE:
            return False
        return capability in ROLE_CAPABILITIES.get(actor.role, frozenset())

    def can_manage_inventory(self, actor: Actor) -> bool:
        return self.has_capability(actor, MANAGE_INVENTORY)
