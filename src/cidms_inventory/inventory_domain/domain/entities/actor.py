"""Actor value object (the user credited with a stock movement)."""

from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    CUSTOMER = "customer"
    DELIVERY = "delivery"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING = "pending"


@dataclass(frozen=True)
class Actor:
    id: int
    name: str
    role: UserRole
    status: UserStatus = UserStatus.ACTIVE
    email: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", UserRole(self.role))
        object.__setattr__(self, "status", UserStatus(self.status))
