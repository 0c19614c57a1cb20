"""Stock Movement entity (one ledger entry)."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class MovementKind(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    ADJUSTMENT = "adjustment"


@dataclass(frozen=True)  # Ledger entries are immutable once created
class StockMovement:
    """A single stock change with the before/after snapshot.

    For ``add`` and ``subtract`` the quantity is the positive magnitude of the
    change; for ``adjustment`` it is the signed delta ``new_stock - previous_stock``.
    """

    product_id: int
    kind: MovementKind
    quantity: int
    previous_stock: int
    new_stock: int
    actor_id: int
    reason: str | None = None
    created_at: datetime | None = None
    id: int | None = None  # Assigned by the ledger on insert

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", MovementKind(self.kind))
        if self.previous_stock < 0 or self.new_stock < 0:
            raise ValueError("Stock snapshots cannot be negative.")
        if self.kind == MovementKind.ADD and self.new_stock != self.previous_stock + self.quantity:
            raise ValueError("add movement must satisfy new_stock = previous_stock + quantity")
        if self.kind == MovementKind.SUBTRACT and self.new_stock != self.previous_stock - self.quantity:
            raise ValueError("subtract movement must satisfy new_stock = previous_stock - quantity")
        if self.kind == MovementKind.ADJUSTMENT and self.new_stock != self.previous_stock + self.quantity:
            raise ValueError("adjustment movement must record the signed delta as quantity")

    @property
    def delta(self) -> int:
        return self.new_stock - self.previous_stock
