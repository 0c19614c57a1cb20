# src/cidms_inventory/inventory_domain/domain/services/stock_movement_policy.py
"""Argument validation and stock arithmetic for stock movements."""

from typing import Any

from cidms_inventory.catalog_domain.domain.entities.product import STOCK_MAX
from cidms_inventory.common.exceptions.custom_exceptions import (
    InvalidArgumentError,
    InvalidStateError,
)
from cidms_inventory.inventory_domain.domain.entities.stock_movement import MovementKind

REASON_MAX_LENGTH = 255
QUANTITY_MAX = 2_147_483_647  # stock_movements.quantity is a signed INT


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class StockMovementPolicy:
    """Validation happens here, before any storage is touched."""

    @staticmethod
    def parse_kind(kind: MovementKind | str) -> MovementKind:
        try:
            return MovementKind(kind)
        except ValueError as e:
            allowed = ", ".join(k.value for k in MovementKind)
            raise InvalidArgumentError(f"Unknown movement kind {kind!r}; expected one of: {allowed}", original_exception=e)

    @staticmethod
    def validate_quantity(quantity: Any) -> int:
        if not _is_int(quantity):
            raise InvalidArgumentError(f"Quantity must be an integer, got {quantity!r}")
        if quantity <= 0:
            raise InvalidArgumentError(f"Quantity must be positive, got {quantity}")
        if quantity > QUANTITY_MAX:
            raise InvalidArgumentError(f"Quantity cannot exceed {QUANTITY_MAX}, got {quantity}")
        return quantity

    @staticmethod
    def validate_delta(delta: Any) -> int:
        if not _is_int(delta):
            raise InvalidArgumentError(f"Adjustment delta must be an integer, got {delta!r}")
        if delta == 0:
            raise InvalidArgumentError("Adjustment delta cannot be zero")
        if abs(delta) > QUANTITY_MAX:
            raise InvalidArgumentError(f"Adjustment delta cannot exceed {QUANTITY_MAX} either way, got {delta}")
        return delta

    @staticmethod
    def validate_target(target: Any) -> int:
        if not _is_int(target):
            raise InvalidArgumentError(f"Target stock must be an integer, got {target!r}")
        if target < 0:
            raise InvalidArgumentError(f"Target stock cannot be negative, got {target}")
        if target > STOCK_MAX:
            raise InvalidArgumentError(f"Target stock cannot exceed {STOCK_MAX}, got {target}")
        return target

    @staticmethod
    def validate_actor_id(actor_id: Any) -> int:
        if actor_id is None or actor_id == "":
            raise InvalidArgumentError("An actor is required for every stock movement")
        if not _is_int(actor_id):
            raise InvalidArgumentError(f"Actor id must be an integer, got {actor_id!r}")
        return actor_id

    @staticmethod
    def validate_reason(reason: Any) -> str | None:
        if reason is None:
            return None
        if not isinstance(reason, str):
            raise InvalidArgumentError("Reason must be text")
        reason = reason.strip()
        if len(reason) > REASON_MAX_LENGTH:
            raise InvalidArgumentError(f"Reason cannot be longer than {REASON_MAX_LENGTH} characters")
        return reason or None

    @staticmethod
    def compute_new_stock(kind: MovementKind, previous_stock: int, quantity: int) -> int:
        """Returns the stock after applying ``quantity``.

        ``add`` and ``subtract`` take a positive magnitude. ``adjustment`` takes
        the signed delta.
        """
        if kind == MovementKind.ADD:
            new_stock = previous_stock + quantity
        elif kind == MovementKind.SUBTRACT:
            new_stock = previous_stock - quantity
        else:
            new_stock = previous_stock + quantity

        if new_stock < 0:
            raise InvalidStateError(
                f"Insufficient stock for this operation (current {previous_stock}, requested change {quantity} {kind.value})"
            )
        if new_stock > STOCK_MAX:
            raise InvalidStateError(
                f"Stock would exceed {STOCK_MAX} (current {previous_stock}, requested change {quantity} {kind.value})"
            )
        # set_to derives the delta from the locked stock, so it is only bounded here
        if abs(quantity) > QUANTITY_MAX:
            raise InvalidStateError(
                f"Stock change of {quantity} is too large for one movement (current {previous_stock})"
            )
        return new_stock
