# src/cidms_inventory/inventory_domain/application/stock_adjustment_service.py
"""Application service applying auditable stock movements."""

import dataclasses
import logging
import warnings
from datetime import date, datetime
from typing import Any, Callable, Optional

from cidms_inventory.catalog_domain.domain.entities.product import Product
from cidms_inventory.catalog_domain.domain.repositories.product_repository import IProductRepository
from cidms_inventory.common.config.settings import settings
from cidms_inventory.common.dtos.inventory_dtos import (
    MovementPageDTO,
    MovementQueryDTO,
    StockMovementResultDTO,
)
from cidms_inventory.common.exceptions.custom_exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    UnauthorizedError,
)
from cidms_inventory.common.utils.date_utils import now_utc, parse_date_boundary
from cidms_inventory.common.utils.pagination import normalize_paging
from cidms_inventory.inventory_domain.domain.entities.stock_movement import MovementKind, StockMovement
from cidms_inventory.inventory_domain.domain.repositories.inventory_unit_of_work import IInventoryUnitOfWork
from cidms_inventory.inventory_domain.domain.repositories.stock_movement_repository import (
    IStockMovementRepository,
)
from cidms_inventory.inventory_domain.domain.services.event_publisher import (
    LOW_STOCK_EVENT,
    STOCK_UPDATED_EVENT,
    IEventPublisher,
)
from cidms_inventory.inventory_domain.domain.services.inventory_authorizer import IInventoryAuthorizer
from cidms_inventory.inventory_domain.domain.services.low_stock_notifier import LowStockNotifier
from cidms_inventory.inventory_domain.domain.services.stock_movement_policy import StockMovementPolicy

logger = logging.getLogger(__name__)

# Maps the stock read under lock to the (kind, quantity) to record
MovementPlan = Callable[[int], tuple[MovementKind, int]]

QUICK_RESTOCK_REASON = "Quick restock"


class StockAdjustmentApplicationService:
    """Single entry point for every change to a product's stock level.

    Each change locks the product row, writes the new stock and its ledger
    entry in one transaction, and only then publishes events. Event delivery is
    best effort and never undoes a committed change.
    """

    def __init__(
        self,
        unit_of_work: IInventoryUnitOfWork,
        product_repo: IProductRepository,
        movement_repo: IStockMovementRepository,
        authorizer: IInventoryAuthorizer,
        event_publisher: Optional[IEventPublisher] = None,
        max_conflict_retries: Optional[int] = None,
    ) -> None:
        self.unit_of_work = unit_of_work
        self.product_repo = product_repo
        self.movement_repo = movement_repo
        self.authorizer = authorizer
        self.event_publisher = event_publisher
        self.max_conflict_retries = (
            settings.CONFLICT_MAX_RETRIES if max_conflict_retries is None else max_conflict_retries
        )

    # --- Mutations ------------------------------------------------------------

    def apply_movement(
        self,
        product_id: int,
        kind: MovementKind | str,
        quantity: int,
        reason: Optional[str],
        actor_id: int,
    ) -> StockMovementResultDTO:
        """Applies an add/subtract movement.

        ``adjustment`` is still accepted for older callers: ``quantity`` is then
        read as the absolute target and the call is forwarded to ``set_to``.
        """
        kind = StockMovementPolicy.parse_kind(kind)
        quantity = StockMovementPolicy.validate_quantity(quantity)

        if kind == MovementKind.ADJUSTMENT:
            warnings.warn(
                "apply_movement(kind='adjustment') is deprecated; use adjust_by() or set_to()",
                DeprecationWarning,
                stacklevel=2,
            )
            return self.set_to(product_id, quantity, reason, actor_id)

        reason = StockMovementPolicy.validate_reason(reason)
        actor_id = self._authorize(actor_id)
        return self._execute(product_id, actor_id, reason, lambda previous_stock: (kind, quantity))

    def adjust_by(self, product_id: int, delta: int, reason: Optional[str], actor_id: int) -> StockMovementResultDTO:
        """Shifts stock by a signed delta, recorded as an ``adjustment`` entry."""
        delta = StockMovementPolicy.validate_delta(delta)
        reason = StockMovementPolicy.validate_reason(reason)
        actor_id = self._authorize(actor_id)
        return self._execute(product_id, actor_id, reason, lambda previous_stock: (MovementKind.ADJUSTMENT, delta))

    def set_to(self, product_id: int, target: int, reason: Optional[str], actor_id: int) -> StockMovementResultDTO:
        """Sets stock to an absolute count; the ledger keeps the resulting signed delta."""
        target = StockMovementPolicy.validate_target(target)
        reason = StockMovementPolicy.validate_reason(reason)
        actor_id = self._authorize(actor_id)
        return self._execute(
            product_id,
            actor_id,
            reason,
            lambda previous_stock: (MovementKind.ADJUSTMENT, target - previous_stock),
        )

    def quick_restock(
        self, product_id: int, quantity: int, actor_id: int, reason: Optional[str] = QUICK_RESTOCK_REASON
    ) -> StockMovementResultDTO:
        return self.apply_movement(product_id, MovementKind.ADD, quantity, reason, actor_id)

    # --- Ledger browsing ------------------------------------------------------

    def list_by_product(
        self,
        product_id: int,
        page: int = 1,
        page_size: Optional[int] = None,
        newest_first: bool = True,
        kind: MovementKind | str | None = None,
        date_from: str | date | datetime | None = None,
        date_to: str | date | datetime | None = None,
    ) -> MovementPageDTO:
        """Returns one page of a product's ledger, newest first unless asked otherwise."""
        if self.product_repo.get_product(product_id) is None:
            raise NotFoundError(f"Product {product_id} not found")
        return self.list_movements(
            page=page,
            page_size=page_size,
            newest_first=newest_first,
            product_id=product_id,
            kind=kind,
            date_from=date_from,
            date_to=date_to,
        )

    def list_movements(
        self,
        page: int = 1,
        page_size: Optional[int] = None,
        newest_first: bool = True,
        product_id: Optional[int] = None,
        kind: MovementKind | str | None = None,
        date_from: str | date | datetime | None = None,
        date_to: str | date | datetime | None = None,
    ) -> MovementPageDTO:
        page, page_size = normalize_paging(
            page, page_size, settings.MOVEMENT_PAGE_SIZE, settings.MOVEMENT_MAX_PAGE_SIZE
        )
        query = MovementQueryDTO(
            page=page,
            page_size=page_size,
            newest_first=bool(newest_first),
            product_id=product_id,
            kind=StockMovementPolicy.parse_kind(kind) if kind is not None else None,
            date_from=self._parse_boundary("date_from", date_from),
            date_to=self._parse_boundary("date_to", date_to, end_of_day=True),
        )
        return self.movement_repo.list_movements(query)

    # --- Internals ------------------------------------------------------------

    @staticmethod
    def _parse_boundary(name: str, value: Any, end_of_day: bool = False) -> Optional[datetime]:
        parsed = parse_date_boundary(value, end_of_day=end_of_day)
        if value not in (None, "") and parsed is None:
            raise InvalidArgumentError(f"{name} is not a valid ISO date: {value!r}")
        return parsed

    def _authorize(self, actor_id: Any) -> int:
        actor_id = StockMovementPolicy.validate_actor_id(actor_id)
        actor = self.authorizer.get_actor(actor_id)
        if actor is None:
            raise NotFoundError(f"Actor {actor_id} not found")
        if not self.authorizer.can_manage_inventory(actor):
            raise UnauthorizedError(f"User {actor_id} ({actor.role.value}) is not allowed to manage inventory")
        return actor_id

    def _execute(
        self, product_id: int, actor_id: int, reason: Optional[str], plan: MovementPlan
    ) -> StockMovementResultDTO:
        attempt = 0
        while True:
            attempt += 1
            try:
                product, movement = self._apply_once(product_id, actor_id, reason, plan)
                break
            except ConflictError as e:
                if attempt > self.max_conflict_retries:
                    logger.error(f"Giving up on stock movement for product {product_id} after {attempt} attempts: {e}")
                    raise
                logger.warning(
                    f"Concurrent write on product {product_id}, retrying ({attempt}/{self.max_conflict_retries}): {e}"
                )

        decision = LowStockNotifier.evaluate(product)
        alert = LowStockNotifier.build_alert(product, decision)
        result = StockMovementResultDTO(
            product=product, movement=movement, low_stock_decision=decision, low_stock_alert=alert
        )

        if self._publish_safely(STOCK_UPDATED_EVENT, self._stock_updated_payload(movement)):
            result.events_published.append(STOCK_UPDATED_EVENT)
        if alert is not None:
            logger.warning(
                f"Low stock for product {product.id} ({product.sku}): {product.stock} <= {product.min_stock_level}"
            )
            if self._publish_safely(LOW_STOCK_EVENT, alert.to_payload()):
                result.events_published.append(LOW_STOCK_EVENT)
        return result

    def _apply_once(
        self, product_id: int, actor_id: int, reason: Optional[str], plan: MovementPlan
    ) -> tuple[Product, StockMovement]:
        with self.unit_of_work.atomic() as tx:
            product = tx.get_product_for_update(product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")

            previous_stock = product.stock
            kind, quantity = plan(previous_stock)
            new_stock = StockMovementPolicy.compute_new_stock(kind, previous_stock, quantity)

            if product.exceeds_max_stock(new_stock):
                logger.warning(
                    f"Stock for product {product_id} ({product.sku}) will exceed its maximum level: "
                    f"{new_stock} > {product.max_stock_level}"
                )

            tx.save_stock(product_id, new_stock)
            movement = tx.record_movement(
                StockMovement(
                    product_id=product_id,
                    kind=kind,
                    quantity=quantity,
                    previous_stock=previous_stock,
                    new_stock=new_stock,
                    actor_id=actor_id,
                    reason=reason,
                    created_at=now_utc(),
                )
            )

        logger.info(
            f"Stock updated for product {product_id} ({kind.value} {quantity}): {previous_stock} -> {new_stock}"
        )
        return dataclasses.replace(product, stock=new_stock, updated_at=movement.created_at), movement

    @staticmethod
    def _stock_updated_payload(movement: StockMovement) -> dict[str, Any]:
        return {
            "productId": movement.product_id,
            "movementId": movement.id,
            "kind": movement.kind.value,
            "quantity": movement.quantity,
            "previousStock": movement.previous_stock,
            "newStock": movement.new_stock,
            "timestamp": movement.created_at.isoformat() if movement.created_at else None,
        }

    def _publish_safely(self, event: str, payload: dict[str, Any]) -> bool:
        """Publishes after commit; failures are logged and never reach the caller."""
        if self.event_publisher is None:
            return False
        try:
            self.event_publisher.publish(event, payload)
            return True
        except Exception as e:
            logger.error(f"Failed to publish {event} for product {payload.get('productId')}: {e}")
            return False
