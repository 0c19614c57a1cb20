"""Data Transfer Objects for catalog and inventory data."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from cidms_inventory.catalog_domain.domain.entities.product import Product
from cidms_inventory.inventory_domain.domain.entities.stock_level import LowStockDecision
from cidms_inventory.inventory_domain.domain.entities.stock_movement import MovementKind, StockMovement


@dataclass
class PaginationDTO:
    """Page metadata returned alongside every paginated listing."""

    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next: bool
    has_previous: bool

    @classmethod
    def from_counts(cls, total_count: int, current_page: int, limit: int) -> "PaginationDTO":
        total_pages = math.ceil(total_count / limit) if limit else 0
        return cls(
            current_page=current_page,
            total_pages=total_pages,
            total_count=total_count,
            limit=limit,
            has_next=current_page < total_pages,
            has_previous=current_page > 1,
        )

    @property
    def offset(self) -> int:
        return (self.current_page - 1) * self.limit


@dataclass
class MovementQueryDTO:
    """Filters and paging for ledger browsing. ``product_id=None`` spans all products."""

    page: int = 1
    page_size: int = 10
    newest_first: bool = True
    product_id: Optional[int] = None
    kind: Optional[MovementKind] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class MovementPageDTO:
    movements: list[StockMovement]
    pagination: PaginationDTO


@dataclass
class ProductQueryDTO:
    page: int = 1
    page_size: int = 10
    search: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    low_stock_only: bool = False

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class ProductPageDTO:
    products: list[Product]
    pagination: PaginationDTO


@dataclass
class InventoryStatisticsDTO:
    """Aggregate figures over active products."""

    total_products: int = 0
    total_stock: int = 0
    low_stock_count: int = 0
    out_of_stock_count: int = 0
    total_value: Decimal = Decimal("0")


@dataclass
class LowStockAlertDTO:
    """Structured low-stock notification; transport is the publisher's concern."""

    product_id: int
    current_stock: int
    reorder_level: int
    severity: str  # "low" or "out_of_stock"
    sku: Optional[str] = None
    name: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        """Payload in the camelCase shape the socket clients consume."""
        payload: dict[str, Any] = {
            "productId": self.product_id,
            "currentStock": self.current_stock,
            "reorderLevel": self.reorder_level,
            "severity": self.severity,
        }
        if self.sku is not None:
            payload["sku"] = self.sku
        if self.name is not None:
            payload["name"] = self.name
        return payload


@dataclass
class StockMovementResultDTO:
    """Outcome of a committed stock movement."""

    product: Product
    movement: StockMovement
    low_stock_decision: LowStockDecision = LowStockDecision.NO_TRIGGER
    low_stock_alert: Optional[LowStockAlertDTO] = None
    events_published: list[str] = field(default_factory=list)
