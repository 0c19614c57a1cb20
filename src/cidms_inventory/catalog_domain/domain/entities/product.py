"""Product entity."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

from cidms_inventory.common.exceptions.custom_exceptions import InvalidArgumentError

SKU_MAX_LENGTH = 100
STOCK_MAX = 4_294_967_295  # INT UNSIGNED column


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCONTINUED = "discontinued"


@dataclass
class Product:
    """Represents a catalog product and its current stock level.

    ``stock`` is only ever changed through the stock adjustment service so
    that every change has a matching ledger entry.
    """

    sku: str
    name: str
    price: Decimal
    stock: int = 0
    min_stock_level: int = 10
    max_stock_level: int | None = None
    unit: str = "piece"
    status: ProductStatus = ProductStatus.ACTIVE
    category: str | None = None
    description: str | None = None
    id: int | None = None  # Assigned by the persistence layer
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Post-initialization for validation."""
        if not isinstance(self.sku, str) or not self.sku.strip():
            raise InvalidArgumentError("SKU must be a non-empty string.")
        self.sku = self.sku.strip()
        if len(self.sku) > SKU_MAX_LENGTH:
            raise InvalidArgumentError(f"SKU cannot be longer than {SKU_MAX_LENGTH} characters.")
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidArgumentError("Product name must be a non-empty string.")

        try:
            self.price = Decimal(str(self.price))
        except (InvalidOperation, ValueError) as e:
            raise InvalidArgumentError(f"Invalid price: {self.price!r}", original_exception=e)
        if not self.price.is_finite() or self.price < 0:
            raise InvalidArgumentError("Price cannot be negative.")

        for field_name in ("stock", "min_stock_level"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidArgumentError(f"{field_name} must be an integer.")
            if value < 0:
                raise InvalidArgumentError(f"{field_name} cannot be negative.")
            if value > STOCK_MAX:
                raise InvalidArgumentError(f"{field_name} cannot exceed {STOCK_MAX}.")

        if self.max_stock_level is not None:
            if isinstance(self.max_stock_level, bool) or not isinstance(self.max_stock_level, int):
                raise InvalidArgumentError("max_stock_level must be an integer.")
            if self.max_stock_level < self.min_stock_level:
                raise InvalidArgumentError("max_stock_level cannot be lower than min_stock_level.")

        try:
            self.status = ProductStatus(self.status)
        except ValueError as e:
            raise InvalidArgumentError(f"Unknown product status: {self.status!r}", original_exception=e)

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock_level

    def exceeds_max_stock(self, stock: int | None = None) -> bool:
        """Whether ``stock`` (default: current stock) is above the planning ceiling."""
        stock = self.stock if stock is None else stock
        return self.max_stock_level is not None and stock > self.max_stock_level
