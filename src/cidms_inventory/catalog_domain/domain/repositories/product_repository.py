# src/cidms_inventory/catalog_domain/domain/repositories/product_repository.py
"""Product catalog repository interface."""
from abc import ABC, abstractmethod
from typing import Any, Optional

from cidms_inventory.catalog_domain.domain.entities.product import Product, ProductStatus
from cidms_inventory.common.dtos.inventory_dtos import (
    InventoryStatisticsDTO,
    ProductPageDTO,
    ProductQueryDTO,
)


class IProductRepository(ABC):

    @abstractmethod
    def create_product(self, product: Product) -> Product:
        """Inserts a new product and returns it with its assigned id."""
        pass

    @abstractmethod
    def get_product(self, product_id: int) -> Optional[Product]:
        """Retrieves a product by id, or None."""
        pass

    @abstractmethod
    def get_product_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieves a product by SKU, or None."""
        pass

    @abstractmethod
    def list_products(self, query: ProductQueryDTO) -> ProductPageDTO:
        """Returns one page of products matching the query filters."""
        pass

    @abstractmethod
    def update_product_details(self, product_id: int, changes: dict[str, Any]) -> Optional[Product]:
        """Updates non-stock columns; returns the updated product or None if missing."""
        pass

    @abstractmethod
    def set_status(self, product_id: int, status: ProductStatus) -> Optional[Product]:
        """Changes the product status; returns the updated product or None if missing."""
        pass

    @abstractmethod
    def list_low_stock_products(self) -> list[Product]:
        """Active products at or below their minimum stock level, lowest stock first."""
        pass

    @abstractmethod
    def get_inventory_statistics(self) -> InventoryStatisticsDTO:
        """Aggregate stock figures over active products."""
        pass
