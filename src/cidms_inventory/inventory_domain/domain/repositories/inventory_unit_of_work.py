# src/cidms_inventory/inventory_domain/domain/repositories/inventory_unit_of_work.py
"""Atomic unit of work spanning the product stock update and the ledger insert."""
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional

from cidms_inventory.catalog_domain.domain.entities.product import Product
from cidms_inventory.inventory_domain.domain.entities.stock_movement import StockMovement


class IStockTransaction(ABC):
    """Operations available while a unit of work is open."""

    @abstractmethod
    def get_product_for_update(self, product_id: int) -> Optional[Product]:
        """Reads the product and holds an exclusive lock on it until the transaction ends."""
        pass

    @abstractmethod
    def save_stock(self, product_id: int, new_stock: int) -> None:
        """Writes the product's new stock level."""
        pass

    @abstractmethod
    def record_movement(self, movement: StockMovement) -> StockMovement:
        """Appends exactly one ledger entry and returns it with its assigned id."""
        pass


class IInventoryUnitOfWork(ABC):

    @abstractmethod
    def atomic(self) -> AbstractContextManager[IStockTransaction]:
        """Opens a transaction; commits on normal exit and rolls back on any exception."""
        pass
