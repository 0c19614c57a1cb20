# src/cidms_inventory/inventory_domain/domain/repositories/stock_movement_repository.py
"""Read side of the stock movement ledger.

Entries are written only through ``IStockTransaction.record_movement`` so that
they commit together with the stock update. There is deliberately no update or
delete here.
"""
from abc import ABC, abstractmethod

from cidms_inventory.common.dtos.inventory_dtos import MovementPageDTO, MovementQueryDTO


class IStockMovementRepository(ABC):

    @abstractmethod
    def list_movements(self, query: MovementQueryDTO) -> MovementPageDTO:
        """Returns one page of ledger entries ordered by creation time."""
        pass
