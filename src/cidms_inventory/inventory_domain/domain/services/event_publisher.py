# src/cidms_inventory/inventory_domain/domain/services/event_publisher.py
"""Publish/subscribe collaborator used to broadcast inventory events."""
from abc import ABC, abstractmethod
from typing import Any

LOW_STOCK_EVENT = "inventory.low_stock"
STOCK_UPDATED_EVENT = "inventory.stock_updated"
LOW_STOCK_SUMMARY_EVENT = "inventory.low_stock_summary"


class IEventPublisher(ABC):
    """Injected event sink with an explicit connect/disconnect lifecycle."""

    @abstractmethod
    def connect(self) -> None:
        pass

    @abstractmethod
    def disconnect(self) -> None:
        pass

    @abstractmethod
    def publish(self, event: str, payload: dict[str, Any]) -> None:
        """Delivers one event. Raises on failure; callers decide whether that matters."""
        pass

    def __enter__(self) -> "IEventPublisher":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()
