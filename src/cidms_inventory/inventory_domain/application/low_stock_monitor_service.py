"""Application service sweeping the catalog for low-stock products."""

import logging
from typing import Optional

from cidms_inventory.catalog_domain.domain.repositories.product_repository import IProductRepository
from cidms_inventory.common.dtos.inventory_dtos import LowStockAlertDTO
from cidms_inventory.common.utils.date_utils import now_utc
from cidms_inventory.inventory_domain.domain.entities.stock_level import LowStockDecision
from cidms_inventory.inventory_domain.domain.services.event_publisher import (
    LOW_STOCK_SUMMARY_EVENT,
    IEventPublisher,
)
from cidms_inventory.inventory_domain.domain.services.low_stock_notifier import LowStockNotifier

logger = logging.getLogger(__name__)


class LowStockMonitorService:

    def __init__(self, product_repo: IProductRepository, event_publisher: Optional[IEventPublisher] = None) -> None:
        self.product_repo = product_repo
        self.event_publisher = event_publisher

    def sweep(self) -> list[LowStockAlertDTO]:
        """Collects an alert for every active low-stock product and publishes one summary event."""
        products = self.product_repo.list_low_stock_products()
        alerts = [alert for alert in (LowStockNotifier.build_alert(p) for p in products) if alert is not None]

        if not alerts:
            logger.info("Low stock sweep: all active products are above their minimum level.")
            return alerts

        out_of_stock = sum(1 for alert in alerts if alert.severity == LowStockDecision.OUT_OF_STOCK.severity)
        logger.warning(f"Low stock sweep: {len(alerts)} products at or below minimum level ({out_of_stock} out of stock)")

        if self.event_publisher is not None:
            payload = {
                "products": [alert.to_payload() for alert in alerts],
                "count": len(alerts),
                "timestamp": now_utc().isoformat(),
            }
            try:
                self.event_publisher.publish(LOW_STOCK_SUMMARY_EVENT, payload)
            except Exception as e:
                logger.error(f"Failed to publish low stock summary: {e}")

        return alerts
