# src/cidms_inventory/inventory_domain/domain/services/low_stock_notifier.py
"""Domain service deciding whether a product's stock level warrants an alert."""

from cidms_inventory.catalog_domain.domain.entities.product import Product
from cidms_inventory.common.dtos.inventory_dtos import LowStockAlertDTO
from cidms_inventory.inventory_domain.domain.entities.stock_level import LowStockDecision


class LowStockNotifier:
    """Pure decision logic; emitting the notification is the caller's job.

    The decision always reflects the current state. Suppressing repeated alerts
    for a product that is already low belongs to the delivery side.
    """

    @staticmethod
    def evaluate(product: Product) -> LowStockDecision:
        if product.stock == 0:
            return LowStockDecision.OUT_OF_STOCK
        if product.stock <= product.min_stock_level:
            return LowStockDecision.TRIGGER
        return LowStockDecision.NO_TRIGGER

    @staticmethod
    def build_alert(product: Product, decision: LowStockDecision | None = None) -> LowStockAlertDTO | None:
        """Builds the alert payload, or returns None when nothing should fire."""
        decision = decision if decision is not None else LowStockNotifier.evaluate(product)
        if not decision.triggered:
            return None
        return LowStockAlertDTO(
            product_id=product.id,
            current_stock=product.stock,
            reorder_level=product.min_stock_level,
            severity=decision.severity,
            sku=product.sku,
            name=product.name,
        )
