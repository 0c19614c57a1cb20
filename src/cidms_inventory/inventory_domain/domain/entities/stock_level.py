"""Stock level classification used by the low-stock notifier."""

from enum import Enum


class LowStockDecision(str, Enum):
    NO_TRIGGER = "no-trigger"
    TRIGGER = "trigger"
    OUT_OF_STOCK = "trigger: out-of-stock"

    @property
    def triggered(self) -> bool:
        return self is not LowStockDecision.NO_TRIGGER

    @property
    def severity(self) -> str | None:
        return {
            LowStockDecision.TRIGGER: "low",
            LowStockDecision.OUT_OF_STOCK: "out_of_stock",
        }.get(self)
