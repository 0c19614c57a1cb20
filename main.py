"""Main application entry point for the inventory low-stock monitor."""

import logging
import time

import schedule

from cidms_inventory.catalog_domain.application.product_catalog_service import ProductCatalogService
from cidms_inventory.catalog_domain.infrastructure.persistence.mysql_product_repository import (
    MySQLProductRepository,
)
from cidms_inventory.common.config.settings import settings
from cidms_inventory.common.exceptions.custom_exceptions import APIError, ApplicationError, StorageFailureError
from cidms_inventory.common.logger_config import setup_logging
from cidms_inventory.inventory_domain.application.low_stock_monitor_service import LowStockMonitorService
from cidms_inventory.inventory_domain.application.stock_adjustment_service import (
    StockAdjustmentApplicationService,
)
from cidms_inventory.inventory_domain.domain.services.event_publisher import IEventPublisher
from cidms_inventory.inventory_domain.domain.services.inventory_authorizer import RoleBasedInventoryAuthorizer
from cidms_inventory.inventory_domain.infrastructure.api_clients.event_relay_client import EventRelayApiClient
from cidms_inventory.inventory_domain.infrastructure.persistence.mysql_inventory_unit_of_work import (
    MySQLInventoryUnitOfWork,
)
from cidms_inventory.inventory_domain.infrastructure.persistence.mysql_stock_movement_repository import (
    MySQLStockMovementRepository,
)
from cidms_inventory.inventory_domain.infrastructure.persistence.mysql_user_repository import MySQLUserRepository

logger = logging.getLogger(__name__)


def create_inventory_db_tables() -> None:
    """Creates users, products and stock_movements, in foreign-key order."""
    user_repo = MySQLUserRepository()
    product_repo = MySQLProductRepository()
    movement_repo = MySQLStockMovementRepository()
    try:
        user_repo.create_tables()
        product_repo.create_tables()
        movement_repo.create_tables()
        logger.info("✅ Database tables created/verified successfully")
    except StorageFailureError as e:
        logger.error(f"❌ Error creating inventory database tables: {e}")
        raise
    finally:
        del user_repo, product_repo, movement_repo


def setup_event_publisher() -> IEventPublisher | None:
    """Connects the relay publisher, or returns None when no relay is configured."""
    if not settings.EVENT_RELAY_URL:
        logger.warning("EVENT_RELAY_URL is not set; inventory events will not be published.")
        return None
    publisher = EventRelayApiClient()
    publisher.connect()
    return publisher


def setup_inventory_dependencies(
    event_publisher: IEventPublisher | None,
) -> tuple[StockAdjustmentApplicationService, ProductCatalogService, LowStockMonitorService]:
    """Initializes and wires up inventory dependencies."""
    product_repository = MySQLProductRepository()
    stock_service = StockAdjustmentApplicationService(
        unit_of_work=MySQLInventoryUnitOfWork(),
        product_repo=product_repository,
        movement_repo=MySQLStockMovementRepository(),
        authorizer=RoleBasedInventoryAuthorizer(MySQLUserRepository()),
        event_publisher=event_publisher,
    )
    catalog_service = ProductCatalogService(product_repo=product_repository)
    monitor_service = LowStockMonitorService(product_repo=product_repository, event_publisher=event_publisher)
    return stock_service, catalog_service, monitor_service


def run_low_stock_sweep(monitor_service: LowStockMonitorService, catalog_service: ProductCatalogService) -> None:
    """Runs one low-stock sweep and logs the current inventory figures."""
    try:
        alerts = monitor_service.sweep()
        for alert in alerts[:5]:
            logger.info(
                f"  [bold]{alert.sku}[/bold] {alert.name}: stock {alert.current_stock} "
                f"(reorder level {alert.reorder_level}, {alert.severity})"
            )
        if len(alerts) > 5:
            logger.info(f"  ... and {len(alerts) - 5} more products.")

        stats = catalog_service.get_inventory_statistics()
        logger.info(
            f"Inventory: {stats.total_products} active products, {stats.total_stock} units, "
            f"{stats.low_stock_count} low, {stats.out_of_stock_count} out of stock, value {stats.total_value}"
        )
    except (APIError, StorageFailureError, ApplicationError) as e:
        logger.error(f"An error occurred during the low stock sweep: {e}")


if __name__ == "__main__":
    setup_logging(log_file="logs/inventory.log")
    logger.info("Inventory low stock monitor started.")

    create_inventory_db_tables()
    publisher = setup_event_publisher()
    _, catalog_service, monitor_service = setup_inventory_dependencies(publisher)

    run_low_stock_sweep(monitor_service, catalog_service)

    interval = settings.LOW_STOCK_SWEEP_INTERVAL_MINUTES
    if interval > 0:
        logger.info(f"Scheduling low stock sweep every {interval} minutes.")
        schedule.every(interval).minutes.do(run_low_stock_sweep, monitor_service, catalog_service)
        try:
            while True:
                schedule.run_pending()
                time.sleep(1)  # Wait one second before checking again
        except KeyboardInterrupt:
            logger.info("Inventory low stock monitor stopped.")
        finally:
            if publisher is not None:
                publisher.disconnect()
    elif publisher is not None:
        publisher.disconnect()
