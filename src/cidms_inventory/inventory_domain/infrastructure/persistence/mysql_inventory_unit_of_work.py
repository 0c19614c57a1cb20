# src/cidms_inventory/inventory_domain/infrastructure/persistence/mysql_inventory_unit_of_work.py
"""MySQL unit of work: row-locked stock update plus ledger insert in one transaction."""

import dataclasses
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from mysql.connector import Error

from cidms_inventory.catalog_domain.domain.entities.product import Product
from cidms_inventory.catalog_domain.infrastructure.persistence.mysql_product_repository import (
    PRODUCT_COLUMNS,
    product_from_row,
)
from cidms_inventory.common.persistence.mysql_connection import open_connection, rollback_quietly, translate_error
from cidms_inventory.common.utils.date_utils import now_utc, to_db_datetime
from cidms_inventory.inventory_domain.domain.entities.stock_movement import StockMovement
from cidms_inventory.inventory_domain.domain.repositories.inventory_unit_of_work import (
    IInventoryUnitOfWork,
    IStockTransaction,
)

logger = logging.getLogger(__name__)


class MySQLStockTransaction(IStockTransaction):
    """Statements issued on the unit of work's connection while its transaction is open."""

    def __init__(self, connection) -> None:
        self._connection = connection

    def get_product_for_update(self, product_id: int) -> Optional[Product]:
        cursor = self._connection.cursor(dictionary=True)
        try:
            # InnoDB row lock: concurrent movements on this product wait here
            cursor.execute(f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id = %s FOR UPDATE", (product_id,))
            row = cursor.fetchone()
            return product_from_row(row) if row else None
        except Error as e:
            raise translate_error(e, f"Error locking product {product_id}")
        finally:
            cursor.close()

    def save_stock(self, product_id: int, new_stock: int) -> None:
        cursor = self._connection.cursor()
        try:
            cursor.execute("UPDATE products SET stock = %s WHERE id = %s", (new_stock, product_id))
        except Error as e:
            raise translate_error(e, f"Error updating stock for product {product_id}")
        finally:
            cursor.close()

    def record_movement(self, movement: StockMovement) -> StockMovement:
        created_at = movement.created_at or now_utc()
        insert_query = """
        INSERT INTO stock_movements
        (product_id, kind, quantity, previous_stock, new_stock, reason, actor_id, created_at)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        """
        params = (
            movement.product_id,
            movement.kind.value,
            movement.quantity,
            movement.previous_stock,
            movement.new_stock,
            movement.reason,
            movement.actor_id,
            to_db_datetime(created_at),
        )
        cursor = self._connection.cursor()
        try:
            cursor.execute(insert_query, params)
            movement_id = cursor.lastrowid
        except Error as e:
            raise translate_error(e, f"Error recording stock movement for product {movement.product_id}")
        finally:
            cursor.close()
        return dataclasses.replace(movement, id=movement_id, created_at=created_at)


class MySQLInventoryUnitOfWork(IInventoryUnitOfWork):
    """Each ``atomic()`` block runs on its own connection.

    Separate connections keep concurrent requests in separate sessions, so the
    row lock taken by one request really blocks the other.
    """

    def __init__(self, isolation_level: str = "READ COMMITTED") -> None:
        self.isolation_level = isolation_level

    @contextmanager
    def atomic(self) -> Iterator[MySQLStockTransaction]:
        conn = open_connection(autocommit=False)
        try:
            try:
                conn.start_transaction(isolation_level=self.isolation_level)
            except Error as e:
                raise translate_error(e, "Error starting transaction")

            try:
                yield MySQLStockTransaction(conn)
                conn.commit()
            except Error as e:
                rollback_quietly(conn)
                raise translate_error(e, "Error committing stock movement")
            except BaseException:
                rollback_quietly(conn)
                raise
        finally:
            conn.close()
