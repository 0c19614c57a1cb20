# src/cidms_inventory/inventory_domain/infrastructure/persistence/mysql_stock_movement_repository.py
"""MySQL implementation of the stock movement ledger (read side and schema)."""

import logging
from typing import Any

from mysql.connector import Error

from cidms_inventory.common.dtos.inventory_dtos import (
    MovementPageDTO,
    MovementQueryDTO,
    PaginationDTO,
)
from cidms_inventory.common.persistence.mysql_connection import open_connection, translate_error
from cidms_inventory.common.utils.date_utils import to_db_datetime, to_utc
from cidms_inventory.inventory_domain.domain.entities.stock_movement import MovementKind, StockMovement
from cidms_inventory.inventory_domain.domain.repositories.stock_movement_repository import (
    IStockMovementRepository,
)

logger = logging.getLogger(__name__)

MOVEMENT_COLUMNS = "id, product_id, kind, quantity, previous_stock, new_stock, reason, actor_id, created_at"


def movement_from_row(row: dict[str, Any]) -> StockMovement:
    return StockMovement(
        id=row["id"],
        product_id=row["product_id"],
        kind=MovementKind(row["kind"]),
        quantity=int(row["quantity"]),
        previous_stock=int(row["previous_stock"]),
        new_stock=int(row["new_stock"]),
        reason=row.get("reason"),
        actor_id=row["actor_id"],
        created_at=to_utc(row.get("created_at")),
    )


class MySQLStockMovementRepository(IStockMovementRepository):
    """Ledger browsing over the ``stock_movements`` table.

    Inserts happen in ``MySQLStockTransaction`` together with the stock update.
    """

    def __init__(self) -> None:
        self._connection = None

    def _get_connection(self):
        # Autocommit so each listing sees the latest committed entries
        if not self._connection or not self._connection.is_connected():
            self._connection = open_connection(autocommit=True)
        return self._connection

    def create_tables(self) -> None:
        """Creates the stock_movements table. Requires ``products`` and ``users`` to exist."""
        create_movements_table_query = """
        CREATE TABLE IF NOT EXISTS stock_movements (
            id BIGINT UNSIGNED PRIMARY KEY AUTO_INCREMENT,
            product_id INT UNSIGNED NOT NULL,
            kind ENUM('add', 'subtract', 'adjustment') NOT NULL,
            quantity INT NOT NULL,
            previous_stock INT UNSIGNED NOT NULL,
            new_stock INT UNSIGNED NOT NULL,
            reason VARCHAR(255),
            actor_id INT UNSIGNED NOT NULL,
            created_at DATETIME(6) NOT NULL,
            INDEX idx_stock_movements_product_created (product_id, created_at, id),
            INDEX idx_stock_movements_actor (actor_id),
            INDEX idx_stock_movements_kind (kind),
            INDEX idx_stock_movements_created (created_at),
            -- Deactivating a product is a status change, so history survives it;
            -- only an explicit hard delete of the product removes its entries.
            CONSTRAINT fk_stock_movements_product FOREIGN KEY (product_id)
                REFERENCES products (id) ON DELETE CASCADE ON UPDATE CASCADE,
            CONSTRAINT fk_stock_movements_actor FOREIGN KEY (actor_id)
                REFERENCES users (id) ON DELETE RESTRICT ON UPDATE CASCADE
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(create_movements_table_query)
            logger.info("Stock movements table checked/created.")
        except Error as e:
            raise translate_error(e, "Error creating stock_movements table")
        finally:
            cursor.close()

    def list_movements(self, query: MovementQueryDTO) -> MovementPageDTO:
        conditions: list[str] = []
        params: list[Any] = []

        if query.product_id is not None:
            conditions.append("product_id = %s")
            params.append(query.product_id)
        if query.kind is not None:
            conditions.append("kind = %s")
            params.append(MovementKind(query.kind).value)
        if query.date_from is not None:
            conditions.append("created_at >= %s")
            params.append(to_db_datetime(query.date_from))
        if query.date_to is not None:
            conditions.append("created_at <= %s")
            params.append(to_db_datetime(query.date_to))

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        direction = "DESC" if query.newest_first else "ASC"

        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(f"SELECT COUNT(*) AS total FROM stock_movements {where_clause}", tuple(params))
            total = int(cursor.fetchone()["total"])

            cursor.execute(
                f"SELECT {MOVEMENT_COLUMNS} FROM stock_movements {where_clause} "
                f"ORDER BY created_at {direction}, id {direction} LIMIT %s OFFSET %s",
                tuple(params) + (query.page_size, query.offset),
            )
            movements = [movement_from_row(row) for row in cursor.fetchall()]
        except Error as e:
            raise translate_error(e, "Error fetching stock movements")
        finally:
            cursor.close()

        return MovementPageDTO(
            movements=movements,
            pagination=PaginationDTO.from_counts(total, query.page, query.page_size),
        )

    def __del__(self) -> None:
        """Closes the database connection when the object is destroyed."""
        if self._connection and self._connection.is_connected():
            self._connection.close()
