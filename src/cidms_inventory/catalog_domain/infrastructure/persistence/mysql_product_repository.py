# ruff: noqa: E501
# src/cidms_inventory/catalog_domain/infrastructure/persistence/mysql_product_repository.py
"""MySQL implementation of the Product repository."""

import logging
from decimal import Decimal
from typing import Any, Optional

from mysql.connector import Error

from cidms_inventory.catalog_domain.domain.entities.product import Product, ProductStatus
from cidms_inventory.catalog_domain.domain.repositories.product_repository import IProductRepository
from cidms_inventory.common.dtos.inventory_dtos import (
    InventoryStatisticsDTO,
    PaginationDTO,
    ProductPageDTO,
    ProductQueryDTO,
)
from cidms_inventory.common.persistence.mysql_connection import open_connection, rollback_quietly, translate_error
from cidms_inventory.common.utils.date_utils import to_utc

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = (
    "id, sku, name, description, category, price, stock, min_stock_level, "
    "max_stock_level, unit, status, created_at, updated_at"
)

# Columns the catalog may edit; stock is excluded on purpose
EDITABLE_COLUMNS = ("sku", "name", "description", "category", "price", "min_stock_level", "max_stock_level", "unit")


def product_from_row(row: dict[str, Any]) -> Product:
    """Builds a Product entity from a dictionary cursor row."""
    return Product(
        id=row["id"],
        sku=row["sku"],
        name=row["name"],
        description=row.get("description"),
        category=row.get("category"),
        price=row["price"] if isinstance(row["price"], Decimal) else Decimal(str(row["price"])),
        stock=int(row["stock"]),
        min_stock_level=int(row["min_stock_level"]),
        max_stock_level=int(row["max_stock_level"]) if row.get("max_stock_level") is not None else None,
        unit=row.get("unit") or "piece",
        status=ProductStatus(row["status"]),
        created_at=to_utc(row.get("created_at")),
        updated_at=to_utc(row.get("updated_at")),
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class MySQLProductRepository(IProductRepository):
    """MySQL implementation of the Product Repository.

    Runs in autocommit mode: every statement here is a single-statement
    transaction. Stock changes never go through this class.
    """

    def __init__(self) -> None:
        """Initializes the repository."""
        self._connection = None

    def _get_connection(self):
        """Establishes or returns an active MySQL database connection."""
        if not self._connection or not self._connection.is_connected():
            self._connection = open_connection(autocommit=True)
        return self._connection

    def create_tables(self) -> None:
        """Creates the products table if it does not exist."""
        create_products_table_query = """
        CREATE TABLE IF NOT EXISTS products (
            id INT UNSIGNED PRIMARY KEY AUTO_INCREMENT,
            sku VARCHAR(100) NOT NULL,
            name VARCHAR(255) NOT NULL,
            description TEXT,
            category VARCHAR(100),
            price DECIMAL(10, 2) NOT NULL,
            stock INT UNSIGNED NOT NULL DEFAULT 0,
            min_stock_level INT UNSIGNED NOT NULL DEFAULT 10,
            max_stock_level INT UNSIGNED,
            unit VARCHAR(50) NOT NULL DEFAULT 'piece',
            status ENUM('active', 'inactive', 'discontinued') NOT NULL DEFAULT 'active',
            created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
            UNIQUE KEY uk_products_sku (sku),
            INDEX idx_products_category (category),
            INDEX idx_products_status (status),
            INDEX idx_products_stock (stock)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(create_products_table_query)
            logger.info("Products table checked/created.")
        except Error as e:
            raise translate_error(e, "Error creating products table")
        finally:
            cursor.close()

    def create_product(self, product: Product) -> Product:
        conn = self._get_connection()
        cursor = conn.cursor()

        insert_query = """
        INSERT INTO products
        (sku, name, description, category, price, stock, min_stock_level, max_stock_level, unit, status)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        params = (
            product.sku,
            product.name,
            product.description,
            product.category,
            product.price,
            product.stock,
            product.min_stock_level,
            product.max_stock_level,
            product.unit,
            product.status.value,
        )

        try:
            cursor.execute(insert_query, params)
            product_id = cursor.lastrowid
        except Error as e:
            rollback_quietly(conn)
            raise translate_error(e, f"Error saving product {product.sku}")
        finally:
            cursor.close()

        return self.get_product(product_id)

    def get_product(self, product_id: int) -> Optional[Product]:
        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id = %s", (product_id,))
            row = cursor.fetchone()
            return product_from_row(row) if row else None
        except Error as e:
            raise translate_error(e, f"Error fetching product {product_id}")
        finally:
            cursor.close()

    def get_product_by_sku(self, sku: str) -> Optional[Product]:
        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(f"SELECT {PRODUCT_COLUMNS} FROM products WHERE sku = %s LIMIT 1", (sku,))
            row = cursor.fetchone()
            return product_from_row(row) if row else None
        except Error as e:
            raise translate_error(e, f"Error fetching product by SKU {sku}")
        finally:
            cursor.close()

    def list_products(self, query: ProductQueryDTO) -> ProductPageDTO:
        conditions: list[str] = []
        params: list[Any] = []

        if query.search:
            like = f"%{_escape_like(query.search)}%"
            conditions.append("(name LIKE %s OR description LIKE %s OR sku LIKE %s)")
            params.extend([like, like, like])
        if query.category:
            conditions.append("category = %s")
            params.append(query.category)
        if query.status:
            conditions.append("status = %s")
            params.append(query.status)
        if query.low_stock_only:
            conditions.append("stock <= min_stock_level")

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(f"SELECT COUNT(*) AS total FROM products {where_clause}", tuple(params))
            total = int(cursor.fetchone()["total"])

            cursor.execute(
                f"SELECT {PRODUCT_COLUMNS} FROM products {where_clause} "
                "ORDER BY created_at DESC, id DESC LIMIT %s OFFSET %s",
                tuple(params) + (query.page_size, query.offset),
            )
            products = [product_from_row(row) for row in cursor.fetchall()]
        except Error as e:
            raise translate_error(e, "Error listing products")
        finally:
            cursor.close()

        return ProductPageDTO(
            products=products,
            pagination=PaginationDTO.from_counts(total, query.page, query.page_size),
        )

    def update_product_details(self, product_id: int, changes: dict[str, Any]) -> Optional[Product]:
        columns = [column for column in EDITABLE_COLUMNS if column in changes]
        if not columns:
            return self.get_product(product_id)

        set_clause = ", ".join(f"{column} = %s" for column in columns)
        params = tuple(changes[column] for column in columns) + (product_id,)

        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(f"UPDATE products SET {set_clause} WHERE id = %s", params)
        except Error as e:
            rollback_quietly(conn)
            raise translate_error(e, f"Error updating product {product_id}")
        finally:
            cursor.close()

        return self.get_product(product_id)

    def set_status(self, product_id: int, status: ProductStatus) -> Optional[Product]:
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute("UPDATE products SET status = %s WHERE id = %s", (ProductStatus(status).value, product_id))
        except Error as e:
            rollback_quietly(conn)
            raise translate_error(e, f"Error changing status of product {product_id}")
        finally:
            cursor.close()

        return self.get_product(product_id)

    def list_low_stock_products(self) -> list[Product]:
        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(
                f"SELECT {PRODUCT_COLUMNS} FROM products "
                "WHERE status = 'active' AND stock <= min_stock_level "
                "ORDER BY stock ASC, id ASC"
            )
            return [product_from_row(row) for row in cursor.fetchall()]
        except Error as e:
            raise translate_error(e, "Error fetching low stock products")
        finally:
            cursor.close()

    def get_inventory_statistics(self) -> InventoryStatisticsDTO:
        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(
                """
                SELECT
                    COUNT(*) AS total_products,
                    COALESCE(SUM(stock), 0) AS total_stock,
                    COALESCE(SUM(CASE WHEN stock <= min_stock_level THEN 1 ELSE 0 END), 0) AS low_stock_count,
                    COALESCE(SUM(CASE WHEN stock = 0 THEN 1 ELSE 0 END), 0) AS out_of_stock_count,
                    COALESCE(SUM(stock * price), 0) AS total_value
                FROM products
                WHERE status = 'active'
                """
            )
            row = cursor.fetchone() or {}
        except Error as e:
            raise translate_error(e, "Error computing inventory statistics")
        finally:
            cursor.close()

        return InventoryStatisticsDTO(
            total_products=int(row.get("total_products") or 0),
            total_stock=int(row.get("total_stock") or 0),
            low_stock_count=int(row.get("low_stock_count") or 0),
            out_of_stock_count=int(row.get("out_of_stock_count") or 0),
            total_value=Decimal(str(row.get("total_value") or 0)),
        )

    def __del__(self) -> None:
        """Closes the database connection when the object is destroyed."""
        if self._connection and self._connection.is_connected():
            self._connection.close()
