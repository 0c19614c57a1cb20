"""MySQL implementation of the User repository (actors of stock movements)."""

import logging
from typing import Optional

from mysql.connector import Error

from cidms_inventory.common.persistence.mysql_connection import open_connection, translate_error
from cidms_inventory.inventory_domain.domain.entities.actor import Actor, UserRole, UserStatus
from cidms_inventory.inventory_domain.domain.repositories.user_repository import IUserRepository

logger = logging.getLogger(__name__)


class MySQLUserRepository(IUserRepository):

    def __init__(self) -> None:
        self._connection = None

    def _get_connection(self):
        if not self._connection or not self._connection.is_connected():
            self._connection = open_connection(autocommit=True)
        return self._connection

    def create_tables(self) -> None:
        """Creates the users table referenced by the stock movement ledger."""
        create_users_table_query = """
        CREATE TABLE IF NOT EXISTS users (
            id INT UNSIGNED PRIMARY KEY AUTO_INCREMENT,
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255) NOT NULL,
            role ENUM('admin', 'staff', 'customer', 'delivery') NOT NULL DEFAULT 'customer',
            status ENUM('active', 'inactive', 'suspended', 'pending') NOT NULL DEFAULT 'active',
            created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
            UNIQUE KEY uk_users_email (email),
            INDEX idx_users_role (role)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(create_users_table_query)
            logger.info("Users table checked/created.")
        except Error as e:
            raise translate_error(e, "Error creating users table")
        finally:
            cursor.close()

    def get_user(self, user_id: int) -> Optional[Actor]:
        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute("SELECT id, name, email, role, status FROM users WHERE id = %s", (user_id,))
            row = cursor.fetchone()
        except Error as e:
            raise translate_error(e, f"Error fetching user {user_id}")
        finally:
            cursor.close()

        if not row:
            return None
        return Actor(
            id=row["id"],
            name=row["name"],
            email=row.get("email"),
            role=UserRole(row["role"]),
            status=UserStatus(row["status"]),
        )

    def __del__(self) -> None:
        """Closes the database connection when the object is destroyed."""
        if self._connection and self._connection.is_connected():
            self._connection.close()
