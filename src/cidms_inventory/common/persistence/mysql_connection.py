"""Shared MySQL connection and error translation helpers."""

import logging

import mysql.connector
from mysql.connector import Error, errorcode

from cidms_inventory.common.config.settings import settings
from cidms_inventory.common.exceptions.custom_exceptions import (
    ApplicationError,
    ConflictError,
    StorageFailureError,
)

logger = logging.getLogger(__name__)

# Lock contention and uniqueness violations are retryable conflicts, not outages
CONFLICT_ERRNOS = frozenset(
    {
        errorcode.ER_LOCK_DEADLOCK,
        errorcode.ER_LOCK_WAIT_TIMEOUT,
        errorcode.ER_DUP_ENTRY,
    }
)


def open_connection(autocommit: bool = False):
    """Opens a new MySQL connection using the configured credentials."""
    try:
        return mysql.connector.connect(
            host=settings.DB_HOST,
            port=settings.DB_PORT,
            database=settings.DB_DATABASE,
            user=settings.DB_USER,
            password=settings.DB_PASSWORD,
            autocommit=autocommit,
            charset="utf8mb4",
            use_unicode=True,
        )
    except Error as e:
        raise StorageFailureError(f"Failed to connect to MySQL: {e}", original_exception=e)


def translate_error(e: Error, message: str) -> ApplicationError:
    """Maps a mysql.connector error onto the application error taxonomy."""
    if getattr(e, "errno", None) in CONFLICT_ERRNOS:
        return ConflictError(f"{message}: {e}", original_exception=e)
    return StorageFailureError(f"{message}: {e}", original_exception=e)


def rollback_quietly(connection) -> None:
    """Rolls back, logging (not raising) if the connection is already gone."""
    try:
        connection.rollback()
    except Error as e:
        logger.error(f"Rollback failed: {e}")
