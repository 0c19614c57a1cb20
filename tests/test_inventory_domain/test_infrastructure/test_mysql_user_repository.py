# tests/test_inventory_domain/test_infrastructure/test_mysql_user_repository.py

from unittest.mock import Mock

import pytest
from mysql.connector import Error

from cidms_inventory.common.exceptions.custom_exceptions import StorageFailureError
from cidms_inventory.inventory_domain.domain.entities.actor import UserRole, UserStatus
from cidms_inventory.inventory_domain.infrastructure.persistence.mysql_user_repository import MySQLUserRepository


def test_mysql_user_repository_get_user(mocker) -> None:
    mock_connection = mocker.patch("mysql.connector.connect")
    mock_cursor = Mock()
    mock_connection.return_value.cursor.return_value = mock_cursor
    mock_cursor.fetchone.return_value = {
        "id": 2,
        "name": "Stock Clerk",
        "email": "staff@cidms.test",
        "role": "staff",
        "status": "active",
    }

    actor = MySQLUserRepository().get_user(2)

    assert actor.id == 2
    assert actor.role is UserRole.STAFF
    assert actor.status is UserStatus.ACTIVE
    assert mock_cursor.execute.call_args[0][1] == (2,)


def test_mysql_user_repository_get_user_missing(mocker) -> None:
    mock_connection = mocker.patch("mysql.connector.connect")
    mock_connection.return_value.cursor.return_value.fetchone.return_value = None

    assert MySQLUserRepository().get_user(99) is None


def test_mysql_user_repository_get_user_error(mocker) -> None:
    mock_connection = mocker.patch("mysql.connector.connect")
    mock_connection.return_value.cursor.return_value.execute.side_effect = Error("Lost connection")

    with pytest.raises(StorageFailureError):
        MySQLUserRepository().get_user(2)


def test_mysql_user_repository_create_tables(mocker) -> None:
    mock_connection = mocker.patch("mysql.connector.connect")
    mock_cursor = Mock()
    mock_connection.return_value.cursor.return_value = mock_cursor

    MySQLUserRepository().create_tables()

    assert "CREATE TABLE IF NOT EXISTS users" in mock_cursor.execute.call_args[0][0]
    mock_cursor.close.assert_called_once()
