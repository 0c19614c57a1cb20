# tests/test_inventory_domain/test_infrastructure/test_event_relay_client.py
"""Tests for the EventRelayApiClient."""

from unittest.mock import Mock

import pytest
import requests

from cidms_inventory.common.config.settings import settings
from cidms_inventory.common.exceptions.custom_exceptions import APIError
from cidms_inventory.inventory_domain.domain.services.event_publisher import LOW_STOCK_EVENT
from cidms_inventory.inventory_domain.infrastructure.api_clients.event_relay_client import EventRelayApiClient

# Relay settings are pinned by mock_inventory_settings in conftest.py

ALERT_PAYLOAD = {"productId": 7, "currentStock": 5, "reorderLevel": 10, "severity": "low"}


def test_event_relay_client_connect_configures_session() -> None:
    client = EventRelayApiClient()
    assert client.is_connected is False

    client.connect()

    assert client.is_connected is True
    assert client.session.headers["Authorization"] == "Bearer relay_token"
    assert client.session.headers["Content-Type"] == "application/json"
    client.disconnect()
    assert client.session is None


def test_event_relay_client_connect_without_url(mocker) -> None:
    mocker.patch.object(settings, "EVENT_RELAY_URL", "")

    with pytest.raises(APIError):
        EventRelayApiClient().connect()


def test_event_relay_client_publish_success(mocker) -> None:
    """Tests that publish posts the event envelope to the relay."""
    mock_response = Mock()
    mock_response.status_code = 202

    client = EventRelayApiClient()
    client.connect()
    mock_session_post = mocker.patch.object(client.session, "post", return_value=mock_response)

    client.publish(LOW_STOCK_EVENT, ALERT_PAYLOAD)

    mock_response.raise_for_status.assert_called_once()
    mock_session_post.assert_called_once()
    assert mock_session_post.call_args[0][0] == "http://relay.test/events"
    body = mock_session_post.call_args[1]["json"]
    assert body["event"] == LOW_STOCK_EVENT
    assert body["data"] == ALERT_PAYLOAD
    assert "emittedAt" in body
    assert mock_session_post.call_args[1]["timeout"] == 5


def test_event_relay_client_publish_timeout(mocker) -> None:
    client = EventRelayApiClient()
    client.connect()
    mocker.patch.object(client.session, "post", side_effect=requests.exceptions.Timeout("Read timed out."))

    with pytest.raises(APIError) as exc_info:
        client.publish(LOW_STOCK_EVENT, ALERT_PAYLOAD)
    assert "timed out" in str(exc_info.value)


def test_event_relay_client_publish_http_error(mocker) -> None:
    mock_response = Mock()
    mock_response.status_code = 500
    mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=mock_response)

    client = EventRelayApiClient()
    client.connect()
    mocker.patch.object(client.session, "post", return_value=mock_response)

    with pytest.raises(APIError) as exc_info:
        client.publish(LOW_STOCK_EVENT, ALERT_PAYLOAD)
    assert exc_info.value.response_status_code == 500
    assert "(Status Code: 500)" in str(exc_info.value)


def test_event_relay_client_publish_requires_connect() -> None:
    with pytest.raises(APIError):
        EventRelayApiClient().publish(LOW_STOCK_EVENT, ALERT_PAYLOAD)


def test_event_relay_client_as_context_manager(mocker) -> None:
    mocker.patch.object(settings, "EVENT_RELAY_TOKEN", "")

    with EventRelayApiClient(base_url="http://other-relay.test") as client:
        assert client.is_connected
        assert "Authorization" not in client.session.headers
    assert client.is_connected is False
