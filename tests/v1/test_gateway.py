# tests/v1/test_gateway.py
"""Tests for the WebSocket gateways."""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from mx_space.api.v1.dependencies import get_event_broadcaster
from mx_space.core.security import create_access_token
from mx_space.services.notifications import CHANNEL_ADMIN, CHANNEL_WEB, EventBroadcaster


@pytest.fixture()
def gateway_client(app):
    broadcaster = EventBroadcaster()
    app.dependency_overrides[get_event_broadcaster] = lambda: broadcaster
    try:
        yield TestClient(app), broadcaster
    finally:
        app.dependency_overrides.pop(get_event_broadcaster, None)


def test_web_gateway_greets_new_clients(gateway_client) -> None:
    client, broadcaster = gateway_client
    with client.websocket_connect("/gateway/web") as websocket:
        assert websocket.receive_json() == {"type": "GATEWAY_CONNECT", "data": {"online": 1}}
        assert broadcaster.connection_count(CHANNEL_WEB) == 1
        assert broadcaster.connection_count(CHANNEL_ADMIN) == 0


def test_admin_gateway_requires_master_token(gateway_client) -> None:
    client, _ = gateway_client
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/gateway/admin?token=forged"):
            pass
    assert excinfo.value.code == 1008


def test_admin_gateway_accepts_master_token(gateway_client) -> None:
    client, broadcaster = gateway_client
    with client.websocket_connect(f"/gateway/admin?token={create_access_token()}") as websocket:
        assert websocket.receive_json()["type"] == "GATEWAY_CONNECT"
        assert broadcaster.connection_count(CHANNEL_ADMIN) == 1
