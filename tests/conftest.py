"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Device registrations for a typical multi-device user
- Mock registry and push transport ports
"""

from unittest.mock import Mock

import pytest

from src.domain.models import SendResult


@pytest.fixture
def registry_snapshot() -> dict:
    """Registry sub-tree for user u1: d1 and d2 have tokens, d3 does not."""
    return {
        "d1": {"fcmToken": "tokenA", "model": "Pixel 8"},
        "d2": {"fcmToken": "tokenB"},
        "d3": {"model": "Tablet"},
    }


@pytest.fixture
def registry(registry_snapshot: dict) -> Mock:
    """Mock DeviceRegistry returning the u1 snapshot."""
    registry = Mock()
    registry.fetch_devices.return_value = registry_snapshot
    registry.remove_stale_registrations.return_value = 0
    return registry


@pytest.fixture
def transport() -> Mock:
    """Mock PushTransport reporting success for every submitted token."""
    transport = Mock()
    transport.send_multicast.side_effect = lambda message, tokens: [
        SendResult(success=True) for _ in tokens
    ]
    return transport
