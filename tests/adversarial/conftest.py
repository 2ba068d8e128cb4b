"""
Shared fixtures for adversarial tests.

Provides a thread-safe in-memory registry and transport for
concurrent acceptance scenarios.
"""

import threading
from collections.abc import Sequence

import pytest

from src.domain.models import CancellationMessage, SendResult

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


class SharedRegistry:
    """Read-only DeviceRegistry shared by every concurrent request."""

    def __init__(self, data: dict) -> None:
        self._data = data

    def fetch_devices(self, user_id: str):
        return self._data.get(user_id)

    def remove_stale_registrations(self, user_id, registrations) -> int:
        return 0


class CountingTransport:
    """PushTransport recording batches from many threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.batches: list[list[str]] = []

    def send_multicast(self, message: CancellationMessage, tokens: Sequence[str]):
        with self._lock:
            self.batches.append(list(tokens))
        return [SendResult(success=True) for _ in tokens]


@pytest.fixture
def shared_registry() -> SharedRegistry:
    devices = {f"d{i}": {"fcmToken": f"token{i}"} for i in range(1, 6)}
    return SharedRegistry({"u1": devices, "u2": {"p1": {"fcmToken": "p-token"}}})


@pytest.fixture
def counting_transport() -> CountingTransport:
    return CountingTransport()
