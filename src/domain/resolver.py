"""
Device set resolver - Reads a user's device registrations.

Validates the registry's loosely-typed records into DeviceRegistration
values at this boundary. The resolver surfaces everything that exists;
filtering by intent belongs to the dispatcher.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .models import DeviceRegistration
from .ports import DeviceRegistry

logger = logging.getLogger(__name__)

TOKEN_FIELD = "fcmToken"


@dataclass
class DeviceSetResolver:
    """Resolves the ordered set of registered devices for a user."""

    registry: DeviceRegistry

    def resolve(self, user_id: str) -> list[DeviceRegistration]:
        """
        Resolve every registered device for a user.

        Args:
            user_id: Non-empty user identifier (validated upstream)

        Returns:
            Registrations in registry order; empty if none exist

        Raises:
            RegistryUnavailable: Propagated from the registry, no partial result
        """
        snapshot = self.registry.fetch_devices(user_id)
        if snapshot is None:
            return []

        if isinstance(snapshot, Mapping):
            entries = [(str(device_id), record) for device_id, record in snapshot.items()]
        elif isinstance(snapshot, Sequence) and not isinstance(snapshot, (str, bytes)):
            # Realtime Database renders integer-like keys as a sparse array
            entries = [
                (str(index), record) for index, record in enumerate(snapshot) if record is not None
            ]
        else:
            logger.warning(
                "Ignoring malformed device registry entry for user %s: %r", user_id, snapshot
            )
            return []

        return [self._to_registration(user_id, device_id, record) for device_id, record in entries]

    def _to_registration(self, user_id: str, device_id: str, record: Any) -> DeviceRegistration:
        if not isinstance(record, Mapping):
            logger.warning("Device %s for user %s has a malformed record", device_id, user_id)
            return DeviceRegistration(user_id=user_id, device_id=device_id)

        token = record.get(TOKEN_FIELD)
        if not isinstance(token, str) or not token.strip():
            token = None
        return DeviceRegistration(user_id=user_id, device_id=device_id, push_token=token)
