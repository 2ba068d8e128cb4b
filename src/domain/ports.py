"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from .models import CancellationMessage, CancellationOutcome, SendResult


class DeviceRegistry(Protocol):
    """Port interface for the external user -> device -> push token directory."""

    def fetch_devices(self, user_id: str) -> Mapping[str, Any] | Sequence[Any] | None:
        """
        Read the full device sub-tree for a user in one fetch.

        Each record is a mapping that may carry an `fcmToken` string
        alongside arbitrary other fields. Records are returned as stored;
        validation happens in the domain.

        Args:
            user_id: Opaque user identifier

        Returns:
            Snapshot of device records keyed by device id, or None
            if the user has never registered a device

        Raises:
            RegistryUnavailable: Registry could not be reached in time
        """
        ...

    def remove_stale_registrations(
        self, user_id: str, registrations: Sequence[CancellationOutcome]
    ) -> int:
        """
        Conditionally remove registrations reported as permanently invalid.

        An entry is removed only if it still holds the token that failed,
        so a device that re-registered in the meantime keeps its new token.

        Args:
            user_id: Opaque user identifier
            registrations: Stale outcomes (device id + failed token)

        Returns:
            Number of entries removed

        Raises:
            RegistryUnavailable: Registry could not be reached in time
        """
        ...


class PushTransport(Protocol):
    """Port interface for multicast push delivery."""

    def send_multicast(
        self, message: CancellationMessage, tokens: Sequence[str]
    ) -> list[SendResult]:
        """
        Deliver one message to a batch of destination tokens.

        The returned list holds exactly one result per input token,
        in the same order as submitted.

        Args:
            message: Payload and delivery priority hints
            tokens: Destination push tokens

        Returns:
            Per-token results, positionally aligned with `tokens`

        Raises:
            TransportUnavailable: The whole batch could not be sent
        """
        ...
