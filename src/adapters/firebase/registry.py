"""
Firebase Realtime Database registry adapter - Implements DeviceRegistry protocol.

Devices are stored per user under a configurable path template,
by default:

    /calls/{user_id}/secondaryDevices/{device_id} = {"fcmToken": "...", ...}
"""

import logging
from collections.abc import Sequence
from typing import Any

import firebase_admin
from firebase_admin import db
from firebase_admin.exceptions import FirebaseError

from src.domain.exceptions import RegistryUnavailable
from src.domain.models import CancellationOutcome
from src.domain.resolver import TOKEN_FIELD

logger = logging.getLogger(__name__)


class FirebaseDeviceRegistry:
    """
    Implements DeviceRegistry protocol via firebase_admin.db.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Request timeouts come from the app's `httpTimeout` option.
    """

    def __init__(
        self,
        app: firebase_admin.App,
        path_template: str = "/calls/{user_id}/secondaryDevices",
    ) -> None:
        self._app = app
        self._path_template = path_template

    def fetch_devices(self, user_id: str) -> Any:
        """Read the user's device sub-tree; None when it does not exist."""
        try:
            ref = self._reference(user_id)
        except ValueError:
            # Keys containing . # $ [ ] cannot exist in the database; / would escape the subtree
            logger.warning("User id %r is not a valid registry key", user_id)
            return None

        try:
            return ref.get()
        except FirebaseError as e:
            logger.error("Device registry read failed for user %s: %s", user_id, e)
            raise RegistryUnavailable(f"Device registry read failed: {e}") from e

    def remove_stale_registrations(
        self, user_id: str, registrations: Sequence[CancellationOutcome]
    ) -> int:
        """
        Remove each stale device entry inside its own transaction.

        The transaction deletes the entry only if its token is unchanged.
        """
        removed = 0
        ref = self._reference(user_id)
        for registration in registrations:
            deleted = False

            def drop_if_unchanged(current: Any, token: str = registration.push_token) -> Any:
                nonlocal deleted
                if isinstance(current, dict) and current.get(TOKEN_FIELD) == token:
                    deleted = True
                    return None
                deleted = False
                return current

            try:
                ref.child(registration.device_id).transaction(drop_if_unchanged)
            except FirebaseError as e:
                raise RegistryUnavailable(f"Device registry cleanup failed: {e}") from e
            if deleted:
                logger.info(
                    "Removed stale registration %s for user %s", registration.device_id, user_id
                )
                removed += 1
        return removed

    def _reference(self, user_id: str) -> db.Reference:
        if "/" in user_id:
            raise ValueError(f"Invalid user id {user_id!r}")
        return db.reference(self._path_template.format(user_id=user_id), app=self._app)
