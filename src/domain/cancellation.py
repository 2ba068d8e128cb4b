"""
Call cancellation domain service - Resolver -> Dispatcher orchestration.

This module contains the entry point for a call acceptance event:

1. Validate the event (all fields required)
2. Resolve the user's registered devices
3. Fan out call_taken to every other addressable device
4. Optionally prune registrations the transport reported as dead

Stale Registration Cleanup
==========================

The dispatcher only reports stale registrations. Pruning them is
opt-in (`prune_invalid_tokens`) and conditional: the registry removes
an entry only if it still holds the failed token. A cleanup failure is
logged and never changes the outcome of the notification itself.
"""

import logging
from dataclasses import dataclass

from .dispatcher import CancellationDispatcher
from .exceptions import RegistryUnavailable
from .models import CallAcceptanceEvent, DeliveryReport
from .ports import DeviceRegistry
from .resolver import DeviceSetResolver

logger = logging.getLogger(__name__)


@dataclass
class CallCancellationService:
    """
    Domain service for call acceptance notifications.

    Holds no per-request state; one instance may serve concurrent events.
    """

    registry: DeviceRegistry
    dispatcher: CancellationDispatcher
    prune_invalid_tokens: bool = False

    @property
    def resolver(self) -> DeviceSetResolver:
        return DeviceSetResolver(self.registry)

    def notify_call_accepted(self, event: CallAcceptanceEvent) -> DeliveryReport:
        """
        Notify a user's other devices that a call was accepted.

        Args:
            event: Validated call acceptance event

        Returns:
            DeliveryReport; zero counts when there was nobody to notify

        Raises:
            RegistryUnavailable: Device registry could not be read
            TransportUnavailable: Push transport failed for the whole batch
        """
        logger.info(
            "Received call accepted notification: User=%s, AcceptedBy=%s, Channel=%s",
            event.user_id,
            event.accepted_device_id,
            event.channel,
        )

        devices = self.resolver.resolve(event.user_id)
        if not devices:
            logger.info("No registered devices found for user %s", event.user_id)
            return DeliveryReport.empty()

        report = self.dispatcher.dispatch(
            devices, event.accepted_device_id, event.channel, event.token
        )
        if report.attempted == 0:
            logger.info("No other devices to send cancellation to for user %s", event.user_id)

        if self.prune_invalid_tokens and report.stale_registrations:
            self._prune(event.user_id, report)
        return report

    def _prune(self, user_id: str, report: DeliveryReport) -> None:
        try:
            removed = self.registry.remove_stale_registrations(
                user_id, report.stale_registrations
            )
        except RegistryUnavailable as e:
            logger.warning("Stale registration cleanup failed for user %s: %s", user_id, e)
            return
        logger.info(
            "Removed %d of %d stale registration(s) for user %s",
            removed,
            len(report.stale_registrations),
            user_id,
        )
