"""
Cancellation fan-out dispatcher - Delivers call_taken to the other devices.

Single pass per invocation:

    filter -> short-circuit -> build batch -> send once -> reconcile

Reconciliation
==============

The transport returns one result per submitted token. Results are
paired with their originating registration by position, which is the
transport's contract. When every result echoes its destination token,
results are paired by token identity instead and their order no longer
matters. A result set that cannot be paired with the batch is treated
as a failed send for the whole batch.

Failed destinations are classified as TOKEN_INVALID (dead registration,
reported for cleanup) or TRANSIENT (everything else). Nothing is retried.
"""

import logging
from collections import defaultdict, deque
from collections.abc import Sequence
from dataclasses import dataclass

from .exceptions import TransportUnavailable
from .models import (
    CancellationMessage,
    CancellationOutcome,
    DeliveryErrorKind,
    DeliveryReport,
    DeviceRegistration,
    SendResult,
)
from .ports import PushTransport

logger = logging.getLogger(__name__)

# Transport error codes meaning the registration will never be deliverable again.
INVALID_TOKEN_ERROR_CODES = frozenset(
    {
        "unregistered",
        "invalid-registration-token",
        "sender-id-mismatch",
    }
)


def classify_error(error_code: str | None) -> DeliveryErrorKind:
    """Map a transport error code to a delivery error kind."""
    if error_code in INVALID_TOKEN_ERROR_CODES:
        return DeliveryErrorKind.TOKEN_INVALID
    return DeliveryErrorKind.TRANSIENT


@dataclass
class CancellationDispatcher:
    """
    Domain service for the cancellation fan-out.

    The transport is injected so tests and alternative vendors can
    supply their own implementation.
    """

    transport: PushTransport

    def dispatch(
        self,
        devices: Sequence[DeviceRegistration],
        accepted_device_id: str,
        channel: str,
        session_token: str,
    ) -> DeliveryReport:
        """
        Notify every other addressable device that the call was taken.

        Args:
            devices: Registrations from the resolver
            accepted_device_id: Device that accepted the call (never notified)
            channel: Call/session identifier
            session_token: Session credential, passed through opaquely

        Returns:
            DeliveryReport with per-destination outcomes; zero counts if
            there was nobody to notify

        Raises:
            TransportUnavailable: The batch could not be sent or reconciled
        """
        candidates = self._select_candidates(devices, accepted_device_id)
        if not candidates:
            return DeliveryReport.empty()

        tokens = [device.push_token for device in candidates]
        message = CancellationMessage.call_taken(channel, session_token)

        logger.info("Sending call_taken message to %d other device(s)", len(tokens))
        results = self.transport.send_multicast(message, tokens)

        report = self._reconcile(candidates, results)
        logger.info(
            "Cancellation send result - Success: %d, Failures: %d",
            report.success_count,
            report.failure_count,
        )
        return report

    def _select_candidates(
        self, devices: Sequence[DeviceRegistration], accepted_device_id: str
    ) -> list[DeviceRegistration]:
        candidates = []
        for device in devices:
            if not device.is_addressable:
                logger.warning(
                    "Device %s for user %s has no push token", device.device_id, device.user_id
                )
                continue
            if device.device_id == accepted_device_id:
                continue
            candidates.append(device)
        return candidates

    def _reconcile(
        self, candidates: list[DeviceRegistration], results: Sequence[SendResult]
    ) -> DeliveryReport:
        if len(results) != len(candidates):
            raise TransportUnavailable(
                f"Transport returned {len(results)} result(s) for {len(candidates)} token(s)"
            )

        if all(result.token is not None for result in results):
            paired = self._pair_by_token(candidates, results)
        else:
            paired = list(zip(candidates, results))

        outcomes = tuple(self._to_outcome(device, result) for device, result in paired)
        success_count = sum(1 for outcome in outcomes if outcome.delivered)
        return DeliveryReport(
            success_count=success_count,
            failure_count=len(outcomes) - success_count,
            outcomes=outcomes,
        )

    def _pair_by_token(
        self, candidates: list[DeviceRegistration], results: Sequence[SendResult]
    ) -> list[tuple[DeviceRegistration, SendResult]]:
        # Queues keep duplicate tokens (two devices sharing one) paired in order
        by_token: dict[str, deque[SendResult]] = defaultdict(deque)
        for result in results:
            by_token[result.token].append(result)

        paired = []
        for device in candidates:
            pending = by_token.get(device.push_token)
            if not pending:
                raise TransportUnavailable(
                    f"Transport returned no result for device {device.device_id}"
                )
            paired.append((device, pending.popleft()))
        return paired

    def _to_outcome(self, device: DeviceRegistration, result: SendResult) -> CancellationOutcome:
        if result.success:
            return CancellationOutcome(
                device_id=device.device_id, push_token=device.push_token, delivered=True
            )

        kind = classify_error(result.error_code)
        logger.error(
            "Failed to send message to device %s (token %s): %s [%s]",
            device.device_id,
            device.push_token,
            result.error_message or result.error_code,
            kind.value,
        )
        return CancellationOutcome(
            device_id=device.device_id,
            push_token=device.push_token,
            delivered=False,
            error_kind=kind,
            error_message=result.error_message,
        )
