"""
Firebase Cloud Messaging transport adapter - Implements PushTransport protocol.

Builds one data-only Message per destination token, all sharing the
same high-priority delivery hints for both platforms:

- Android: priority=high (delivered immediately, wakes the app)
- APNs: apns-priority 10 with content-available for background delivery

The batch is sent with a single send_each call. FCM accepts at most 500
messages per call, so larger batches are sent in consecutive chunks and
the per-token results concatenated in submission order.

send_each reports network failures per message rather than raising.
A chunk in which every message failed to reach FCM (connection error,
timeout) is a failed send for the whole batch.
"""

import logging
from collections.abc import Sequence

import firebase_admin
import requests
from firebase_admin import exceptions, messaging

from src.domain.exceptions import TransportUnavailable
from src.domain.models import CancellationMessage, SendResult

logger = logging.getLogger(__name__)

MAX_BATCH_MESSAGES = 500

_CONNECTIVITY_ERRORS = (
    exceptions.UnavailableError,
    exceptions.DeadlineExceededError,
    exceptions.UnknownError,
)


def error_code_for(exc: Exception | None) -> str | None:
    """Normalize a firebase_admin send exception to a transport error code."""
    if exc is None:
        return None
    if isinstance(exc, messaging.UnregisteredError):
        return "unregistered"
    if isinstance(exc, messaging.SenderIdMismatchError):
        return "sender-id-mismatch"
    if isinstance(exc, exceptions.InvalidArgumentError):
        if _names_registration_token(exc):
            return "invalid-registration-token"
        return "invalid-argument"
    if isinstance(exc, messaging.QuotaExceededError):
        return "quota-exceeded"
    code = getattr(exc, "code", None)
    if code:
        return str(code).lower().replace("_", "-")
    return "unknown"


def _names_registration_token(exc: exceptions.FirebaseError) -> bool:
    detail = str(exc)
    if exc.http_response is not None:
        detail = f"{detail} {exc.http_response.text}"
    detail = detail.lower()
    return "registration token" in detail or "message.token" in detail


def is_connectivity_error(exc: Exception | None) -> bool:
    """True when the request never got an answer from FCM."""
    if isinstance(exc, _CONNECTIVITY_ERRORS) and exc.http_response is None:
        return True
    cause = getattr(exc, "cause", None)
    return isinstance(cause, (requests.exceptions.ConnectionError, requests.exceptions.Timeout))


class FcmPushTransport:
    """
    Implements PushTransport protocol via firebase_admin.messaging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Request timeouts come from the app's `httpTimeout` option.
    """

    def __init__(self, app: firebase_admin.App, max_batch_size: int = MAX_BATCH_MESSAGES) -> None:
        self._app = app
        self._max_batch_size = max_batch_size

    def send_multicast(
        self, message: CancellationMessage, tokens: Sequence[str]
    ) -> list[SendResult]:
        results: list[SendResult] = []
        for start in range(0, len(tokens), self._max_batch_size):
            chunk = list(tokens[start : start + self._max_batch_size])
            results.extend(self._send_chunk(message, chunk))
        return results

    def _send_chunk(self, message: CancellationMessage, tokens: list[str]) -> list[SendResult]:
        try:
            response = messaging.send_each(build_messages(message, tokens), app=self._app)
        except (exceptions.FirebaseError, ValueError) as e:
            logger.error("FCM send failed: %s", e)
            raise TransportUnavailable(f"Push transport unavailable: {e}") from e

        if response.responses and all(
            is_connectivity_error(r.exception) for r in response.responses
        ):
            cause = response.responses[0].exception
            logger.error("FCM unreachable for all %d message(s): %s", len(tokens), cause)
            raise TransportUnavailable(f"Push transport unavailable: {cause}") from cause

        logger.debug(
            "FCM send result - Success: %d, Failures: %d",
            response.success_count,
            response.failure_count,
        )
        return [
            SendResult(
                success=send_response.success,
                error_code=error_code_for(send_response.exception),
                error_message=str(send_response.exception) if send_response.exception else None,
            )
            for send_response in response.responses
        ]


def build_messages(message: CancellationMessage, tokens: list[str]) -> list[messaging.Message]:
    """Translate a CancellationMessage into one FCM Message per token."""
    android = messaging.AndroidConfig(priority=message.priority)
    apns = messaging.APNSConfig(
        headers={"apns-priority": "10" if message.priority == "high" else "5"},
        payload=messaging.APNSPayload(
            aps=messaging.Aps(
                content_available=message.content_available,
                sound=message.sound,
            )
        ),
    )
    return [
        messaging.Message(token=token, data=dict(message.data), android=android, apns=apns)
        for token in tokens
    ]
