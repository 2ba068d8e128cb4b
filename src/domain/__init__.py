"""
Domain layer - Pure business logic with zero framework imports.

This package contains the call cancellation fan-out: device resolution,
multicast dispatch and delivery reconciliation. It defines its own port
interfaces for the device registry and push transport, ensuring true
hexagonal architecture decoupling.
"""

from .cancellation import CallCancellationService
from .dispatcher import CancellationDispatcher, classify_error
from .exceptions import (
    CallCancellationError,
    MissingRequiredFields,
    RegistryUnavailable,
    TransportUnavailable,
)
from .models import (
    CallAcceptanceEvent,
    CancellationMessage,
    CancellationOutcome,
    DeliveryErrorKind,
    DeliveryReport,
    DeviceRegistration,
    SendResult,
)
from .ports import DeviceRegistry, PushTransport
from .resolver import DeviceSetResolver

__all__ = [
    "CallAcceptanceEvent",
    "CallCancellationError",
    "CallCancellationService",
    "CancellationDispatcher",
    "CancellationMessage",
    "CancellationOutcome",
    "DeliveryErrorKind",
    "DeliveryReport",
    "DeviceRegistration",
    "DeviceRegistry",
    "DeviceSetResolver",
    "MissingRequiredFields",
    "PushTransport",
    "RegistryUnavailable",
    "SendResult",
    "TransportUnavailable",
    "classify_error",
]
