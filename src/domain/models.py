"""
Domain models - Value objects for the call cancellation fan-out.

All models are immutable. Wire field names (camelCase) only appear
where the models are built from or rendered to external data.
"""

from dataclasses import dataclass, field
from enum import Enum

from .exceptions import MissingRequiredFields

CALL_TAKEN = "call_taken"


class DeliveryErrorKind(str, Enum):
    """
    Classification of a per-destination delivery failure.

    TOKEN_INVALID: the registration is permanently dead and is a
    candidate for registry cleanup.
    TRANSIENT: anything else (throttling, unavailable, internal).
    """

    TOKEN_INVALID = "token_invalid"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class DeviceRegistration:
    """One device's current push-addressability for a user."""

    user_id: str
    device_id: str
    push_token: str | None = None

    @property
    def is_addressable(self) -> bool:
        return bool(self.push_token)


@dataclass(frozen=True)
class CallAcceptanceEvent:
    """
    Triggering input: a call was accepted on one of a user's devices.

    All four fields are required and must be non-empty strings.

    Raises:
        MissingRequiredFields: listing the wire names of absent fields
    """

    user_id: str
    accepted_device_id: str
    channel: str
    token: str

    def __post_init__(self) -> None:
        wire_names = (
            ("userId", self.user_id),
            ("acceptedDeviceId", self.accepted_device_id),
            ("channel", self.channel),
            ("token", self.token),
        )
        missing = [name for name, value in wire_names if not isinstance(value, str) or not value]
        if missing:
            raise MissingRequiredFields(missing)


@dataclass(frozen=True)
class CancellationMessage:
    """
    Transport-neutral multicast payload.

    The data block is delivered as transport-level data, never as a
    user-visible alert. Priority hints ask both mobile platforms for
    immediate, high-priority delivery that can wake a backgrounded app.
    """

    data: dict[str, str]
    priority: str = "high"
    content_available: bool = True
    sound: str | None = "default"

    @classmethod
    def call_taken(cls, channel: str, session_token: str) -> "CancellationMessage":
        return cls(data={"type": CALL_TAKEN, "channel": channel, "token": session_token})


@dataclass(frozen=True)
class SendResult:
    """
    Outcome of delivering to a single token.

    `token` is optional: transports that echo the destination let the
    dispatcher pair results by identity instead of by position.
    """

    success: bool
    error_code: str | None = None
    error_message: str | None = None
    token: str | None = None


@dataclass(frozen=True)
class CancellationOutcome:
    """One row per attempted destination."""

    device_id: str
    push_token: str
    delivered: bool
    error_kind: DeliveryErrorKind | None = None
    error_message: str | None = None

    @property
    def is_stale(self) -> bool:
        return self.error_kind is DeliveryErrorKind.TOKEN_INVALID


@dataclass(frozen=True)
class DeliveryReport:
    """Reconciled result of one fan-out."""

    success_count: int
    failure_count: int
    outcomes: tuple[CancellationOutcome, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "DeliveryReport":
        return cls(success_count=0, failure_count=0)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def stale_registrations(self) -> tuple[CancellationOutcome, ...]:
        """Outcomes whose token the transport reported as permanently invalid."""
        return tuple(outcome for outcome in self.outcomes if outcome.is_stale)

    @property
    def stale_device_ids(self) -> list[str]:
        return [outcome.device_id for outcome in self.stale_registrations]
