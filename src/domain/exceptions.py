"""
Domain exceptions - Semantic error types for call cancellation.

This module defines domain-specific exceptions that communicate
operation failures without leaking infrastructure details.
Per-destination delivery failures are not exceptions; they are
reported in the DeliveryReport.
"""


class CallCancellationError(Exception):
    """Base class for call cancellation domain errors."""

    pass


class MissingRequiredFields(CallCancellationError):
    """A call acceptance event is missing one or more required fields."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing required fields: {', '.join(missing)}")


class RegistryUnavailable(CallCancellationError):
    """The device registry could not be read (connectivity, timeout)."""

    pass


class TransportUnavailable(CallCancellationError):
    """The push transport failed for the whole batch."""

    pass
