"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
JSON field names are camelCase to match the mobile clients.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# FCM rejects data payloads over 4096 bytes; leave room for keys and "call_taken"
MAX_CHANNEL_LENGTH = 256
MAX_SESSION_TOKEN_LENGTH = 2048
MAX_FORWARDED_BYTES = 3584


class CamelModel(BaseModel):
    """Base model exposing snake_case attributes as camelCase JSON fields."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CallAcceptedRequest(CamelModel):
    """
    Request model for a call acceptance notification.

    Fields are optional here so that missing values are reported by the
    domain as a 400 listing every absent field.
    """

    user_id: str | None = Field(None, description="User whose devices are ringing")
    accepted_device_id: str | None = Field(None, description="Device that accepted the call")
    channel: str | None = Field(
        None, max_length=MAX_CHANNEL_LENGTH, description="Call/session identifier"
    )
    token: str | None = Field(
        None,
        max_length=MAX_SESSION_TOKEN_LENGTH,
        description="Session token, passed through to devices",
    )

    @model_validator(mode="after")
    def check_forwarded_size(self) -> "CallAcceptedRequest":
        """channel and token are forwarded to every device and must fit one push."""
        size = sum(len(value.encode()) for value in (self.channel, self.token) if value)
        if size > MAX_FORWARDED_BYTES:
            raise ValueError(f"channel and token exceed {MAX_FORWARDED_BYTES} bytes")
        return self


class CallAcceptedResponse(CamelModel):
    """Response model for a handled call acceptance (including partial failures)."""

    message: str
    success_count: int | None = None
    failure_count: int | None = None
    stale_device_ids: list[str] | None = Field(
        None, description="Devices whose push token was reported permanently invalid"
    )


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
