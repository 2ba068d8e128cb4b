"""
API v1 routes.

Defines REST endpoints for the call cancellation fan-out API.
"""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_cancellation_service
from src.api.models import CallAcceptedRequest, CallAcceptedResponse, ErrorResponse
from src.domain.cancellation import CallCancellationService
from src.domain.models import CallAcceptanceEvent

router = APIRouter(tags=["v1"])

NO_DEVICES_MESSAGE = "No other devices to notify."
SENT_MESSAGE = "Cancellation messages sent."


@router.post(
    "/callAccepted",
    response_model=CallAcceptedResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Missing required fields"},
        500: {"model": ErrorResponse, "description": "Registry or push transport unavailable"},
    },
    summary="Notify other devices that a call was accepted",
    description="Called by the device that accepted an incoming call. "
    "Every other registered device of the user receives a call_taken "
    "data message so it can stop ringing.",
)
def call_accepted(
    request_data: CallAcceptedRequest,
    service: CallCancellationService = Depends(get_cancellation_service),
) -> CallAcceptedResponse:
    """
    Fan out a call_taken cancellation to the user's other devices.

    - **userId**: User whose devices are ringing
    - **acceptedDeviceId**: Device that accepted (not notified)
    - **channel**: Call/session identifier
    - **token**: Session token forwarded to the devices

    Partial delivery failures still return 200 with the counts.
    """
    event = CallAcceptanceEvent(
        user_id=request_data.user_id,
        accepted_device_id=request_data.accepted_device_id,
        channel=request_data.channel,
        token=request_data.token,
    )

    report = service.notify_call_accepted(event)

    if report.attempted == 0:
        return CallAcceptedResponse(message=NO_DEVICES_MESSAGE)

    return CallAcceptedResponse(
        message=SENT_MESSAGE,
        success_count=report.success_count,
        failure_count=report.failure_count,
        stale_device_ids=report.stale_device_ids,
    )
