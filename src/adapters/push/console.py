"""
Console push transport adapter - Implements PushTransport protocol.

This module provides a console-based implementation of the domain's
push transport port, logging cancellation messages for local development.
"""

import logging
from collections.abc import Sequence

from src.domain.models import CancellationMessage, SendResult

logger = logging.getLogger(__name__)


class ConsolePushTransport:
    """
    Implements PushTransport protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Every token is reported as delivered.
    """

    def send_multicast(
        self, message: CancellationMessage, tokens: Sequence[str]
    ) -> list[SendResult]:
        """
        Log the message once per destination token (simulates delivery).

        Args:
            message: Cancellation payload
            tokens: Destination push tokens

        Returns:
            One successful result per token, echoing the token
        """
        for token in tokens:
            logger.info(
                "[PUSH] Token: %s Type: %s Channel: %s",
                token,
                message.data.get("type"),
                message.data.get("channel"),
            )
        return [SendResult(success=True, token=token) for token in tokens]
