"""
Unit tests for CancellationDispatcher.

Tests the fan-out with a mocked PushTransport port:
- Candidate filtering (accepting device, missing tokens)
- Single multicast invocation and payload
- Positional and identity-based reconciliation
- Error classification
"""

import logging
from unittest.mock import Mock

import pytest

from src.domain.dispatcher import CancellationDispatcher, classify_error
from src.domain.exceptions import TransportUnavailable
from src.domain.models import (
    CancellationMessage,
    DeliveryErrorKind,
    DeviceRegistration,
    SendResult,
)

U1_DEVICES = [
    DeviceRegistration("u1", "d1", "tokenA"),
    DeviceRegistration("u1", "d2", "tokenB"),
    DeviceRegistration("u1", "d3", None),
]


def transport_returning(*results: SendResult) -> Mock:
    transport = Mock()
    transport.send_multicast.return_value = list(results)
    return transport


def sent_tokens(transport: Mock) -> list[str]:
    return list(transport.send_multicast.call_args[0][1])


class TestCandidateFiltering:
    """Tests for candidate selection."""

    def test_accepting_device_is_excluded(self, transport: Mock) -> None:
        """Scenario u1: accepted d1 -> batch is [tokenB] only."""
        report = CancellationDispatcher(transport).dispatch(U1_DEVICES, "d1", "chan-1", "sess-1")

        assert sent_tokens(transport) == ["tokenB"]
        assert report.success_count == 1
        assert report.failure_count == 0

    def test_tokenless_devices_never_reported(self, transport: Mock) -> None:
        """Devices without a token are neither sent to nor reported."""
        report = CancellationDispatcher(transport).dispatch(U1_DEVICES, "d1", "chan-1", "sess-1")
        assert [outcome.device_id for outcome in report.outcomes] == ["d2"]

    def test_tokenless_device_is_logged(
        self, transport: Mock, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            CancellationDispatcher(transport).dispatch(U1_DEVICES, "d1", "chan-1", "sess-1")
        assert "Device d3 for user u1 has no push token" in caplog.text

    def test_accepting_token_never_dispatched(self, transport: Mock) -> None:
        """Candidate set is at most N-1 and never holds the accepting token."""
        for accepted in ("d1", "d2", "d3", "unknown"):
            transport.reset_mock()
            CancellationDispatcher(transport).dispatch(U1_DEVICES, accepted, "chan-1", "sess-1")
            tokens = sent_tokens(transport)
            assert len(tokens) <= len(U1_DEVICES) - 1
            accepted_token = next(
                (d.push_token for d in U1_DEVICES if d.device_id == accepted), None
            )
            assert accepted_token not in tokens


class TestShortCircuit:
    """Tests for the nothing-to-notify path."""

    def test_no_devices_skips_transport(self, transport: Mock) -> None:
        report = CancellationDispatcher(transport).dispatch([], "d1", "chan-1", "sess-1")

        assert report.success_count == 0
        assert report.failure_count == 0
        assert report.outcomes == ()
        transport.send_multicast.assert_not_called()

    def test_all_filtered_skips_transport(self, transport: Mock) -> None:
        """Only the accepting device and a tokenless one: nothing to send."""
        devices = [DeviceRegistration("u1", "d1", "tokenA"), DeviceRegistration("u1", "d3")]

        report = CancellationDispatcher(transport).dispatch(devices, "d1", "chan-1", "sess-1")

        assert report.attempted == 0
        transport.send_multicast.assert_not_called()


class TestBatch:
    """Tests for the multicast request."""

    def test_transport_invoked_once_with_all_tokens(self, transport: Mock) -> None:
        devices = [DeviceRegistration("u1", f"d{i}", f"token{i}") for i in range(10)]

        CancellationDispatcher(transport).dispatch(devices, "d0", "chan-1", "sess-1")

        transport.send_multicast.assert_called_once()
        assert sent_tokens(transport) == [f"token{i}" for i in range(1, 10)]

    def test_message_payload(self, transport: Mock) -> None:
        CancellationDispatcher(transport).dispatch(U1_DEVICES, "d1", "chan-1", "sess-1")

        message = transport.send_multicast.call_args[0][0]
        assert message == CancellationMessage.call_taken("chan-1", "sess-1")
        assert message.data["type"] == "call_taken"

    def test_transport_unavailable_propagates(self) -> None:
        transport = Mock()
        transport.send_multicast.side_effect = TransportUnavailable("connection refused")

        with pytest.raises(TransportUnavailable):
            CancellationDispatcher(transport).dispatch(U1_DEVICES, "d1", "chan-1", "sess-1")

        transport.send_multicast.assert_called_once()


class TestReconciliation:
    """Tests for pairing transport results with registrations."""

    devices = [
        DeviceRegistration("u1", "d1", "tokenA"),
        DeviceRegistration("u1", "d2", "tokenB"),
        DeviceRegistration("u1", "d3", "tokenC"),
        DeviceRegistration("u1", "d4", "tokenD"),
    ]

    def test_token_invalid_is_flagged_stale(self) -> None:
        """Scenario: tokenB reported invalid -> failure, flagged for cleanup."""
        transport = transport_returning(
            SendResult(success=False, error_code="unregistered", error_message="gone")
        )

        report = CancellationDispatcher(transport).dispatch(U1_DEVICES, "d1", "chan-1", "sess-1")

        assert report.success_count == 0
        assert report.failure_count == 1
        outcome = report.outcomes[0]
        assert outcome.device_id == "d2"
        assert outcome.push_token == "tokenB"
        assert outcome.delivered is False
        assert outcome.error_kind is DeliveryErrorKind.TOKEN_INVALID
        assert outcome.error_message == "gone"
        assert report.stale_device_ids == ["d2"]

    def test_positional_pairing(self) -> None:
        transport = transport_returning(
            SendResult(success=True),
            SendResult(success=False, error_code="unavailable"),
            SendResult(success=False, error_code="unregistered"),
        )

        report = CancellationDispatcher(transport).dispatch(self.devices, "d1", "c", "s")

        assert [(o.device_id, o.delivered, o.error_kind) for o in report.outcomes] == [
            ("d2", True, None),
            ("d3", False, DeliveryErrorKind.TRANSIENT),
            ("d4", False, DeliveryErrorKind.TOKEN_INVALID),
        ]
        assert report.success_count == 1
        assert report.failure_count == 2

    def test_reordered_rows_reorder_report(self) -> None:
        """Reordering transport rows reorders the reconciled outcomes identically."""
        rows = [
            SendResult(success=True),
            SendResult(success=False, error_code="unavailable"),
            SendResult(success=False, error_code="unregistered"),
        ]
        forward = CancellationDispatcher(transport_returning(*rows)).dispatch(
            self.devices, "d1", "c", "s"
        )
        backward = CancellationDispatcher(transport_returning(*reversed(rows))).dispatch(
            self.devices, "d1", "c", "s"
        )

        forward_status = [(o.delivered, o.error_kind) for o in forward.outcomes]
        backward_status = [(o.delivered, o.error_kind) for o in backward.outcomes]
        assert backward_status == list(reversed(forward_status))
        assert [o.device_id for o in backward.outcomes] == ["d2", "d3", "d4"]

    def test_identity_pairing_when_tokens_echoed(self) -> None:
        """Results carrying their token are paired by identity, not position."""
        transport = transport_returning(
            SendResult(success=False, error_code="unregistered", token="tokenD"),
            SendResult(success=True, token="tokenB"),
            SendResult(success=True, token="tokenC"),
        )

        report = CancellationDispatcher(transport).dispatch(self.devices, "d1", "c", "s")

        assert [(o.device_id, o.delivered) for o in report.outcomes] == [
            ("d2", True),
            ("d3", True),
            ("d4", False),
        ]
        assert report.stale_device_ids == ["d4"]

    def test_identity_pairing_with_shared_token(self) -> None:
        """Two devices sharing a token each receive one result."""
        devices = [
            DeviceRegistration("u1", "d1", "tokenA"),
            DeviceRegistration("u1", "d2", "shared"),
            DeviceRegistration("u1", "d3", "shared"),
        ]
        transport = transport_returning(
            SendResult(success=True, token="shared"),
            SendResult(success=False, error_code="unavailable", token="shared"),
        )

        report = CancellationDispatcher(transport).dispatch(devices, "d1", "c", "s")

        assert [(o.device_id, o.delivered) for o in report.outcomes] == [
            ("d2", True),
            ("d3", False),
        ]

    def test_identity_pairing_missing_token_raises(self) -> None:
        transport = transport_returning(
            SendResult(success=True, token="tokenB"),
            SendResult(success=True, token="tokenB"),
            SendResult(success=True, token="unknown"),
        )

        with pytest.raises(TransportUnavailable):
            CancellationDispatcher(transport).dispatch(self.devices, "d1", "c", "s")

    def test_result_count_mismatch_raises(self) -> None:
        """Fewer results than tokens breaks the transport contract."""
        transport = transport_returning(SendResult(success=True))

        with pytest.raises(TransportUnavailable):
            CancellationDispatcher(transport).dispatch(self.devices, "d1", "c", "s")


class TestClassifyError:
    """Tests for transport error classification."""

    @pytest.mark.parametrize(
        "code",
        ["unregistered", "invalid-registration-token", "sender-id-mismatch"],
    )
    def test_dead_registration_codes(self, code: str) -> None:
        assert classify_error(code) is DeliveryErrorKind.TOKEN_INVALID

    @pytest.mark.parametrize(
        "code", ["quota-exceeded", "unavailable", "internal", "invalid-argument", None]
    )
    def test_everything_else_is_transient(self, code) -> None:
        assert classify_error(code) is DeliveryErrorKind.TRANSIENT
