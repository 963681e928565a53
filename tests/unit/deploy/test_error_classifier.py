"""Unit tests for AWS error classification."""

from __future__ import annotations

import logging

import pytest
from botocore.exceptions import ClientError

from lambda_deploy.deploy.errors import (
    ErrorCategory,
    classify_error,
    is_not_found,
    report_failure,
    timeout_error,
)
from lambda_deploy.lib.errors import DeploymentError


def _client_error(code: str, message: str, status: int) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        "UpdateFunctionCode",
    )


@pytest.mark.unit
class TestClassifyError:
    """Tests for classify_error."""

    def test_throttling_by_name(self) -> None:
        """ThrottlingException is rate limited and retriable."""
        result = classify_error(_client_error("ThrottlingException", "slow down", 400))

        assert result.category == ErrorCategory.RATE_LIMITED
        assert result.retriable is True
        assert result.message == (
            "Rate limit exceeded and maximum retries reached: slow down"
        )

    def test_throttling_by_status(self) -> None:
        """A 429 status is rate limited whatever the code."""
        result = classify_error(_client_error("SomethingElse", "slow", 429))

        assert result.category == ErrorCategory.RATE_LIMITED

    def test_server_fault(self) -> None:
        """5xx responses are server faults."""
        result = classify_error(_client_error("ServiceException", "oops", 503))

        assert result.category == ErrorCategory.SERVER_FAULT
        assert result.retriable is True
        assert result.message == "Server error (503): oops. All retry attempts failed."

    def test_access_denied(self) -> None:
        """AccessDeniedException points at IAM."""
        result = classify_error(_client_error("AccessDeniedException", "nope", 403))

        assert result.category == ErrorCategory.PERMISSION_DENIED
        assert result.retriable is False
        assert result.message == (
            "Action failed with error: Permissions error: nope. Check IAM roles."
        )

    def test_wait_error_keeps_category(self) -> None:
        """Wait failures keep the category assigned where they were raised."""
        result = classify_error(timeout_error("fn", "become active", 5))

        assert result.category == ErrorCategory.TIMEOUT
        assert result.retriable is True
        assert result.message == (
            "Timed out waiting for function fn to become active after 5 minutes"
        )

    def test_generic_uses_context(self) -> None:
        """Unmatched failures carry the caller's context."""
        result = classify_error(
            _client_error("InvalidParameterValueException", "bad memory", 400),
            context="Failed to update function configuration",
        )

        assert result.category == ErrorCategory.GENERIC
        assert result.message == "Failed to update function configuration: bad memory"

    def test_generic_default_context(self) -> None:
        """Plain exceptions use the default context."""
        result = classify_error(DeploymentError(operation="package", message="empty"))

        assert result.message == "Action failed with error: empty"

    def test_is_not_found(self) -> None:
        """ResourceNotFoundException is recognized."""
        assert is_not_found(_client_error("ResourceNotFoundException", "x", 404))
        assert not is_not_found(_client_error("ServiceException", "x", 500))


@pytest.mark.unit
class TestReportFailure:
    """Tests for report_failure."""

    def test_logs_classified_message(self, caplog: pytest.LogCaptureFixture) -> None:
        """The classified message is logged at ERROR."""
        exc = _client_error("InvalidParameterValueException", "bad", 400)

        with caplog.at_level(logging.ERROR, logger="lambda_deploy"):
            result = report_failure(exc, context="Failed to create function")

        assert result.category == ErrorCategory.GENERIC
        assert "Failed to create function: bad" in caplog.text
