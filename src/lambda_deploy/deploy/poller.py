"""Readiness polling for Lambda function state transitions.

Two waits are provided: ``wait_until_active`` after a function is created,
and ``wait_until_updated`` after a configuration update. Both clamp the
caller's budget to ``MAX_WAIT_MINUTES`` and block the calling thread.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from lambda_deploy.config.defaults import (
    ACTIVE_POLL_INTERVAL_SECONDS,
    DEFAULT_WAIT_MINUTES,
    MAX_WAIT_MINUTES,
    UPDATE_WAITER_DELAY_SECONDS,
)
from lambda_deploy.deploy.errors import (
    NOT_FOUND_ERROR_NAME,
    ErrorCategory,
    error_message,
    error_name,
    is_not_found,
    not_found_error,
    permission_denied_error,
    status_code,
    timeout_error,
)
from lambda_deploy.lib.errors import DeploymentError, WaitError
from lambda_deploy.lib.logging_config import get_logger

logger = get_logger(__name__)

STATE_ACTIVE = "Active"
STATE_FAILED = "Failed"
UPDATE_WAITER_NAME = "function_updated"
PENDING_STATE_RE = re.compile(r"currently in the following state: '?Pending'?")
WAITER_TIMEOUT_REASON = "Max attempts exceeded"


def clamp_wait_minutes(wait_minutes: int) -> int:
    """Clamp a requested wait budget to MAX_WAIT_MINUTES, logging the cap."""
    if wait_minutes > MAX_WAIT_MINUTES:
        logger.info(f"Wait time capped to maximum of {MAX_WAIT_MINUTES} minutes")
        return MAX_WAIT_MINUTES
    return wait_minutes


class FunctionReadinessPoller:
    """Blocking waits on Lambda function state.

    ``sleep`` and ``clock`` are injectable so waits can run against
    simulated time.
    """

    def __init__(
        self,
        client: Any,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        poll_interval: float = ACTIVE_POLL_INTERVAL_SECONDS,
    ) -> None:
        """Create a poller bound to a boto3 Lambda client."""
        self._client = client
        self._sleep = sleep
        self._clock = clock
        self._poll_interval = poll_interval

    def wait_until_active(
        self, function_name: str, wait_minutes: int = DEFAULT_WAIT_MINUTES
    ) -> None:
        """Poll until the function reaches the Active state.

        Args:
            function_name: Function name or ARN
            wait_minutes: Requested budget, clamped to MAX_WAIT_MINUTES

        Raises:
            DeploymentError: If the function enters the Failed state
            WaitError: If the function is missing, access is denied, or the
                budget runs out
        """
        wait_minutes = clamp_wait_minutes(wait_minutes)
        logger.info(
            f"Waiting for function {function_name} to become active. "
            f"Will wait for up to {wait_minutes} minutes"
        )

        start = self._clock()
        budget_seconds = wait_minutes * 60
        last_state: str | None = None

        while self._clock() - start < budget_seconds:
            try:
                response = self._client.get_function_configuration(
                    FunctionName=function_name
                )
            except ClientError as exc:
                if is_not_found(exc):
                    raise not_found_error(function_name) from exc
                if status_code(exc) == 403:
                    raise permission_denied_error(function_name) from exc
                logger.warning(f"Function status check error: {error_message(exc)}")
                self._sleep(self._poll_interval)
                continue
            except BotoCoreError as exc:
                logger.warning(f"Function status check error: {exc}")
                self._sleep(self._poll_interval)
                continue

            state = response.get("State")
            if state != last_state:
                logger.info(f"Function {function_name} is in state: {state}")
                last_state = state

            if state == STATE_ACTIVE:
                logger.info(f"Function {function_name} is now active")
                return
            if state == STATE_FAILED:
                reason = response.get("StateReason") or "Unknown reason"
                raise DeploymentError(
                    operation="wait",
                    message=(
                        f"Function {function_name} deployment failed with "
                        f"reason: {reason}"
                    ),
                )

            self._sleep(self._poll_interval)

        raise timeout_error(function_name, "become active", wait_minutes)

    def wait_until_updated(
        self, function_name: str, wait_minutes: int = DEFAULT_WAIT_MINUTES
    ) -> None:
        """Wait for an in-progress function update to settle.

        Delegates to the boto3 ``function_updated`` waiter. When the function
        reports that it is still Pending, falls back to ``wait_until_active``
        with the same budget.

        Raises:
            WaitError: On timeout, missing function, denied access, or any
                other waiter failure
        """
        wait_minutes = clamp_wait_minutes(wait_minutes)
        logger.info(
            "Waiting for function update to complete. "
            f"Will wait for {wait_minutes} minutes"
        )

        max_attempts = max(1, (wait_minutes * 60) // UPDATE_WAITER_DELAY_SECONDS)
        waiter = self._client.get_waiter(UPDATE_WAITER_NAME)

        try:
            waiter.wait(
                FunctionName=function_name,
                WaiterConfig={
                    "Delay": UPDATE_WAITER_DELAY_SECONDS,
                    "MaxAttempts": max_attempts,
                },
            )
        except (WaiterError, ClientError) as exc:
            self._handle_update_wait_failure(exc, function_name, wait_minutes)
            return

        logger.info("Function update completed successfully")

    def _handle_update_wait_failure(
        self,
        exc: WaiterError | ClientError,
        function_name: str,
        wait_minutes: int,
    ) -> None:
        name, status, message = _failure_details(exc)

        if isinstance(exc, WaiterError) and WAITER_TIMEOUT_REASON in str(exc):
            raise WaitError(
                ErrorCategory.TIMEOUT,
                f"Timed out waiting for function {function_name} update to "
                f"complete after {wait_minutes} minutes",
            ) from exc
        if name == NOT_FOUND_ERROR_NAME:
            raise not_found_error(function_name) from exc
        if status == 403:
            raise permission_denied_error(function_name) from exc
        if PENDING_STATE_RE.search(message):
            logger.warning(
                f"Function {function_name} is in 'Pending' state. "
                "Waiting for it to become active..."
            )
            self.wait_until_active(function_name, wait_minutes)
            logger.info(f"Function {function_name} is now active")
            return

        logger.warning(f"Function update check error: {message}")
        raise WaitError(
            ErrorCategory.GENERIC,
            f"Error waiting for function {function_name} update: {message}",
        ) from exc


def _failure_details(
    exc: WaiterError | ClientError,
) -> tuple[str | None, int | None, str]:
    """Return (error code, HTTP status, message) for a waiter failure.

    A WaiterError carries the last AWS error body on ``last_response``.
    """
    if isinstance(exc, ClientError):
        return error_name(exc), status_code(exc), error_message(exc)

    last_response = exc.last_response if isinstance(exc.last_response, dict) else {}
    error = last_response.get("Error", {})
    status = last_response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return (
        error.get("Code"),
        int(status) if status is not None else None,
        str(error.get("Message") or exc),
    )
