"""Error classification for remote AWS failures.

Every remote call site (create, configuration update, code update and both
pollers) maps caught failures through ``classify_error`` so that the same
remediation message is produced for the same class of failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from botocore.exceptions import ClientError

from lambda_deploy.lib.errors import WaitError
from lambda_deploy.lib.logging_config import get_logger

logger = get_logger(__name__)

RATE_LIMIT_ERROR_NAMES = frozenset({"ThrottlingException", "TooManyRequestsException"})
ACCESS_DENIED_ERROR_NAME = "AccessDeniedException"
NOT_FOUND_ERROR_NAME = "ResourceNotFoundException"
DEFAULT_CONTEXT = "Action failed with error"


class ErrorCategory(str, Enum):
    """Remediation classes for classified failures."""

    RATE_LIMITED = "rate_limited"
    SERVER_FAULT = "server_fault"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    GENERIC = "generic"


RETRIABLE_CATEGORIES = frozenset(
    {ErrorCategory.RATE_LIMITED, ErrorCategory.SERVER_FAULT, ErrorCategory.TIMEOUT}
)


@dataclass(frozen=True)
class ClassifiedError:
    """A raw failure mapped to a remediation category.

    Attributes:
        category: Remediation category
        message: User-facing message
        retriable: Whether re-running the deployment later may succeed
    """

    category: ErrorCategory
    message: str
    retriable: bool


def error_name(exc: BaseException) -> str:
    """Return the symbolic AWS error code, or the exception class name."""
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code")
        if code:
            return str(code)
    return type(exc).__name__


def status_code(exc: BaseException) -> int | None:
    """Return the transport HTTP status code carried by a failure, if any."""
    response: Any = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return int(status) if status is not None else None


def error_message(exc: BaseException) -> str:
    """Return the AWS-supplied error message, falling back to str(exc)."""
    if isinstance(exc, ClientError):
        message = exc.response.get("Error", {}).get("Message")
        if message:
            return str(message)
    return str(exc)


def is_not_found(exc: BaseException) -> bool:
    """Return True when a failure means the function does not exist."""
    return error_name(exc) == NOT_FOUND_ERROR_NAME


def classify_error(
    exc: BaseException, *, context: str = DEFAULT_CONTEXT
) -> ClassifiedError:
    """Map a caught failure to a remediation category and message.

    Args:
        exc: The caught failure
        context: Prefix used for failures that match no specific class

    Returns:
        ClassifiedError for the failure
    """
    name = error_name(exc)
    status = status_code(exc)
    message = error_message(exc)

    if name in RATE_LIMIT_ERROR_NAMES or status == 429:
        category = ErrorCategory.RATE_LIMITED
        text = f"Rate limit exceeded and maximum retries reached: {message}"
    elif status is not None and status >= 500:
        category = ErrorCategory.SERVER_FAULT
        text = f"Server error ({status}): {message}. All retry attempts failed."
    elif name == ACCESS_DENIED_ERROR_NAME:
        category = ErrorCategory.PERMISSION_DENIED
        text = (
            f"Action failed with error: Permissions error: {message}. "
            "Check IAM roles."
        )
    elif isinstance(exc, WaitError):
        category = exc.category
        text = exc.message
    else:
        category = ErrorCategory.GENERIC
        text = f"{context}: {message}"

    return ClassifiedError(
        category=category,
        message=text,
        retriable=category in RETRIABLE_CATEGORIES,
    )


def report_failure(exc: BaseException, *, context: str) -> ClassifiedError:
    """Log a step-scoped failure report and return its classification.

    The caller re-raises; the outermost handler classifies again for the
    terminal message.
    """
    classified = classify_error(exc, context=context)
    logger.error(classified.message)
    if exc.__traceback__ is not None:
        logger.debug("Failure traceback", exc_info=exc)
    return classified


def not_found_error(function_name: str) -> WaitError:
    """Build the wait-context error for a missing function."""
    return WaitError(ErrorCategory.NOT_FOUND, f"Function {function_name} not found")


def permission_denied_error(function_name: str) -> WaitError:
    """Build the wait-context error for a 403 while checking status."""
    return WaitError(
        ErrorCategory.PERMISSION_DENIED,
        f"Permission denied while checking function {function_name} status",
    )


def timeout_error(function_name: str, goal: str, minutes: int) -> WaitError:
    """Build the wait-context error for an exhausted wait budget."""
    return WaitError(
        ErrorCategory.TIMEOUT,
        f"Timed out waiting for function {function_name} to {goal} "
        f"after {minutes} minutes",
    )
