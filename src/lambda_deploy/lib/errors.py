"""Custom exception hierarchy for lambda-deploy configuration and operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lambda_deploy.deploy.errors import ErrorCategory


class LambdaDeployError(Exception):
    """Base exception for all lambda-deploy errors.

    All lambda-deploy exceptions inherit from this class, enabling
    centralized exception handling at the CLI boundary.
    """

    pass


class ConfigError(LambdaDeployError):
    """Exception raised for invalid user input or unmet preconditions.

    Raised before any remote call is made: bad deployment inputs, a missing
    execution role on create, a package type migration, or a dry run
    against a function that does not exist.

    Attributes:
        field: The input field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Input field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class DeploymentError(LambdaDeployError):
    """Exception raised when a deployment operation fails.

    Attributes:
        operation: Short name of the failed operation (package, upload, wait, ...)
        message: Human-readable error message
    """

    def __init__(self, operation: str, message: str) -> None:
        """Create a deployment error for an operation."""
        self.operation = operation
        self.message = message
        super().__init__(message)


class WaitError(DeploymentError):
    """Exception raised when waiting on a function state transition fails.

    Carries the error category assigned at the point of failure so that the
    outer handler reports the same class without re-deriving it.

    Attributes:
        category: ErrorCategory of the failure
    """

    def __init__(self, category: ErrorCategory, message: str) -> None:
        """Create a wait error with its category."""
        self.category = category
        super().__init__(operation="wait", message=message)


class CloudSDKNotInstalledError(LambdaDeployError):
    """Exception raised when the AWS SDK is not importable."""

    def __init__(self, provider: str, sdk_name: str) -> None:
        """Create an error pointing at the missing SDK package."""
        self.provider = provider
        self.sdk_name = sdk_name
        super().__init__(
            f"The {provider} SDK is not installed. Install it with: "
            f"pip install {sdk_name}"
        )
