"""Lambda deployment engine.

Main components:
- FunctionDeployer: Create-or-update state machine for one function
- FunctionReadinessPoller: Waits for Active / update-complete states
- diff_configuration: Live vs desired configuration comparison
- classify_error: Maps AWS failures to remediation messages
"""

from lambda_deploy.deploy.deployer import DeploymentStage, FunctionDeployer
from lambda_deploy.deploy.diff import clean_null_keys, deep_equal, diff_configuration
from lambda_deploy.deploy.errors import ClassifiedError, ErrorCategory, classify_error
from lambda_deploy.deploy.poller import FunctionReadinessPoller

__all__ = [
    "ClassifiedError",
    "DeploymentStage",
    "ErrorCategory",
    "FunctionDeployer",
    "FunctionReadinessPoller",
    "classify_error",
    "clean_null_keys",
    "deep_equal",
    "diff_configuration",
]
