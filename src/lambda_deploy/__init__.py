"""lambda-deploy - Create or update an AWS Lambda function from declarative inputs.

One run creates the function when it is absent, applies configuration
changes only when the live configuration differs, then pushes the code.

Main features:
- Zip (inline or via S3) and container image deployments
- Configuration diffing that ignores unset and empty inputs
- Readiness polling with bounded waits
- Dry-run validation of code updates
"""

from lambda_deploy.config.loader import ConfigLoader
from lambda_deploy.lib.errors import ConfigError, DeploymentError, LambdaDeployError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigLoader",
    "ConfigError",
    "DeploymentError",
    "LambdaDeployError",
]
