"""Default values for lambda-deploy."""

# Zip package defaults
DEFAULT_HANDLER = "index.handler"
DEFAULT_RUNTIME = "nodejs20.x"
DEFAULT_CONFIG_FILE = "lambda.yaml"

# Readiness polling
DEFAULT_WAIT_MINUTES = 5
MAX_WAIT_MINUTES = 30
ACTIVE_POLL_INTERVAL_SECONDS = 5
UPDATE_WAITER_DELAY_SECONDS = 2

# S3 deployment packages
S3_KEY_PREFIX = "lambda-deployments"
US_EAST_1 = "us-east-1"

# Dry runs never create anything, so a placeholder account fills synthesized ARNs
DRY_RUN_ACCOUNT_ID = "000000000000"
DRY_RUN_VERSION = "$LATEST"

USER_AGENT_PREFIX = "LambdaDeploy"
