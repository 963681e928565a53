"""Configuration loading, validation, and defaults for lambda-deploy.

Main components:
- ConfigLoader: Load and validate deployment inputs from YAML and overrides
- load_deployment_request: One-call helper for CLI commands
- Environment variable substitution (${VAR} and ${VAR:-default} patterns)
"""

from lambda_deploy.config.env_loader import get_env_var, substitute_env_vars
from lambda_deploy.config.loader import ConfigLoader, load_deployment_request

__all__ = [
    "ConfigLoader",
    "load_deployment_request",
    "substitute_env_vars",
    "get_env_var",
]
