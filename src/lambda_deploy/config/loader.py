"""Deployment input loading.

Inputs come from a YAML file (with ``${VAR}`` substitution) overlaid with
command line overrides, then validated into a DeploymentRequest.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from lambda_deploy.config.env_loader import substitute_env_vars
from lambda_deploy.config.validator import flatten_pydantic_errors
from lambda_deploy.lib.errors import ConfigError
from lambda_deploy.lib.logging_config import get_logger
from lambda_deploy.models.deployment import DeploymentRequest

logger = get_logger(__name__)

REGION_ENV_VARS = ("AWS_REGION", "AWS_DEFAULT_REGION")


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    """Accept dashed input names (``memory-size``) as well as field names."""
    return {str(key).replace("-", "_"): value for key, value in data.items()}


class ConfigLoader:
    """Load and validate deployment inputs."""

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        """Create a loader reading environment variables from ``env``."""
        self._env = os.environ if env is None else env

    def load_file(self, path: str | Path) -> dict[str, Any]:
        """Read a YAML config file into a dict of inputs.

        Raises:
            ConfigError: If the file is missing, unreadable or not a mapping
        """
        config_path = Path(path)
        try:
            text = config_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ConfigError(
                field="config", message=f"Config file not found: {config_path}"
            ) from exc
        except OSError as exc:
            raise ConfigError(
                field="config", message=f"Failed to read {config_path}: {exc}"
            ) from exc

        try:
            data = yaml.safe_load(substitute_env_vars(text, self._env))
        except yaml.YAMLError as exc:
            raise ConfigError(
                field="config", message=f"Invalid YAML in {config_path}: {exc}"
            ) from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                field="config",
                message=f"{config_path} must contain a mapping of inputs",
            )
        return _normalize_keys(data)

    def build_request(
        self,
        path: str | Path | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> DeploymentRequest:
        """Merge file inputs with overrides and validate them.

        Overrides set to None are ignored so that unset CLI options never
        clear values from the file.

        Raises:
            ConfigError: If the merged inputs are invalid
        """
        data: dict[str, Any] = self.load_file(path) if path else {}
        for key, value in _normalize_keys(overrides or {}).items():
            if value is not None:
                data[key] = value

        if not data.get("region"):
            region = next(
                (self._env[name] for name in REGION_ENV_VARS if self._env.get(name)),
                None,
            )
            if region:
                data["region"] = region

        try:
            request = DeploymentRequest.model_validate(data)
        except PydanticValidationError as exc:
            messages = flatten_pydantic_errors(exc)
            raise ConfigError(
                field="inputs",
                message="Input validation error: " + "; ".join(messages),
            ) from exc

        logger.debug(f"Loaded deployment inputs for function {request.function_name}")
        return request


def load_deployment_request(
    path: str | Path | None = None, overrides: Mapping[str, Any] | None = None
) -> DeploymentRequest:
    """One-call helper for CLI commands."""
    return ConfigLoader().build_request(path, overrides)
