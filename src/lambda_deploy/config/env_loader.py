"""Environment variable substitution for deployment config files."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping

from lambda_deploy.lib.errors import ConfigError

# ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def substitute_env_vars(text: str, env: Mapping[str, str] | None = None) -> str:
    """Replace ${VAR} and ${VAR:-default} references in text.

    Args:
        text: Raw file content
        env: Environment mapping (default: os.environ)

    Returns:
        Text with references substituted

    Raises:
        ConfigError: If a referenced variable is unset and has no default
    """
    source = os.environ if env is None else env

    def replace(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        if name in source:
            return source[name]
        if default is not None:
            return default
        raise ConfigError(
            field=name,
            message=f"Environment variable '{name}' is referenced but not set",
        )

    return ENV_VAR_PATTERN.sub(replace, text)


def get_env_var(name: str, default: str | None = None) -> str | None:
    """Return an environment variable, treating empty values as unset."""
    value = os.environ.get(name)
    return value if value else default
