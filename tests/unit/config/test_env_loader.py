"""Unit tests for environment variable substitution."""

import pytest

from lambda_deploy.config.env_loader import get_env_var, substitute_env_vars
from lambda_deploy.lib.errors import ConfigError


@pytest.mark.unit
class TestSubstituteEnvVars:
    """Tests for substitute_env_vars."""

    def test_plain_reference(self) -> None:
        """${VAR} is replaced by its value."""
        assert substitute_env_vars("name: ${NAME}", {"NAME": "fn"}) == "name: fn"

    def test_default_used_when_unset(self) -> None:
        """${VAR:-default} falls back to the default."""
        assert substitute_env_vars("${REGION:-us-east-1}", {}) == "us-east-1"

    def test_value_wins_over_default(self) -> None:
        """A set variable ignores the default."""
        assert substitute_env_vars("${REGION:-us-east-1}", {"REGION": "eu-west-1"}) == (
            "eu-west-1"
        )

    def test_empty_default(self) -> None:
        """An empty default substitutes an empty string."""
        assert substitute_env_vars("key: '${KEY:-}'", {}) == "key: ''"

    def test_unset_without_default(self) -> None:
        """Unset variables without defaults raise ConfigError."""
        with pytest.raises(ConfigError) as exc_info:
            substitute_env_vars("${NOPE}", {})

        assert exc_info.value.field == "NOPE"

    def test_text_without_references(self) -> None:
        """Text without references is unchanged."""
        assert substitute_env_vars("plain: $HOME", {}) == "plain: $HOME"


@pytest.mark.unit
class TestGetEnvVar:
    """Tests for get_env_var."""

    def test_empty_is_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Empty values fall back to the default."""
        monkeypatch.setenv("LD_TEST_VAR", "")

        assert get_env_var("LD_TEST_VAR", "fallback") == "fallback"

    def test_returns_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Set values are returned."""
        monkeypatch.setenv("LD_TEST_VAR", "value")

        assert get_env_var("LD_TEST_VAR") == "value"
