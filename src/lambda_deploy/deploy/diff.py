"""Configuration diff engine.

Decides whether a function's remote configuration needs an update call by
comparing the remote snapshot against the sparse desired snapshot built from
the caller's inputs. Only fields the caller actually supplied take part in
the comparison; empty values are normalized away first, with the exception
of VPC config blocks, where empty subnet and security group lists mean
"detach from the VPC".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from lambda_deploy.lib.logging_config import get_logger

logger = get_logger(__name__)

VPC_CONFIG_KEYS = ("SubnetIds", "SecurityGroupIds")


@dataclass
class ConfigDiff:
    """Outcome of a configuration comparison.

    Attributes:
        changed: True when an update call is required
        notices: Human-readable per-field differences, for diagnostics only
    """

    changed: bool
    notices: list[str] = field(default_factory=list)


def _is_container(value: Any) -> bool:
    return isinstance(value, (dict, list))


def _scalar_equal(a: Any, b: Any) -> bool:
    # Booleans only equal booleans: 0 must not match False
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    return a == b


def _is_vpc_config(value: Any) -> bool:
    return isinstance(value, dict) and any(key in value for key in VPC_CONFIG_KEYS)


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality for JSON-like values.

    Lists compare element-wise and in order; dicts compare by key set and
    values regardless of key order. A list never equals a dict, and a
    container never equals a scalar.
    """
    if not _is_container(a) or not _is_container(b):
        if _is_container(a) or _is_container(b):
            return False
        return _scalar_equal(a, b)

    if isinstance(a, list) and isinstance(b, list):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, list) != isinstance(b, list):
        return False

    if len(a) != len(b):
        return False
    return all(key in b and deep_equal(value, b[key]) for key, value in a.items())


def is_empty_value(value: Any) -> bool:
    """Return True when a value carries no meaningful input.

    ``None`` and ``""`` are empty, as are lists and dicts whose members are all
    empty. ``0`` and ``False`` are real values. A dict carrying a VPC subnet or
    security group key is never empty.
    """
    if value is None or value == "":
        return True

    if isinstance(value, list):
        return all(is_empty_value(item) for item in value)

    if isinstance(value, dict):
        if _is_vpc_config(value):
            return False
        return all(is_empty_value(item) for item in value.values())

    return False


def clean_null_keys(obj: Any) -> Any:
    """Recursively strip empty leaves and empty containers.

    Returns:
        The cleaned value, or None when nothing meaningful remains
    """
    if obj is None or obj == "":
        return None

    if isinstance(obj, list):
        filtered = [item for item in obj if not is_empty_value(item)]
        return filtered if filtered else None

    if isinstance(obj, dict):
        vpc_config = _is_vpc_config(obj)
        result: dict[str, Any] = {}

        for key, value in obj.items():
            if vpc_config and key in VPC_CONFIG_KEYS:
                result[key] = value if isinstance(value, list) else []
                continue

            if value is None or value == "":
                continue

            cleaned = clean_null_keys(value)
            if cleaned is not None:
                result[key] = cleaned

        return result if result else None

    return obj


def diff_configuration(
    current: dict[str, Any] | None, desired: dict[str, Any]
) -> ConfigDiff:
    """Compare a remote configuration snapshot against the desired one.

    Args:
        current: Remote configuration, or None when unknown
        desired: Sparse desired configuration built from the inputs

    Returns:
        ConfigDiff with the decision and per-field notices
    """
    cleaned = clean_null_keys(desired) or {}

    if current is None:
        return ConfigDiff(changed=True, notices=["No current configuration known"])
    if not current:
        # Nothing is known remotely: any supplied field forces an update
        return ConfigDiff(
            changed=bool(cleaned),
            notices=[f"Configuration difference detected in {key}" for key in cleaned],
        )

    diff = ConfigDiff(changed=False)
    for key, value in cleaned.items():
        if key not in current:
            diff.notices.append(f"Configuration difference detected in {key}")
            diff.changed = True
            continue

        if _is_container(value):
            current_value = current[key] if current[key] is not None else {}
            if not deep_equal(current_value, value):
                diff.notices.append(f"Configuration difference detected in {key}")
                diff.changed = True
        elif not _scalar_equal(current[key], value):
            diff.notices.append(
                f"Configuration difference detected in {key}: "
                f"{current[key]} -> {value}"
            )
            diff.changed = True

    return diff


def has_configuration_changed(
    current: dict[str, Any] | None, desired: dict[str, Any]
) -> bool:
    """Return True when the desired configuration differs from the current one.

    Each field-level difference is logged at INFO.
    """
    diff = diff_configuration(current, desired)
    for notice in diff.notices:
        logger.info(notice)
    return diff.changed
