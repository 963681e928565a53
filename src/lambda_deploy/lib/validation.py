"""Validation utilities for lambda-deploy.

This module provides shared validation functions and constants used across
the codebase: ARN format checks, S3 bucket naming rules, and artifact path
resolution.
"""

from __future__ import annotations

import re
from pathlib import Path

# ARN patterns (partition aware: aws, aws-cn, aws-us-gov, ...)
ROLE_ARN_PATTERN = re.compile(
    r"^arn:aws(-[a-z0-9-]+)?:iam::[0-9]{12}:role/[a-zA-Z0-9+=,.@_/-]+$"
)
CODE_SIGNING_CONFIG_ARN_PATTERN = re.compile(
    r"^arn:aws(-[a-z0-9-]+)?:lambda:[a-z0-9-]+:[0-9]{12}:"
    r"code-signing-config:[a-zA-Z0-9-]+$"
)
KMS_KEY_ARN_PATTERN = re.compile(
    r"^arn:aws(-[a-z0-9-]+)?:kms:[a-z0-9-]+:[0-9]{12}:key/[a-zA-Z0-9-]+$"
)

# S3 bucket naming constants
BUCKET_NAME_MIN_LENGTH = 3
BUCKET_NAME_MAX_LENGTH = 63
BUCKET_NAME_CHARS_RE = re.compile(r"^[a-z0-9.-]+$")
BUCKET_NAME_EDGES_RE = re.compile(r"^[a-z0-9].*[a-z0-9]$")
BUCKET_NAME_IP_RE = re.compile(r"^(\d{1,3}\.){3}\d{1,3}$")
RESERVED_BUCKET_PREFIXES = ("xn--", "sthree-", "amzn-s3-demo-bucket")


def validate_role_arn(arn: str) -> str:
    """Validate an IAM role ARN.

    Raises:
        ValueError: If the ARN does not look like an IAM role ARN
    """
    if not ROLE_ARN_PATTERN.match(arn):
        raise ValueError(f"Invalid IAM role ARN format: {arn}")
    return arn


def validate_code_signing_config_arn(arn: str) -> str:
    """Validate a Lambda code signing config ARN.

    Raises:
        ValueError: If the ARN format is invalid
    """
    if not CODE_SIGNING_CONFIG_ARN_PATTERN.match(arn):
        raise ValueError(f"Invalid code signing config ARN format: {arn}")
    return arn


def validate_kms_key_arn(arn: str) -> str:
    """Validate a KMS key ARN.

    Raises:
        ValueError: If the ARN format is invalid
    """
    if not KMS_KEY_ARN_PATTERN.match(arn):
        raise ValueError(f"Invalid KMS key ARN format: {arn}")
    return arn


def validate_bucket_name(name: str | None) -> bool:
    """Check a bucket name against the S3 general purpose naming rules.

    Bucket names must:
    - Be 3-63 characters long
    - Contain only lowercase letters, numbers, dots, and hyphens
    - Start and end with a letter or number
    - Not be formatted as an IP address
    - Not contain two adjacent periods
    - Not start with a reserved prefix

    Args:
        name: Candidate bucket name

    Returns:
        True when the name is usable for bucket creation
    """
    if not name or not isinstance(name, str):
        return False
    if len(name) < BUCKET_NAME_MIN_LENGTH or len(name) > BUCKET_NAME_MAX_LENGTH:
        return False
    if not BUCKET_NAME_CHARS_RE.match(name):
        return False
    if not BUCKET_NAME_EDGES_RE.match(name):
        return False
    if BUCKET_NAME_IP_RE.match(name):
        return False
    if ".." in name:
        return False
    return not name.startswith(RESERVED_BUCKET_PREFIXES)


def validate_and_resolve_path(user_path: str | Path, base_path: str | Path) -> Path:
    """Resolve a user-supplied path and ensure it stays inside base_path.

    Args:
        user_path: Relative or absolute path supplied by the user
        base_path: Directory the path must resolve within

    Returns:
        The resolved absolute path

    Raises:
        ValueError: If the path resolves outside base_path
    """
    base = Path(base_path).resolve()
    candidate = Path(user_path)
    resolved = (candidate if candidate.is_absolute() else base / candidate).resolve()

    if resolved != base and base not in resolved.parents:
        raise ValueError(
            "Security error: Path traversal attempt detected. "
            f"The path '{user_path}' resolves to '{resolved}' which is outside "
            f"the allowed directory '{base}'."
        )
    return resolved
