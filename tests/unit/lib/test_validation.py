"""Unit tests for shared validation helpers."""

from pathlib import Path

import pytest

from lambda_deploy.lib.validation import (
    validate_and_resolve_path,
    validate_bucket_name,
    validate_code_signing_config_arn,
    validate_kms_key_arn,
    validate_role_arn,
)


@pytest.mark.unit
class TestArnValidation:
    """Tests for ARN format validators."""

    @pytest.mark.parametrize(
        "arn",
        [
            "arn:aws:iam::123456789012:role/lambda-role",
            "arn:aws-cn:iam::123456789012:role/service-role/my_role",
            "arn:aws-us-gov:iam::123456789012:role/a+b=c,d.e@f",
        ],
    )
    def test_valid_role_arns(self, arn: str) -> None:
        """Role ARNs in any partition are accepted."""
        assert validate_role_arn(arn) == arn

    @pytest.mark.parametrize(
        "arn",
        [
            "lambda-role",
            "arn:aws:iam::12345:role/x",
            "arn:aws:iam::123456789012:user/x",
        ],
    )
    def test_invalid_role_arns(self, arn: str) -> None:
        """Malformed role ARNs are rejected."""
        with pytest.raises(ValueError, match="Invalid IAM role ARN format"):
            validate_role_arn(arn)

    def test_code_signing_config_arn(self) -> None:
        """Code signing config ARNs are validated."""
        arn = "arn:aws:lambda:us-east-1:123456789012:code-signing-config:csc-0abc"
        assert validate_code_signing_config_arn(arn) == arn
        with pytest.raises(ValueError):
            validate_code_signing_config_arn("csc-0abc")

    def test_kms_key_arn(self) -> None:
        """KMS key ARNs are validated."""
        arn = "arn:aws:kms:eu-west-1:123456789012:key/1234abcd-12ab"
        assert validate_kms_key_arn(arn) == arn
        with pytest.raises(ValueError):
            validate_kms_key_arn("arn:aws:kms:eu-west-1:123456789012:alias/x")


@pytest.mark.unit
class TestBucketNameValidation:
    """Tests for validate_bucket_name."""

    @pytest.mark.parametrize(
        "name", ["abc", "my-bucket", "my.bucket.name", "a" * 63, "bucket-123"]
    )
    def test_valid_names(self, name: str) -> None:
        """Names following the S3 rules are accepted."""
        assert validate_bucket_name(name) is True

    @pytest.mark.parametrize(
        "name",
        [
            None,
            "",
            "ab",
            "a" * 64,
            "My-Bucket",
            "bucket_name",
            "-bucket",
            "bucket-",
            "192.168.1.1",
            "my..bucket",
            "xn--bucket",
            "sthree-bucket",
            "amzn-s3-demo-bucket-1",
        ],
    )
    def test_invalid_names(self, name: str | None) -> None:
        """Names breaking any S3 rule are rejected."""
        assert validate_bucket_name(name) is False


@pytest.mark.unit
class TestValidateAndResolvePath:
    """Tests for validate_and_resolve_path."""

    def test_relative_path_inside_base(self, tmp_path: Path) -> None:
        """Relative paths resolve under the base."""
        assert validate_and_resolve_path("dist", tmp_path) == (tmp_path / "dist").resolve()

    def test_base_itself_allowed(self, tmp_path: Path) -> None:
        """The base directory itself is allowed."""
        assert validate_and_resolve_path(".", tmp_path) == tmp_path.resolve()

    def test_traversal_rejected(self, tmp_path: Path) -> None:
        """Paths escaping the base raise ValueError."""
        with pytest.raises(ValueError, match="Path traversal attempt detected"):
            validate_and_resolve_path("../elsewhere", tmp_path)

    def test_absolute_outside_rejected(self, tmp_path: Path) -> None:
        """Absolute paths outside the base are rejected."""
        with pytest.raises(ValueError, match="Security error"):
            validate_and_resolve_path("/", tmp_path / "base")
