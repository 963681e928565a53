"""Unit tests for S3 upload of deployment packages."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from lambda_deploy.deploy.identity import get_account_id
from lambda_deploy.deploy.storage import S3Uploader, UploadResult, generate_s3_key
from lambda_deploy.lib.errors import DeploymentError


def _client_error(code: str, status: int, operation: str = "HeadBucket") -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} message"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


@pytest.fixture
def zip_file(tmp_path: Path) -> Path:
    """A small fake deployment package."""
    path = tmp_path / "function.zip"
    path.write_bytes(b"PK\x03\x04data")
    return path


@pytest.fixture
def s3_client() -> MagicMock:
    """Mock boto3 S3 client."""
    client = MagicMock()
    client.put_object.return_value = {"VersionId": "v1"}
    client.create_bucket.return_value = {"Location": "/my-bucket"}
    return client


def _uploader(
    s3_client: MagicMock, region: str = "eu-west-1", account_id: str | None = "123456789012"
) -> S3Uploader:
    return S3Uploader(
        s3_client, MagicMock(), region, account_id_resolver=lambda _sts: account_id
    )


@pytest.mark.unit
class TestGenerateS3Key:
    """Tests for generate_s3_key."""

    def test_key_with_commit_sha(self) -> None:
        """The key embeds the function, timestamp and short sha."""
        now = datetime(2024, 3, 5, 14, 7, 9, 123456, tzinfo=timezone.utc)

        key = generate_s3_key("my-fn", now=now, commit_sha="abcdef1234567")

        assert key == "lambda-deployments/my-fn/2024-03-05-14-07-09-123-abcdef1.zip"

    def test_key_without_sha(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without GITHUB_SHA there is no suffix."""
        monkeypatch.delenv("GITHUB_SHA", raising=False)
        now = datetime(2024, 3, 5, 14, 7, 9, 0, tzinfo=timezone.utc)

        assert generate_s3_key("my-fn", now=now) == (
            "lambda-deployments/my-fn/2024-03-05-14-07-09-000.zip"
        )

    def test_key_uses_github_sha(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """GITHUB_SHA is picked up from the environment."""
        monkeypatch.setenv("GITHUB_SHA", "1234567890")

        assert generate_s3_key("my-fn").endswith("-1234567.zip")


@pytest.mark.unit
class TestS3Upload:
    """Tests for S3Uploader.upload."""

    def test_upload_to_existing_bucket(
        self, s3_client: MagicMock, zip_file: Path
    ) -> None:
        """An existing bucket is used as-is with the expected owner."""
        result = _uploader(s3_client).upload(zip_file, "my-bucket", "k.zip")

        assert result == UploadResult(bucket="my-bucket", key="k.zip", version_id="v1")
        s3_client.create_bucket.assert_not_called()
        s3_client.put_object.assert_called_once_with(
            Bucket="my-bucket",
            Key="k.zip",
            Body=b"PK\x03\x04data",
            ExpectedBucketOwner="123456789012",
        )

    def test_creates_missing_bucket(self, s3_client: MagicMock, zip_file: Path) -> None:
        """A missing bucket is created in the region and hardened."""
        s3_client.head_bucket.side_effect = _client_error("404", 404)

        _uploader(s3_client, region="eu-west-1").upload(zip_file, "my-bucket", "k.zip")

        s3_client.create_bucket.assert_called_once_with(
            Bucket="my-bucket",
            CreateBucketConfiguration={"LocationConstraint": "eu-west-1"},
        )
        s3_client.put_public_access_block.assert_called_once()
        s3_client.put_bucket_encryption.assert_called_once()
        s3_client.put_bucket_versioning.assert_called_once_with(
            Bucket="my-bucket", VersioningConfiguration={"Status": "Enabled"}
        )

    def test_us_east_1_has_no_location_constraint(
        self, s3_client: MagicMock, zip_file: Path
    ) -> None:
        """Buckets in us-east-1 are created without a location constraint."""
        s3_client.head_bucket.side_effect = _client_error("NotFound", 404)

        _uploader(s3_client, region="us-east-1").upload(zip_file, "my-bucket", "k.zip")

        s3_client.create_bucket.assert_called_once_with(Bucket="my-bucket")

    def test_hardening_failure_is_a_warning(
        self, s3_client: MagicMock, zip_file: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Hardening failures do not stop the upload."""
        s3_client.head_bucket.side_effect = _client_error("404", 404)
        s3_client.put_bucket_encryption.side_effect = _client_error(
            "AccessDenied", 403, "PutBucketEncryption"
        )

        result = _uploader(s3_client).upload(zip_file, "my-bucket", "k.zip")

        assert result.key == "k.zip"
        assert "Applied partial security settings" in caplog.text

    def test_invalid_bucket_name_not_created(
        self, s3_client: MagicMock, zip_file: Path
    ) -> None:
        """Invalid names are rejected before calling CreateBucket."""
        s3_client.head_bucket.side_effect = _client_error("404", 404)

        with pytest.raises(DeploymentError, match="Invalid bucket name"):
            _uploader(s3_client).upload(zip_file, "Bad_Bucket", "k.zip")

        s3_client.create_bucket.assert_not_called()

    def test_region_mismatch(self, s3_client: MagicMock, zip_file: Path) -> None:
        """A 301 on HeadBucket means the bucket lives in another region."""
        s3_client.head_bucket.side_effect = _client_error("301", 301)

        with pytest.raises(DeploymentError, match="different region than eu-west-1"):
            _uploader(s3_client).upload(zip_file, "my-bucket", "k.zip")

    def test_head_bucket_forbidden(self, s3_client: MagicMock, zip_file: Path) -> None:
        """A 403 on HeadBucket is an access error."""
        s3_client.head_bucket.side_effect = _client_error("403", 403)

        with pytest.raises(DeploymentError, match="Access denied to S3 bucket"):
            _uploader(s3_client).upload(zip_file, "my-bucket", "k.zip")

    def test_missing_account_id_is_fatal(
        self, s3_client: MagicMock, zip_file: Path
    ) -> None:
        """The upload needs an expected bucket owner."""
        with pytest.raises(DeploymentError, match="No AWS account ID found"):
            _uploader(s3_client, account_id=None).upload(zip_file, "my-bucket", "k.zip")

        s3_client.put_object.assert_not_called()

    def test_put_object_forbidden(self, s3_client: MagicMock, zip_file: Path) -> None:
        """A 403 on PutObject names the missing permission."""
        s3_client.put_object.side_effect = _client_error("AccessDenied", 403, "PutObject")

        with pytest.raises(DeploymentError, match="s3:PutObject"):
            _uploader(s3_client).upload(zip_file, "my-bucket", "k.zip")

    def test_missing_package(self, s3_client: MagicMock, tmp_path: Path) -> None:
        """An unreadable package is reported."""
        with pytest.raises(DeploymentError, match="Cannot access deployment package"):
            _uploader(s3_client).upload(tmp_path / "nope.zip", "my-bucket", "k.zip")


@pytest.mark.unit
class TestGetAccountId:
    """Tests for get_account_id."""

    def test_returns_account(self) -> None:
        """The caller identity account is returned."""
        sts = MagicMock()
        sts.get_caller_identity.return_value = {"Account": "123456789012"}

        assert get_account_id(sts) == "123456789012"

    def test_failure_returns_none(self, caplog: pytest.LogCaptureFixture) -> None:
        """Lookup failures degrade to None with a warning."""
        sts = MagicMock()
        sts.get_caller_identity.side_effect = _client_error(
            "ExpiredToken", 403, "GetCallerIdentity"
        )

        assert get_account_id(sts) is None
        assert "Failed to retrieve AWS account ID" in caplog.text
