"""S3 upload of deployment packages.

The uploader makes sure the target bucket exists, creating it with baseline
security settings when it does not, then uploads the zip with the caller's
account as the expected bucket owner.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from lambda_deploy.config.defaults import S3_KEY_PREFIX, US_EAST_1
from lambda_deploy.deploy.errors import error_message, error_name, status_code
from lambda_deploy.deploy.identity import get_account_id
from lambda_deploy.lib.errors import DeploymentError
from lambda_deploy.lib.logging_config import get_logger
from lambda_deploy.lib.validation import validate_bucket_name

logger = get_logger(__name__)

BUCKET_TAKEN_ERRORS = frozenset({"BucketAlreadyExists", "BucketAlreadyOwnedByYou"})

PUBLIC_ACCESS_BLOCK = {
    "BlockPublicAcls": True,
    "IgnorePublicAcls": True,
    "BlockPublicPolicy": True,
    "RestrictPublicBuckets": True,
}
DEFAULT_ENCRYPTION = {
    "Rules": [
        {
            "ApplyServerSideEncryptionByDefault": {"SSEAlgorithm": "AES256"},
            "BucketKeyEnabled": True,
        }
    ]
}


@dataclass
class UploadResult:
    """Location of an uploaded deployment package."""

    bucket: str
    key: str
    version_id: str | None = None


def generate_s3_key(
    function_name: str,
    *,
    now: datetime | None = None,
    commit_sha: str | None = None,
) -> str:
    """Generate an object key for a deployment package.

    Format: ``lambda-deployments/<function>/<timestamp>[-<sha7>].zip``. The
    commit sha defaults to ``GITHUB_SHA`` when set.
    """
    moment = now or datetime.now(timezone.utc)
    timestamp = moment.strftime("%Y-%m-%d-%H-%M-%S-") + f"{moment.microsecond // 1000:03d}"
    sha = commit_sha if commit_sha is not None else os.environ.get("GITHUB_SHA", "")
    suffix = f"-{sha[:7]}" if sha else ""
    return f"{S3_KEY_PREFIX}/{function_name}/{timestamp}{suffix}.zip"


class S3Uploader:
    """Upload deployment packages to S3, provisioning the bucket if needed."""

    def __init__(
        self,
        s3_client: Any,
        sts_client: Any,
        region: str | None,
        *,
        account_id_resolver: Callable[[Any], str | None] = get_account_id,
    ) -> None:
        """Create an uploader bound to S3 and STS clients."""
        self._s3 = s3_client
        self._sts = sts_client
        self._region = region
        self._resolve_account_id = account_id_resolver

    def upload(self, zip_path: str | Path, bucket: str, key: str) -> UploadResult:
        """Upload a zip to s3://bucket/key.

        Raises:
            DeploymentError: If the bucket cannot be checked or created, the
                package cannot be read, or the upload fails
        """
        logger.info(f"Uploading Lambda deployment package to S3: s3://{bucket}/{key}")

        if not self.bucket_exists(bucket):
            logger.info(f"Bucket {bucket} does not exist. Attempting to create it...")
            self.create_bucket(bucket)
            logger.info(f"Bucket {bucket} created successfully.")

        path = Path(zip_path)
        try:
            content = path.read_bytes()
        except PermissionError as exc:
            raise DeploymentError(operation="upload", message="Permission denied") from exc
        except OSError as exc:
            raise DeploymentError(
                operation="upload",
                message=f"Cannot access deployment package at {path}: {exc}",
            ) from exc
        logger.info(f"Read deployment package, size: {len(content)} bytes")

        expected_owner = self._resolve_account_id(self._sts)
        if not expected_owner:
            raise DeploymentError(operation="upload", message="No AWS account ID found.")

        logger.info(f"Sending PutObject request to S3 (bucket: {bucket}, key: {key})")
        try:
            response = self._s3.put_object(
                Bucket=bucket,
                Key=key,
                Body=content,
                ExpectedBucketOwner=expected_owner,
            )
        except ClientError as exc:
            logger.error(
                f"Failed to upload file to S3: {error_name(exc)} - {error_message(exc)}"
            )
            if status_code(exc) == 403:
                raise DeploymentError(
                    operation="upload",
                    message=(
                        "Access denied when uploading to S3. Ensure your IAM "
                        "policy includes s3:PutObject permission."
                    ),
                ) from exc
            raise

        logger.info(f"S3 upload successful, file size: {len(content)} bytes")
        return UploadResult(
            bucket=bucket,
            key=key,
            version_id=(response or {}).get("VersionId"),
        )

    def bucket_exists(self, bucket: str) -> bool:
        """Return True when the bucket exists and is reachable.

        Raises:
            DeploymentError: On a region mismatch or denied access
        """
        try:
            self._s3.head_bucket(Bucket=bucket)
        except ClientError as exc:
            status = status_code(exc)
            if status == 404 or error_name(exc) in ("NotFound", "NoSuchBucket"):
                logger.info(f"S3 bucket {bucket} does not exist")
                return False

            logger.error(
                f"Error checking if bucket exists: {status or error_name(exc)} "
                f"- {error_message(exc)}"
            )
            if status == 301:
                raise DeploymentError(
                    operation="upload",
                    message=(
                        f'Bucket "{bucket}" exists in a different region '
                        f"than {self._region}"
                    ),
                ) from exc
            if status == 403 or error_name(exc) == "AccessDenied":
                raise DeploymentError(
                    operation="upload", message="Access denied to S3 bucket"
                ) from exc
            raise

        logger.info(f"S3 bucket {bucket} exists")
        return True

    def create_bucket(self, bucket: str) -> None:
        """Create a bucket and apply baseline security settings.

        Raises:
            DeploymentError: If the name is invalid or creation is denied
        """
        logger.info(f"Creating S3 bucket: {bucket}")
        if not validate_bucket_name(bucket):
            raise DeploymentError(
                operation="upload",
                message=(
                    f'Invalid bucket name: "{bucket}". Bucket names must be 3-63 '
                    "characters, lowercase, start/end with a letter/number, and "
                    "contain only letters, numbers, dots, and hyphens."
                ),
            )

        params: dict[str, Any] = {"Bucket": bucket}
        if self._region and self._region != US_EAST_1:
            params["CreateBucketConfiguration"] = {"LocationConstraint": self._region}

        try:
            response = self._s3.create_bucket(**params)
        except ClientError as exc:
            name = error_name(exc)
            logger.error(f"Error creating bucket: {name} - {error_message(exc)}")
            if name in BUCKET_TAKEN_ERRORS:
                logger.error(
                    f"Bucket name {bucket} is already taken but may be owned "
                    "by another account."
                )
            elif status_code(exc) == 403:
                raise DeploymentError(
                    operation="upload",
                    message=(
                        f"Access denied when creating bucket {bucket}. Ensure your "
                        "IAM policy includes s3:CreateBucket permission."
                    ),
                ) from exc
            elif name == "InvalidBucketName":
                logger.error(f'The bucket name "{bucket}" is invalid.')
            raise

        logger.info(f"Successfully created S3 bucket: {bucket}")
        logger.info(f"Bucket location: {response.get('Location')}")
        self._harden_bucket(bucket)

    def _harden_bucket(self, bucket: str) -> None:
        """Best-effort public access block, default encryption and versioning."""
        try:
            logger.info(f"Configuring public access block for bucket: {bucket}")
            self._s3.put_public_access_block(
                Bucket=bucket,
                PublicAccessBlockConfiguration=PUBLIC_ACCESS_BLOCK,
            )
            logger.info(f"Enabling default encryption for bucket: {bucket}")
            self._s3.put_bucket_encryption(
                Bucket=bucket,
                ServerSideEncryptionConfiguration=DEFAULT_ENCRYPTION,
            )
            logger.info(f"Enabling versioning for bucket: {bucket}")
            self._s3.put_bucket_versioning(
                Bucket=bucket,
                VersioningConfiguration={"Status": "Enabled"},
            )
        except (ClientError, BotoCoreError) as exc:
            logger.warning(
                "Applied partial security settings to bucket. Some security "
                f"features couldn't be enabled: {exc}"
            )
            logger.debug("Bucket hardening traceback", exc_info=exc)
            return

        logger.info(f"Security configurations successfully applied to bucket: {bucket}")
