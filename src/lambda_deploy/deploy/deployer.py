"""Lambda function deployment state machine.

One run takes a validated DeploymentRequest through:

    CHECK_EXISTS -> DRY_RUN_GATE -> RESOLVE_CODE -> CREATE (absent only)
    -> DIFF_CONFIG -> UPDATE_CONFIG (changed only) -> UPDATE_CODE -> DONE

Remote failures are reported with step context through ``report_failure``
and re-raised; the CLI classifies them a second time for the terminal
message.
"""

from __future__ import annotations

import errno
import json
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from lambda_deploy.config.defaults import (
    DRY_RUN_ACCOUNT_ID,
    DRY_RUN_VERSION,
    US_EAST_1,
)
from lambda_deploy.deploy.diff import has_configuration_changed
from lambda_deploy.deploy.errors import is_not_found, report_failure
from lambda_deploy.deploy.packager import package_code_artifacts
from lambda_deploy.deploy.poller import FunctionReadinessPoller
from lambda_deploy.deploy.requests import (
    build_code_update_input,
    build_configuration_update_input,
    build_create_input,
    build_desired_configuration,
    image_code,
    redact_code_input,
    s3_code,
    zip_file_code,
)
from lambda_deploy.deploy.storage import S3Uploader, generate_s3_key
from lambda_deploy.lib.errors import ConfigError, DeploymentError
from lambda_deploy.lib.logging_config import get_logger
from lambda_deploy.models.deployment import DeployResult, DeploymentRequest

logger = get_logger(__name__)

DRY_RUN_CREATE_MESSAGE = (
    "DRY RUN MODE can only be used for updating function code of existing functions"
)
DRY_RUN_CONFIG_MESSAGE = (
    "[DRY RUN] Configuration updates are not simulated in dry run mode"
)


class DeploymentStage(str, Enum):
    """Stages of a deployment run, in execution order."""

    CHECK_EXISTS = "check_exists"
    DRY_RUN_GATE = "dry_run_gate"
    RESOLVE_CODE = "resolve_code"
    CREATE = "create"
    DIFF_CONFIG = "diff_config"
    UPDATE_CONFIG = "update_config"
    UPDATE_CODE = "update_code"
    DONE = "done"


def normalize_remote_configuration(config: dict[str, Any]) -> dict[str, Any]:
    """Project remote-only shapes onto the shapes the inputs use.

    ``Layers`` comes back as ``[{"Arn": ..., "CodeSize": ...}]`` while the
    inputs list layer ARNs.
    """
    normalized = {
        key: value for key, value in config.items() if key != "ResponseMetadata"
    }
    layers = normalized.get("Layers")
    if isinstance(layers, list):
        normalized["Layers"] = [
            layer.get("Arn") if isinstance(layer, dict) else layer for layer in layers
        ]
    return normalized


class FunctionDeployer:
    """Create or update one Lambda function from a DeploymentRequest."""

    def __init__(
        self,
        lambda_client: Any,
        *,
        uploader: S3Uploader | None = None,
        poller: FunctionReadinessPoller | None = None,
        packager: Callable[[str], Path] = package_code_artifacts,
        region: str | None = None,
    ) -> None:
        """Initialize the deployer.

        Args:
            lambda_client: boto3 Lambda client
            uploader: S3 uploader, required for deployments through a bucket
            poller: Readiness poller (default: one bound to lambda_client)
            packager: Callable producing a zip path from an artifacts directory
            region: Region used to synthesize dry-run ARNs
        """
        self._client = lambda_client
        self._uploader = uploader
        self._poller = poller or FunctionReadinessPoller(lambda_client)
        self._packager = packager
        self._region = region
        self.stages: list[DeploymentStage] = []

    def run(self, request: DeploymentRequest) -> DeployResult:
        """Execute one deployment run.

        Returns:
            DeployResult with the function ARN and version outputs

        Raises:
            ConfigError: On unmet preconditions (dry run without a function,
                missing role on create, package type change)
            DeploymentError: On packaging, upload or wait failures
            ClientError: On Lambda API failures, after step-level reporting
            BotoCoreError: On transport or credential failures, likewise
        """
        self.stages = []
        result = DeployResult(dry_run=request.dry_run)

        for name in request.ignored_parameters():
            logger.warning(
                f"{name} parameter is ignored when package_type is "
                f'"{request.package_type.value}"'
            )

        s3_key = request.s3_key
        if request.is_zip and request.s3_bucket and not s3_key:
            s3_key = generate_s3_key(request.function_name)
            logger.info(f"No S3 key provided. Auto-generated key: {s3_key}")

        self._enter(DeploymentStage.CHECK_EXISTS)
        logger.info(f"Checking if {request.function_name} exists")
        exists = self.function_exists(request.function_name)

        self._enter(DeploymentStage.DRY_RUN_GATE)
        if request.dry_run:
            logger.info("DRY RUN MODE: No AWS resources will be created or modified")
            if not exists:
                raise ConfigError(field="dry_run", message=DRY_RUN_CREATE_MESSAGE)

        self._enter(DeploymentStage.RESOLVE_CODE)
        zip_path: Path | None = None
        if request.is_zip:
            logger.info(f"Packaging code artifacts from {request.code_artifacts_dir}")
            zip_path = self._packager(request.code_artifacts_dir or "")
        else:
            logger.info(f"Using container image: {request.image_uri}")

        try:
            return self._apply(request, exists, zip_path, s3_key, result)
        finally:
            if zip_path is not None:
                Path(zip_path).unlink(missing_ok=True)

    def _apply(
        self,
        request: DeploymentRequest,
        exists: bool,
        zip_path: Path | None,
        s3_key: str | None,
        result: DeployResult,
    ) -> DeployResult:
        if not exists:
            self._enter(DeploymentStage.CREATE)
            self._create_function(request, zip_path, s3_key, result)

        self._enter(DeploymentStage.DIFF_CONFIG)
        changed = self._configuration_changed(request)

        if changed:
            if request.dry_run:
                logger.info(DRY_RUN_CONFIG_MESSAGE)
                result.stopped_early = True
                return result
            self._enter(DeploymentStage.UPDATE_CONFIG)
            self._update_configuration(request)
            result.configuration_updated = True
        else:
            logger.info("No configuration changes detected")

        self._enter(DeploymentStage.UPDATE_CODE)
        self._update_code(request, zip_path, s3_key, result)

        self._enter(DeploymentStage.DONE)
        logger.info("Lambda function deployment completed successfully")
        return result

    def function_exists(self, function_name: str) -> bool:
        """Return True when the function exists; other failures propagate."""
        try:
            self._client.get_function_configuration(FunctionName=function_name)
        except ClientError as exc:
            if is_not_found(exc):
                return False
            raise
        return True

    def _enter(self, stage: DeploymentStage) -> None:
        logger.debug(f"Entering stage {stage.value}")
        self.stages.append(stage)

    def _create_function(
        self,
        request: DeploymentRequest,
        zip_path: Path | None,
        s3_key: str | None,
        result: DeployResult,
    ) -> None:
        logger.info(
            f"Function {request.function_name} doesn't exist, creating new function"
        )
        if not request.role:
            raise ConfigError(
                field="role",
                message="Role ARN must be provided when creating a new function",
            )

        try:
            logger.info(
                f"Creating Lambda function with {request.package_type.value} "
                "package type"
            )
            code = self._resolve_code(request, zip_path, s3_key)
            params = build_create_input(request, code)

            logger.info(f"Creating new Lambda function: {request.function_name}")
            response = self._client.create_function(**params)

            result.function_arn = response.get("FunctionArn")
            result.version = response.get("Version") or result.version
            result.created = True
            logger.info("Lambda function created successfully")

            logger.info(
                f"Waiting for function {request.function_name} to become active "
                "before proceeding"
            )
            self._poller.wait_until_active(request.function_name)
        except (ClientError, BotoCoreError, DeploymentError) as exc:
            report_failure(exc, context="Failed to create function")
            raise

    def _configuration_changed(self, request: DeploymentRequest) -> bool:
        logger.info(f"Getting current configuration for function {request.function_name}")
        current = self._client.get_function_configuration(
            FunctionName=request.function_name
        )

        current_type = current.get("PackageType")
        if current_type and current_type != request.package_type.value:
            raise ConfigError(
                field="package_type",
                message=(
                    "Cannot change package type of existing Lambda function "
                    f"from {current_type} to {request.package_type.value}"
                ),
            )

        return has_configuration_changed(
            normalize_remote_configuration(current),
            build_desired_configuration(request),
        )

    def _update_configuration(self, request: DeploymentRequest) -> None:
        try:
            params = build_configuration_update_input(request)
            logger.info(f"Updating function configuration for {request.function_name}")
            self._client.update_function_configuration(**params)
            self._poller.wait_until_updated(request.function_name)
        except (ClientError, BotoCoreError, DeploymentError) as exc:
            report_failure(exc, context="Failed to update function configuration")
            raise

    def _update_code(
        self,
        request: DeploymentRequest,
        zip_path: Path | None,
        s3_key: str | None,
        result: DeployResult,
    ) -> None:
        logger.info(f"Updating function code for {request.function_name}")
        try:
            code = self._resolve_code(request, zip_path, s3_key)
            params = build_code_update_input(request, code)

            if request.dry_run:
                logger.info(
                    "[DRY RUN] Performing dry-run function code update with parameters:"
                )
                logger.info(json.dumps(redact_code_input(params), indent=2))
                params["DryRun"] = True

            response = self._client.update_function_code(**params)
        except (ClientError, BotoCoreError, DeploymentError) as exc:
            report_failure(exc, context="Failed to update function code")
            raise

        result.code_updated = True
        if request.dry_run:
            logger.info("[DRY RUN] Function code validation passed")
            result.function_arn = response.get("FunctionArn") or self._dry_run_arn(
                request.function_name
            )
            result.version = response.get("Version") or DRY_RUN_VERSION
            logger.info("[DRY RUN] Function code update simulation completed")
        else:
            result.function_arn = response.get("FunctionArn")
            result.version = response.get("Version") or result.version

    def _resolve_code(
        self,
        request: DeploymentRequest,
        zip_path: Path | None,
        s3_key: str | None,
    ) -> dict[str, Any]:
        """Build the code payload: image URI, S3 reference or embedded zip."""
        if not request.is_zip:
            logger.info(f"Using container image: {request.image_uri}")
            return image_code(request)

        if zip_path is None:
            raise DeploymentError(
                operation="package", message="No deployment package was produced"
            )

        if request.s3_bucket and s3_key:
            if self._uploader is None:
                raise DeploymentError(
                    operation="upload",
                    message="An S3 uploader is required for S3 deployments",
                )
            logger.info(
                f"Using S3 deployment method with bucket: {request.s3_bucket}, "
                f"key: {s3_key}"
            )
            upload = self._uploader.upload(zip_path, request.s3_bucket, s3_key)
            logger.info(
                f"Successfully uploaded package to S3: s3://{upload.bucket}/{upload.key}"
            )
            return s3_code(request, upload.bucket, upload.key)

        content = self._read_package(request, zip_path)
        logger.info(f"Zip file read successfully, size: {len(content)} bytes")
        return zip_file_code(request, content)

    def _read_package(self, request: DeploymentRequest, zip_path: Path) -> bytes:
        try:
            return Path(zip_path).read_bytes()
        except OSError as exc:
            if exc.errno == errno.ENOENT:
                hint = (
                    "File not found. Ensure the code artifacts directory "
                    f'"{request.code_artifacts_dir}" contains the required files.'
                )
            elif exc.errno == errno.EACCES:
                hint = "Permission denied. Check file access permissions."
            else:
                hint = str(exc)
            raise DeploymentError(
                operation="package",
                message=(
                    f"Failed to read Lambda deployment package at {zip_path}: {hint}"
                ),
            ) from exc

    def _dry_run_arn(self, function_name: str) -> str:
        region = self._region or US_EAST_1
        return f"arn:aws:lambda:{region}:{DRY_RUN_ACCOUNT_ID}:function:{function_name}"
