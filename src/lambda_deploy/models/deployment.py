"""Pydantic models for Lambda deployment inputs and results.

This module defines the validated, immutable input of one deployment run
and the outputs it produces.
"""

import json
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from lambda_deploy.config.defaults import DEFAULT_HANDLER, DEFAULT_RUNTIME
from lambda_deploy.lib.validation import (
    validate_code_signing_config_arn,
    validate_kms_key_arn,
    validate_role_arn,
)

# Fields parsed from JSON strings when supplied that way (e.g. by CI inputs)
JSON_FIELDS = (
    "environment",
    "vpc_config",
    "dead_letter_config",
    "tracing_config",
    "layers",
    "file_system_configs",
    "image_config",
    "snap_start",
    "logging_config",
    "tags",
)


class PackageType(str, Enum):
    """Code delivery mechanism for a Lambda function."""

    ZIP = "Zip"
    IMAGE = "Image"


def parse_json_input(value: Any, input_name: str) -> Any:
    """Parse a JSON string input, passing already-structured values through.

    Raises:
        ValueError: If the string is not valid JSON
    """
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {input_name} input: {exc}") from exc


class DeploymentRequest(BaseModel):
    """Validated input to one deployment run.

    Optional fields left as None are "not supplied" and never reach a
    request to AWS. ``environment`` is always present, possibly empty.

    Attributes:
        function_name: Lambda function name (unique per account and region)
        package_type: Zip archive or container image
        region: AWS region to deploy into
        code_artifacts_dir: Directory packaged into the zip (Zip only)
        image_uri: Container image URI (Image only)
        s3_bucket: Bucket to upload the zip to before referencing it
        s3_key: Object key for the upload
        dry_run: Validate the code update without applying anything
        publish: Publish a new version with the change
        revision_id: Only update when the function revision matches
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    function_name: str = Field(..., min_length=1, description="Lambda function name")
    package_type: PackageType = Field(
        default=PackageType.ZIP, description="Code delivery mechanism"
    )
    region: str | None = Field(default=None, description="AWS region")

    # Zip
    code_artifacts_dir: str | None = Field(
        default=None, description="Directory containing the function code"
    )
    handler: str | None = Field(default=None, description="Function handler")
    runtime: str | None = Field(default=None, description="Function runtime")
    s3_bucket: str | None = Field(default=None, description="S3 bucket for the zip")
    s3_key: str | None = Field(default=None, description="S3 key for the zip")

    # Image
    image_uri: str | None = Field(default=None, description="Container image URI")

    # Numeric tunables
    memory_size: int | None = Field(
        default=None, ge=128, le=10240, description="Memory in MB"
    )
    timeout: int | None = Field(
        default=None, ge=1, le=900, description="Timeout in seconds"
    )
    ephemeral_storage: int | None = Field(
        default=None, ge=512, le=10240, description="Ephemeral /tmp storage in MB"
    )

    # Structured blocks
    environment: dict[str, str] = Field(
        default_factory=dict, description="Environment variables"
    )
    vpc_config: dict[str, Any] | None = Field(default=None, description="VpcConfig")
    dead_letter_config: dict[str, Any] | None = Field(
        default=None, description="DeadLetterConfig"
    )
    tracing_config: dict[str, Any] | None = Field(
        default=None, description="TracingConfig"
    )
    layers: list[str] | None = Field(default=None, description="Layer version ARNs")
    file_system_configs: list[dict[str, Any]] | None = Field(
        default=None, description="FileSystemConfigs"
    )
    image_config: dict[str, Any] | None = Field(
        default=None, description="ImageConfig override"
    )
    snap_start: dict[str, Any] | None = Field(default=None, description="SnapStart")
    logging_config: dict[str, Any] | None = Field(
        default=None, description="LoggingConfig"
    )
    tags: dict[str, str] | None = Field(default=None, description="Function tags")

    # Identity and security
    role: str | None = Field(default=None, description="Execution role ARN")
    code_signing_config_arn: str | None = Field(
        default=None, description="Code signing config ARN"
    )
    kms_key_arn: str | None = Field(
        default=None, description="KMS key for environment variables at rest"
    )
    source_kms_key_arn: str | None = Field(
        default=None, description="KMS key for the uploaded code at rest"
    )

    # Behaviour
    function_description: str | None = Field(
        default=None, description="Function description"
    )
    architectures: list[str] | None = Field(
        default=None, description="Instruction set architectures"
    )
    dry_run: bool = Field(default=False, description="Validate without applying")
    publish: bool = Field(default=False, description="Publish a new version")
    revision_id: str | None = Field(
        default=None, description="Expected function revision"
    )

    @model_validator(mode="before")
    @classmethod
    def parse_json_strings(cls, data: Any) -> Any:
        """Accept JSON-string forms of the structured inputs."""
        if not isinstance(data, dict):
            return data
        parsed = dict(data)
        for name in JSON_FIELDS:
            value = parsed.get(name)
            if value == "":
                parsed[name] = None if name != "environment" else {}
            elif value is not None:
                parsed[name] = parse_json_input(value, name.replace("_", "-"))
        architectures = parsed.get("architectures")
        if isinstance(architectures, str):
            parsed["architectures"] = [architectures] if architectures else None
        return parsed

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str | None) -> str | None:
        """Validate the execution role ARN format."""
        return validate_role_arn(v) if v else v

    @field_validator("code_signing_config_arn")
    @classmethod
    def validate_code_signing_config(cls, v: str | None) -> str | None:
        """Validate the code signing config ARN format."""
        return validate_code_signing_config_arn(v) if v else v

    @field_validator("kms_key_arn", "source_kms_key_arn")
    @classmethod
    def validate_kms_key(cls, v: str | None) -> str | None:
        """Validate KMS key ARN formats."""
        return validate_kms_key_arn(v) if v else v

    @field_validator("vpc_config")
    @classmethod
    def validate_vpc_config(cls, v: dict[str, Any] | None) -> dict[str, Any] | None:
        """VpcConfig must carry SubnetIds and SecurityGroupIds arrays."""
        if v is None:
            return v
        if not isinstance(v.get("SubnetIds"), list):
            raise ValueError("vpc-config must include 'SubnetIds' as an array")
        if not isinstance(v.get("SecurityGroupIds"), list):
            raise ValueError("vpc-config must include 'SecurityGroupIds' as an array")
        return v

    @field_validator("dead_letter_config")
    @classmethod
    def validate_dead_letter_config(
        cls, v: dict[str, Any] | None
    ) -> dict[str, Any] | None:
        """DeadLetterConfig must carry a TargetArn."""
        if v is not None and not v.get("TargetArn"):
            raise ValueError("dead-letter-config must include 'TargetArn'")
        return v

    @field_validator("tracing_config")
    @classmethod
    def validate_tracing_config(cls, v: dict[str, Any] | None) -> dict[str, Any] | None:
        """TracingConfig Mode must be Active or PassThrough."""
        if v is not None and v.get("Mode") not in ("Active", "PassThrough"):
            raise ValueError("tracing-config Mode must be 'Active' or 'PassThrough'")
        return v

    @field_validator("file_system_configs")
    @classmethod
    def validate_file_system_configs(
        cls, v: list[dict[str, Any]] | None
    ) -> list[dict[str, Any]] | None:
        """Each file system config needs an Arn and a LocalMountPath."""
        for config in v or []:
            if not config.get("Arn") or not config.get("LocalMountPath"):
                raise ValueError(
                    "Each file-system-config must include 'Arn' and 'LocalMountPath'"
                )
        return v

    @field_validator("snap_start")
    @classmethod
    def validate_snap_start(cls, v: dict[str, Any] | None) -> dict[str, Any] | None:
        """SnapStart ApplyOn must be PublishedVersions or None."""
        if v is not None and v.get("ApplyOn") not in ("PublishedVersions", "None"):
            raise ValueError("snap-start ApplyOn must be 'PublishedVersions' or 'None'")
        return v

    @model_validator(mode="after")
    def validate_package_inputs(self) -> "DeploymentRequest":
        """Require the code source that matches the package type."""
        if self.package_type == PackageType.ZIP:
            if not self.code_artifacts_dir:
                raise ValueError(
                    'code_artifacts_dir must be provided when package_type is "Zip"'
                )
        elif not self.image_uri:
            raise ValueError('image_uri must be provided when package_type is "Image"')
        return self

    @property
    def is_zip(self) -> bool:
        """True for zip archive deployments."""
        return self.package_type == PackageType.ZIP

    @property
    def effective_handler(self) -> str | None:
        """Handler applied to the function; Zip functions get a default."""
        if self.is_zip:
            return self.handler or DEFAULT_HANDLER
        return self.handler

    @property
    def effective_runtime(self) -> str | None:
        """Runtime applied to the function; Zip functions get a default."""
        if self.is_zip:
            return self.runtime or DEFAULT_RUNTIME
        return self.runtime

    def ignored_parameters(self) -> list[str]:
        """Names of supplied inputs that the package type does not use."""
        if self.is_zip:
            return ["image_uri"] if self.image_uri else []
        return [
            name
            for name in ("code_artifacts_dir", "s3_bucket", "s3_key", "source_kms_key_arn")
            if getattr(self, name)
        ]


class DeployResult(BaseModel):
    """Outputs of a deployment run.

    Attributes:
        function_arn: ARN of the deployed function
        version: Version identifier returned by the last call ($LATEST on dry runs)
        created: True when the function was created in this run
        configuration_updated: True when a configuration update was applied
        code_updated: True when the code update call was issued
        dry_run: True when the run was a dry run
        stopped_early: True when a dry run stopped at a configuration diff
    """

    model_config = ConfigDict(extra="forbid")

    function_arn: str | None = Field(default=None, description="Function ARN")
    version: str | None = Field(default=None, description="Function version")
    created: bool = Field(default=False, description="Function was created")
    configuration_updated: bool = Field(
        default=False, description="Configuration update was applied"
    )
    code_updated: bool = Field(default=False, description="Code update was issued")
    dry_run: bool = Field(default=False, description="Run was a dry run")
    stopped_early: bool = Field(
        default=False, description="Dry run stopped at a configuration diff"
    )
