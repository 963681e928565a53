"""Request builders for Lambda API calls.

Each builder only sets a parameter when the corresponding input was
supplied. ``None`` means "not supplied"; ``0`` and ``False`` are real values
and are always sent.
"""

from __future__ import annotations

from typing import Any

from lambda_deploy.models.deployment import DeploymentRequest


class RequestBuilder:
    """Accumulates API parameters, skipping inputs that were not supplied."""

    def __init__(self, **required: Any) -> None:
        """Start a request with parameters that are always sent."""
        self._params: dict[str, Any] = dict(required)

    def set(self, key: str, value: Any) -> RequestBuilder:
        """Set ``key`` when ``value`` was supplied."""
        if value is not None:
            self._params[key] = value
        return self

    def set_if(self, condition: bool, key: str, value: Any) -> RequestBuilder:
        """Set ``key`` when ``condition`` holds and ``value`` was supplied."""
        if condition:
            self.set(key, value)
        return self

    def build(self) -> dict[str, Any]:
        """Return a copy of the assembled parameters."""
        return dict(self._params)


def _ephemeral_storage(request: DeploymentRequest) -> dict[str, int] | None:
    if request.ephemeral_storage is None:
        return None
    return {"Size": request.ephemeral_storage}


def _add_configuration_fields(
    builder: RequestBuilder, request: DeploymentRequest
) -> RequestBuilder:
    """Add the fields shared by create, configuration update and the diff."""
    zip_only = request.is_zip
    return (
        builder.set("Role", request.role)
        .set_if(zip_only, "Handler", request.effective_handler)
        .set("Description", request.function_description)
        .set("MemorySize", request.memory_size)
        .set("Timeout", request.timeout)
        .set_if(zip_only, "Runtime", request.effective_runtime)
        .set("KMSKeyArn", request.kms_key_arn)
        .set("EphemeralStorage", _ephemeral_storage(request))
        .set("VpcConfig", request.vpc_config)
        .set("Environment", {"Variables": dict(request.environment)})
        .set("DeadLetterConfig", request.dead_letter_config)
        .set("TracingConfig", request.tracing_config)
        .set_if(zip_only, "Layers", request.layers)
        .set("FileSystemConfigs", request.file_system_configs)
        .set_if(not zip_only, "ImageConfig", request.image_config)
        .set("SnapStart", request.snap_start)
        .set("LoggingConfig", request.logging_config)
    )


def build_desired_configuration(request: DeploymentRequest) -> dict[str, Any]:
    """Build the sparse desired configuration snapshot compared by the diff."""
    return _add_configuration_fields(RequestBuilder(), request).build()


def build_configuration_update_input(request: DeploymentRequest) -> dict[str, Any]:
    """Build UpdateFunctionConfiguration parameters."""
    builder = RequestBuilder(FunctionName=request.function_name)
    return _add_configuration_fields(builder, request).build()


def build_create_input(
    request: DeploymentRequest, code: dict[str, Any]
) -> dict[str, Any]:
    """Build CreateFunction parameters around a resolved code payload."""
    builder = RequestBuilder(
        FunctionName=request.function_name,
        Code=code,
        PackageType=request.package_type.value,
        Publish=request.publish,
    )
    _add_configuration_fields(builder, request)
    return (
        builder.set("Architectures", request.architectures)
        .set("Tags", request.tags)
        .set("CodeSigningConfigArn", request.code_signing_config_arn)
        .build()
    )


def build_code_update_input(
    request: DeploymentRequest, code: dict[str, Any]
) -> dict[str, Any]:
    """Build UpdateFunctionCode parameters around a resolved code payload."""
    return (
        RequestBuilder(FunctionName=request.function_name, Publish=request.publish)
        .set("Architectures", request.architectures)
        .set("RevisionId", request.revision_id)
        .build()
        | code
    )


def s3_code(request: DeploymentRequest, bucket: str, key: str) -> dict[str, Any]:
    """Code payload referencing an uploaded S3 object."""
    return (
        RequestBuilder(S3Bucket=bucket, S3Key=key)
        .set("SourceKMSKeyArn", request.source_kms_key_arn)
        .build()
    )


def zip_file_code(request: DeploymentRequest, content: bytes) -> dict[str, Any]:
    """Code payload embedding the zip archive bytes."""
    return (
        RequestBuilder(ZipFile=content)
        .set("SourceKMSKeyArn", request.source_kms_key_arn)
        .build()
    )


def image_code(request: DeploymentRequest) -> dict[str, Any]:
    """Code payload referencing a container image."""
    return {"ImageUri": request.image_uri}


def redact_code_input(params: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of code parameters safe to log (zip bytes replaced)."""
    redacted = dict(params)
    content = redacted.get("ZipFile")
    if content is not None:
        redacted["ZipFile"] = f"<Binary data of length {len(content)} bytes>"
    return redacted
