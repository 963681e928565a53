"""boto3 client construction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from lambda_deploy.config.defaults import USER_AGENT_PREFIX
from lambda_deploy.lib.errors import CloudSDKNotInstalledError
from lambda_deploy.lib.logging_config import get_logger

logger = get_logger(__name__)


def build_user_agent(version: str) -> str:
    """Return the user agent suffix sent with every AWS request."""
    return f"{USER_AGENT_PREFIX}/{version}"


@dataclass
class AWSClients:
    """The AWS service clients one deployment run needs."""

    lambda_client: Any
    s3_client: Any
    sts_client: Any
    region: str | None


def create_clients(region: str | None, *, user_agent: str) -> AWSClients:
    """Create Lambda, S3 and STS clients sharing region and user agent.

    Args:
        region: AWS region; None defers to the boto3 default chain
        user_agent: Value appended to the botocore user agent

    Raises:
        CloudSDKNotInstalledError: If boto3 is not importable
    """
    try:
        import boto3
        from botocore.config import Config
    except ImportError as exc:
        raise CloudSDKNotInstalledError(provider="aws", sdk_name="boto3") from exc

    logger.info(f"Setting custom user agent: {user_agent}")
    config = Config(user_agent_extra=user_agent)
    session = boto3.session.Session(region_name=region)

    return AWSClients(
        lambda_client=session.client("lambda", config=config),
        s3_client=session.client("s3", config=config),
        sts_client=session.client("sts", config=config),
        region=region or session.region_name,
    )
