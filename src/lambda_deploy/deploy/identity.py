"""Caller identity lookup."""

from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from lambda_deploy.lib.logging_config import get_logger

logger = get_logger(__name__)


def get_account_id(sts_client: Any) -> str | None:
    """Return the AWS account id of the current credentials.

    Failures degrade to None with a warning; callers decide whether a
    missing account id is fatal.
    """
    try:
        response = sts_client.get_caller_identity()
    except (ClientError, BotoCoreError) as exc:
        logger.warning(f"Failed to retrieve AWS account ID: {exc}")
        logger.debug("Identity lookup traceback", exc_info=exc)
        return None

    account_id = response.get("Account")
    logger.info(f"Successfully retrieved AWS account ID: {account_id}")
    return account_id
