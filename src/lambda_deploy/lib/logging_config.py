"""Logging setup for lambda-deploy.

All modules obtain their logger through ``get_logger`` so that log records
share the ``lambda_deploy`` namespace and are configured in one place.
"""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER_NAME = "lambda_deploy"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
VERBOSE_LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
)


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the lambda_deploy namespace.

    Args:
        name: Module name, usually ``__name__``

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the lambda_deploy logger hierarchy.

    Args:
        verbose: Emit DEBUG records, including failure tracebacks
        quiet: Only emit WARNING and above
    """
    if verbose:
        level = logging.DEBUG
        fmt = VERBOSE_LOG_FORMAT
    elif quiet:
        level = logging.WARNING
        fmt = LOG_FORMAT
    else:
        level = logging.INFO
        fmt = LOG_FORMAT

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # Replace handlers so repeated setup calls don't duplicate output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)

    # botocore is chatty at DEBUG; keep it at WARNING unless verbose
    logging.getLogger("botocore").setLevel(logging.DEBUG if verbose else logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.DEBUG if verbose else logging.WARNING)
