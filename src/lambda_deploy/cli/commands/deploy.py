"""CLI commands for deploying Lambda functions.

Implements 'lambda-deploy deploy', 'package' and 'validate'.
"""

from __future__ import annotations

import sys
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

import click
from botocore.exceptions import BotoCoreError, ClientError

from lambda_deploy import __version__
from lambda_deploy.config.defaults import DEFAULT_CONFIG_FILE
from lambda_deploy.config.env_loader import get_env_var
from lambda_deploy.config.loader import load_deployment_request
from lambda_deploy.deploy.clients import build_user_agent, create_clients
from lambda_deploy.deploy.deployer import FunctionDeployer
from lambda_deploy.deploy.errors import classify_error
from lambda_deploy.deploy.packager import package_code_artifacts
from lambda_deploy.deploy.storage import S3Uploader
from lambda_deploy.lib.errors import (
    CloudSDKNotInstalledError,
    ConfigError,
    DeploymentError,
)
from lambda_deploy.lib.logging_config import get_logger, setup_logging
from lambda_deploy.models.deployment import DeployResult, DeploymentRequest

logger = get_logger(__name__)

GITHUB_OUTPUT_ENV = "GITHUB_OUTPUT"


@contextmanager
def handle_deployment_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in deployment commands.

    Remote failures are classified here a second time so that exactly one
    terminal message is printed per run.

    Exit codes:
        2: Configuration error
        3: Deployment/execution error
    """
    try:
        yield
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(2)
    except CloudSDKNotInstalledError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)
    except (DeploymentError, ClientError, BotoCoreError) as e:
        classified = classify_error(e)
        logger.debug(f"Deployment failed ({classified.category.value}): {e}")
        click.secho(f"Error: {classified.message}", fg="red", err=True)
        if classified.retriable:
            click.echo("  Re-running the deployment later may succeed.", err=True)
        sys.exit(3)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)


def _resolve_config_path(config: str | None) -> str | None:
    """Use the explicit config file, else lambda.yaml when present."""
    if config:
        return config
    default = Path(DEFAULT_CONFIG_FILE)
    return str(default) if default.is_file() else None


def _write_outputs(result: DeployResult) -> None:
    """Print the run outputs and append them to $GITHUB_OUTPUT if set."""
    outputs = {"function-arn": result.function_arn, "version": result.version}
    lines = [f"{name}={value}" for name, value in outputs.items() if value]

    for line in lines:
        click.echo(line)

    output_file = get_env_var(GITHUB_OUTPUT_ENV)
    if output_file and lines:
        with open(output_file, "a", encoding="utf-8") as f:
            for line in lines:
                f.write(f"{line}\n")


def _build_deployer(request: DeploymentRequest) -> FunctionDeployer:
    clients = create_clients(request.region, user_agent=build_user_agent(__version__))
    uploader = None
    if request.is_zip and request.s3_bucket:
        uploader = S3Uploader(clients.s3_client, clients.sts_client, clients.region)
    return FunctionDeployer(
        clients.lambda_client, uploader=uploader, region=clients.region
    )


@click.command()
@click.argument(
    "config",
    type=click.Path(exists=True, dir_okay=False),
    required=False,
    default=None,
)
@click.option("--function-name", type=str, default=None, help="Function name")
@click.option("--region", type=str, default=None, help="AWS region")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Validate the code update without changing anything",
)
@click.option("--publish", is_flag=True, help="Publish a new version")
@click.option("--s3-bucket", type=str, default=None, help="Upload the zip here")
@click.option("--s3-key", type=str, default=None, help="Object key for the zip")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose debug logging",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress progress output",
)
def deploy(
    config: str | None,
    function_name: str | None,
    region: str | None,
    dry_run: bool,
    publish: bool,
    s3_bucket: str | None,
    s3_key: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Create or update a Lambda function.

    CONFIG is the path to the deployment inputs file (default: lambda.yaml
    when present). Options override values from the file.

    Example:

        lambda-deploy deploy lambda.yaml --dry-run
    """
    setup_logging(verbose=verbose, quiet=quiet)

    with handle_deployment_errors():
        overrides = {
            "function_name": function_name,
            "region": region,
            "dry_run": True if dry_run else None,
            "publish": True if publish else None,
            "s3_bucket": s3_bucket,
            "s3_key": s3_key,
        }
        request = load_deployment_request(_resolve_config_path(config), overrides)

        deployer = _build_deployer(request)
        result = deployer.run(request)

        if not quiet:
            if result.stopped_early:
                click.secho(
                    "[DRY RUN] Stopped at configuration differences; "
                    "code update was not simulated",
                    fg="yellow",
                )
            elif result.dry_run:
                click.secho("[DRY RUN] Deployment validated", fg="yellow")
            else:
                click.secho("Deployment Successful!", fg="green", bold=True)
        _write_outputs(result)


@click.command()
@click.argument("artifacts_dir", type=str)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose debug logging")
def package(artifacts_dir: str, verbose: bool) -> None:
    """Package ARTIFACTS_DIR into a deployment zip and print its path."""
    setup_logging(verbose=verbose, quiet=not verbose)

    with handle_deployment_errors():
        zip_path = package_code_artifacts(artifacts_dir)
        click.echo(str(zip_path))


@click.command()
@click.argument(
    "config",
    type=click.Path(exists=True, dir_okay=False),
    required=False,
    default=None,
)
@click.option("--function-name", type=str, default=None, help="Function name")
def validate(config: str | None, function_name: str | None) -> None:
    """Validate deployment inputs without calling AWS."""
    setup_logging(quiet=True)

    with handle_deployment_errors():
        request = load_deployment_request(
            _resolve_config_path(config), {"function_name": function_name}
        )

        click.secho("Configuration is valid", fg="green", bold=True)
        click.echo(f"  Function: {request.function_name}")
        click.echo(f"  Package type: {request.package_type.value}")
        if request.region:
            click.echo(f"  Region: {request.region}")
        for name in request.ignored_parameters():
            click.secho(f"  Warning: {name} is ignored for this package type", fg="yellow")
