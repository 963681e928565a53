"""Entry point for the lambda-deploy command line."""

import click

from lambda_deploy import __version__
from lambda_deploy.cli.commands.deploy import deploy, package, validate


@click.group(name="lambda-deploy")
@click.version_option(version=__version__, prog_name="lambda-deploy")
def main() -> None:
    """Create or update an AWS Lambda function from declarative inputs.

    Example:

        lambda-deploy deploy lambda.yaml

        lambda-deploy deploy --dry-run
    """


main.add_command(deploy)
main.add_command(package)
main.add_command(validate)


if __name__ == "__main__":  # pragma: no cover
    main()
