"""App Runner deployer CLI (apprunner-deploy).

Runs the same reconciliation as the GitHub Action from a terminal.

Usage:
    apprunner-deploy deploy --file deployment.yaml
    apprunner-deploy deploy --service my-api --image public.ecr.aws/x/y:latest \\
        --access-role-arn arn:aws:iam::123456789012:role/ecr --wait
    apprunner-deploy status my-api --region eu-west-1
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import click

from .client import AppRunnerClient
from .config import DEFAULT_REGION, Config, ConfigurationError
from .errors import DeploymentError
from .locator import ServiceLocator
from .orchestrator import Orchestrator
from .outputs import RecordingOutput
from .spec_loader import DeploymentFileError, load_deployment_file


def _parse_pairs(values: tuple[str, ...], option: str) -> dict[str, str]:
    """Parse repeated KEY=VALUE options."""
    pairs: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint=option)
        pairs[key] = value
    return pairs


def _load_config(file_path: Path | None, inputs: dict[str, Any]) -> Config:
    """Build a Config from a deployment file, command line options, or both.

    Options given on the command line override values from the file.
    """
    overrides = {
        key: value
        for key, value in inputs.items()
        if value is not None and value is not False and value != {}
    }
    try:
        if file_path is None:
            return Config.from_mapping(overrides)
        return load_deployment_file(file_path, overrides=overrides)
    except (ConfigurationError, DeploymentFileError) as e:
        raise click.ClickException(str(e)) from e


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version="0.1.0", prog_name="apprunner-deploy")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool) -> None:
    """App Runner deployer CLI.

    Creates or updates an AWS App Runner service and optionally waits
    for it to become stable.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option(
    "--file", "-f", "file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML deployment file",
)
@click.option("--service", help="App Runner service name")
@click.option("--region", help=f"AWS region (default: {DEFAULT_REGION})")
@click.option("--image", help="Container image URI")
@click.option("--access-role-arn", help="Role App Runner uses to pull from ECR")
@click.option("--repo", help="Source code repository URL")
@click.option("--branch", help="Repository branch (default: main)")
@click.option("--source-connection-arn", help="App Runner connection to the repository")
@click.option("--runtime", help="Code runtime, e.g. PYTHON_3")
@click.option("--build-command", help="Build command for code sources")
@click.option("--start-command", help="Start command for code sources")
@click.option("--port", type=int, help="Application port (default: 80)")
@click.option("--cpu", type=float, help="vCPU (default: 1)")
@click.option("--memory", type=float, help="Memory in GB (default: 2)")
@click.option("--env", "env_pairs", multiple=True, help="Environment variable KEY=VALUE")
@click.option("--secret", "secret_pairs", multiple=True, help="Environment secret KEY=ARN")
@click.option("--tag", "tag_pairs", multiple=True, help="Resource tag KEY=VALUE")
@click.option("--auto-scaling-config-arn", help="Auto scaling configuration ARN")
@click.option("--instance-role-arn", help="Instance role ARN")
@click.option("--wait", is_flag=True, help="Wait for the service to become stable")
@click.option("--wait-timeout", type=int, help="Wait budget in seconds (implies --wait)")
def deploy(
    file_path: Path | None,
    env_pairs: tuple[str, ...],
    secret_pairs: tuple[str, ...],
    tag_pairs: tuple[str, ...],
    wait: bool,
    wait_timeout: int | None,
    **options: Any,
) -> None:
    """Create or update a service."""
    inputs: dict[str, Any] = {name.replace("_", "-"): value for name, value in options.items()}
    inputs["environment"] = _parse_pairs(env_pairs, "--env")
    inputs["environment-secrets"] = _parse_pairs(secret_pairs, "--secret")
    inputs["tags"] = _parse_pairs(tag_pairs, "--tag")
    inputs["wait-for-service-stability"] = wait
    inputs["wait-for-service-stability-seconds"] = wait_timeout

    config = _load_config(file_path, inputs)
    sink = RecordingOutput()
    client = AppRunnerClient.for_region(config.region)

    click.echo(f"Reconciling service {config.service_name} in {config.region}...")
    result = asyncio.run(Orchestrator(client, sink).run(config))

    for name, value in sink.outputs.items():
        click.echo(f"  {name}: {value}")

    if sink.failure is not None:
        raise click.ClickException(sink.failure)

    if result.final_status:
        click.secho(f"✓ Service is {result.final_status}", fg="green")
    else:
        click.secho("✓ Deployment submitted", fg="green")


@cli.command()
@click.argument("service_name")
@click.option("--region", default=DEFAULT_REGION, show_default=True, help="AWS region")
def status(service_name: str, region: str) -> None:
    """Show the current status of a service."""
    client = AppRunnerClient.for_region(region)

    async def describe() -> tuple[str, str, str] | None:
        existing = await ServiceLocator(client).locate(service_name)
        if existing is None:
            return None
        service = await client.describe_service(existing.arn)
        if service is None:
            return existing.arn, existing.status, ""
        return existing.arn, service.status or existing.status, service.service_url or ""

    try:
        found = asyncio.run(describe())
    except DeploymentError as e:
        raise click.ClickException(str(e)) from e

    if found is None:
        raise click.ClickException(f"Service {service_name} not found in {region}")

    arn, current_status, url = found
    click.echo(f"service-arn: {arn}")
    click.echo(f"status: {current_status}")
    click.echo(f"service-url: {url}")


if __name__ == "__main__":
    cli()
