"""Prepare a host for deploying the CDK project.

Installs the AWS CLI, eksctl, kubectl, Docker, Node.js and the AWS CDK,
checks AWS credentials, then bootstraps the CDK project.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer

from .lib.aws import account_from_arn, get_region, get_session
from .lib.commands import CommandError, is_root
from .lib.config import BootstrapConfig, ConfigurationError, get_bootstrap_config
from .lib.console import (
    configure_logging,
    console,
    print_config,
    print_final_success,
    print_header,
    print_step,
    remind,
)
from .lib.constants import DEFAULT_ENV_FILE
from .lib.credentials import DecisionProvider, check_credentials, prompt_credential_choice
from .lib.download import DownloadError
from .lib.host import PlatformDescriptor, UnsupportedPlatformError, detect_platform
from .lib.installers import build_tool_requirements
from .lib.package_managers import DOCKER_TOOL, package_manager_for
from .lib.project import prepare_project
from .lib.tools import INSTALLED, InstallationFailedError, StepOutcome, ensure_tool

logger = logging.getLogger("auto_deploy.prepare")

app = typer.Typer(help="Prepare the environment and bootstrap the CDK project")

FATAL_ERRORS = (
    ConfigurationError,
    UnsupportedPlatformError,
    InstallationFailedError,
    CommandError,
    DownloadError,
)


def check_not_root(config: BootstrapConfig) -> None:
    """Refuse or warn about running as root, depending on policy."""
    if not is_root() or config.allow_root:
        return
    if config.strict:
        raise ConfigurationError("This script should not be run as root (use --allow-root to override)")
    logger.warning("Running as root; tools will be installed for the root user")


def install_tools(platform: PlatformDescriptor, config: BootstrapConfig) -> list[StepOutcome]:
    """Bootstrap the package manager, then bring every tool to a satisfied state."""
    requirements = build_tool_requirements(strict=config.strict)
    total = len(requirements) + 1

    print_step(f"1/{total}", "Installing basic dependencies...")
    package_manager_for(platform).bootstrap()

    outcomes = []
    for index, requirement in enumerate(requirements, start=2):
        print_step(f"{index}/{total}", f"Installing {requirement.name}...")
        outcomes.append(ensure_tool(requirement, platform))
    return outcomes


def run_bootstrap(
    config: BootstrapConfig,
    decide: DecisionProvider = prompt_credential_choice,
    platform: PlatformDescriptor | None = None,
    skip_project: bool = False,
) -> list[StepOutcome]:
    """Run every step in order, stopping at the first fatal error."""
    check_not_root(config)

    if platform is None:
        platform = detect_platform()
    print_config(
        cdk_dir=str(config.cdk_dir),
        project_name=config.project_name,
        platform=platform.describe(),
        strict=config.strict,
    )

    outcomes = install_tools(platform, config)

    console.print()
    arn = check_credentials(decide)

    if skip_project:
        logger.info("Skipping CDK project preparation")
    else:
        account_id = account_from_arn(arn) if arn else None
        region = get_region(get_session()) if arn else None
        prepare_project(config, account_id=account_id, region=region)

    if platform.is_linux and any(o.tool == DOCKER_TOOL and o.status == INSTALLED for o in outcomes):
        remind("You may need to log out and back in for Docker group changes to take effect")
        remind("Alternatively, run: newgrp docker")

    return outcomes


@app.command()
def prepare(
    env_file: Annotated[
        Path,
        typer.Option("--env-file", help="Shell-style env file defining CDK_DIR and PROJECT_NAME"),
    ] = DEFAULT_ENV_FILE,
    cdk_dir: Annotated[
        Path | None,
        typer.Option("--cdk-dir", help="CDK project directory (overrides CDK_DIR)"),
    ] = None,
    project_name: Annotated[
        str | None,
        typer.Option("--project-name", help="Value for PROJECT_NAME in env.ts"),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Treat degradable conditions as fatal (or STRICT_MODE=true)"),
    ] = False,
    allow_root: Annotated[
        bool,
        typer.Option("--allow-root", help="Allow running as root in strict mode (or ALLOW_ROOT=true)"),
    ] = False,
    skip_project: Annotated[
        bool,
        typer.Option("--skip-project", help="Only install tools, don't touch the CDK project"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every command that is run"),
    ] = False,
) -> None:
    """
    Prepare this machine for deploying the CDK project.

    Steps, in order:

    1. Refresh the package index and install basic utilities

    2. Install AWS CLI v2, eksctl, kubectl, Docker, Node.js (nvm) and AWS CDK

    3. Check AWS credentials

    4. npm install, cdk bootstrap and cdk list in the CDK directory

    Tools that are already installed are left alone.
    """
    configure_logging(verbose)
    print_header("Environment Preparation")
    logger.info("Starting environment preparation...")

    try:
        config = get_bootstrap_config(
            env_file=env_file,
            cdk_dir=cdk_dir,
            project_name=project_name,
            strict=strict,
            allow_root=allow_root,
        )
        run_bootstrap(config, skip_project=skip_project)

    except FATAL_ERRORS as e:
        logger.error("%s", e)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Environment preparation cancelled.[/yellow]")
        raise typer.Exit(130)

    logger.info("Environment preparation completed successfully")
    print_final_success()


def main() -> None:
    """Entry point for the prepare script."""
    app()


if __name__ == "__main__":
    main()
