"""Prepare the CDK project once every tool is in place."""

import logging
import re
import shutil
from pathlib import Path

from .commands import CommandError, CommandResult, run_cdk_bootstrap, run_cdk_list, run_npm_install
from .config import BootstrapConfig, ConfigurationError, validate_project_dir
from .constants import PROJECT_NAME_CONSTANT

logger = logging.getLogger(__name__)


def constant_pattern(constant: str = PROJECT_NAME_CONSTANT) -> re.Pattern:
    """Match a whole `export const NAME = ...` line, capturing its indentation."""
    return re.compile(rf"^([ \t]*)export const {re.escape(constant)} =[^\r\n]*", re.MULTILINE)


def patch_project_name(
    config_path: Path,
    project_name: str,
    constant: str = PROJECT_NAME_CONSTANT,
    backup: bool = True,
) -> bool:
    """
    Rewrite the project name constant in the CDK config file.

    Every ``export const PROJECT_NAME = ...`` line becomes
    ``export const PROJECT_NAME = '<project_name>'`` at the same indentation;
    the rest of the file is written back byte for byte.

    Args:
        config_path: The TypeScript config file, usually env.ts
        project_name: New value for the constant
        constant: Name of the exported constant
        backup: Keep the original next to it as <name>.bak

    Returns:
        True if a line was rewritten, False if no assignment was found.

    Raises:
        ConfigurationError: If the config file does not exist, is not UTF-8
            text, or cannot be read or written.
    """
    if not config_path.is_file():
        raise ConfigurationError(f"{config_path.name} file not found in {config_path.parent}")

    try:
        # newline="" keeps CRLF files intact
        with open(config_path, encoding="utf-8", newline="") as f:
            original = f.read()
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"{config_path} is not valid UTF-8 text: {e.reason}") from e
    except OSError as e:
        raise ConfigurationError(f"Could not read {config_path}: {e.strerror or e}") from e

    replacement = f"export const {constant} = '{project_name}'"
    updated, count = constant_pattern(constant).subn(lambda m: m.group(1) + replacement, original)
    if count == 0:
        return False

    try:
        if backup:
            shutil.copy2(config_path, config_path.with_name(config_path.name + ".bak"))
        with open(config_path, "w", encoding="utf-8", newline="") as f:
            f.write(updated)
    except OSError as e:
        raise ConfigurationError(f"Could not update {config_path}: {e.strerror or e}") from e
    return True


def _check(result: CommandResult, message: str) -> None:
    if not result.success:
        raise CommandError(message, returncode=result.returncode)


def prepare_project(
    config: BootstrapConfig,
    account_id: str | None = None,
    region: str | None = None,
) -> None:
    """Install the project's dependencies, bootstrap the CDK and list its stacks.

    Raises:
        ConfigurationError: If the project directory or config file is missing.
        CommandError: If npm or cdk fails.
    """
    logger.info("Preparing code dependencies...")
    cdk_dir = validate_project_dir(config.cdk_dir)

    logger.info("Installing npm dependencies in %s...", cdk_dir)
    _check(run_npm_install(cdk_dir), "Failed to install npm dependencies")

    logger.info("Bootstrapping CDK...")
    _check(run_cdk_bootstrap(cdk_dir, account_id, region), "Failed to bootstrap CDK")

    logger.info("Listing CDK stacks...")
    _check(run_cdk_list(cdk_dir), "Failed to list CDK stacks")

    if not config.project_name:
        logger.info("PROJECT_NAME is not provided, using default empty value")
    else:
        logger.info("Updating PROJECT_NAME to: %s", config.project_name)
        if not patch_project_name(config.project_config_path, config.project_name):
            message = f"No 'export const {PROJECT_NAME_CONSTANT}' assignment in {config.project_config_path}"
            if config.strict:
                raise ConfigurationError(message)
            logger.warning(message)

        logger.info("Stacks after updating PROJECT_NAME:")
        _check(run_cdk_list(cdk_dir), "Failed to list CDK stacks after updating PROJECT_NAME")

    logger.info("Code dependencies prepared successfully")
