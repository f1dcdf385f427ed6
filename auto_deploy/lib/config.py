"""Configuration loading and validation for the bootstrap run."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from .console import print_error
from .constants import DEFAULT_ENV_FILE, DEFAULT_PROJECT_CONFIG

TRUTHY = {"1", "true", "yes", "on"}


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


@dataclass
class BootstrapConfig:
    """Validated bootstrap configuration."""

    cdk_dir: Path
    project_name: str | None = None
    strict: bool = False
    allow_root: bool = False
    env_file: Path | None = None
    config_file_name: str = DEFAULT_PROJECT_CONFIG

    @property
    def project_config_path(self) -> Path:
        return self.cdk_dir / self.config_file_name


def load_env_file(env_path: Path = DEFAULT_ENV_FILE) -> dict[str, str]:
    """Load variables from an env file using python-dotenv.

    Shell-style ``export KEY=value`` lines are accepted, so the same
    ``env.sh`` can be sourced by a shell as well.
    """
    if not env_path.exists():
        raise ConfigurationError(
            f"{env_path} not found. Create it and define CDK_DIR (and optionally PROJECT_NAME)."
        )
    return {key: value for key, value in dotenv_values(env_path).items() if value is not None}


def parse_flag(value: str | None) -> bool:
    """Interpret an environment flag such as STRICT_MODE=true."""
    if value is None:
        return False
    return value.strip().lower() in TRUTHY


def validate_project_dir(cdk_dir: Path | None) -> Path:
    """Check the CDK project directory exists and is not empty."""
    if cdk_dir is None or not str(cdk_dir).strip():
        raise ConfigurationError("CDK_DIR is not defined")

    if not cdk_dir.is_dir():
        raise ConfigurationError(f"CDK directory does not exist: {cdk_dir}")

    if not any(cdk_dir.iterdir()):
        raise ConfigurationError(f"CDK directory is empty: {cdk_dir}")

    return cdk_dir


def get_bootstrap_config(
    env_file: Path | None = DEFAULT_ENV_FILE,
    cdk_dir: Path | None = None,
    project_name: str | None = None,
    strict: bool = False,
    allow_root: bool = False,
) -> BootstrapConfig:
    """Load and validate the bootstrap configuration.

    Values given as arguments win over the process environment, which
    wins over the env file. Flags can only be switched on by the caller;
    STRICT_MODE and ALLOW_ROOT switch them on from the environment. The
    env file may be absent when CDK_DIR is provided some other way.
    """
    file_values: dict[str, str] = {}
    used_env_file = None
    if env_file is not None:
        try:
            file_values = load_env_file(env_file)
            used_env_file = env_file
        except ConfigurationError:
            if cdk_dir is None and not os.environ.get("CDK_DIR"):
                raise

    def lookup(key: str) -> str | None:
        value = os.environ.get(key)
        if value is None:
            value = file_values.get(key)
        return value

    raw_cdk_dir = str(cdk_dir) if cdk_dir is not None else lookup("CDK_DIR")
    raw_project_name = project_name if project_name is not None else lookup("PROJECT_NAME")

    strict = strict or parse_flag(lookup("STRICT_MODE"))
    allow_root = allow_root or parse_flag(lookup("ALLOW_ROOT"))

    errors = []

    resolved_dir = None
    try:
        resolved_dir = validate_project_dir(
            Path(raw_cdk_dir).expanduser() if raw_cdk_dir and raw_cdk_dir.strip() else None
        )
    except ConfigurationError as e:
        errors.append(str(e))

    if raw_project_name is not None:
        raw_project_name = raw_project_name.strip() or None
    if raw_project_name and "'" in raw_project_name:
        errors.append(f"Invalid PROJECT_NAME: {raw_project_name} (single quotes are not allowed)")

    if errors:
        for error in errors:
            print_error(error)
        raise ConfigurationError("; ".join(errors))

    return BootstrapConfig(
        cdk_dir=resolved_dir,
        project_name=raw_project_name,
        strict=strict,
        allow_root=allow_root,
        env_file=used_env_file,
    )
