"""Subprocess execution for external tools (package managers, npm, cdk)."""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """External command execution error."""

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode


@dataclass
class CommandResult:
    """Result of a subprocess command."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined output; some CLIs print their version on stderr."""
        return (self.stdout or self.stderr).strip()


def check_command_exists(cmd: str) -> bool:
    """Check if a command is available in PATH."""
    return shutil.which(cmd) is not None


def is_root() -> bool:
    """Check whether this process runs with effective uid 0."""
    return hasattr(os, "geteuid") and os.geteuid() == 0


def privileged(cmd: list[str]) -> list[str]:
    """Prefix a command with sudo unless already running as root."""
    if is_root():
        return list(cmd)
    return ["sudo", *cmd]


def run_command(
    cmd: list[str],
    env: dict[str, str] | None = None,
    cwd: Path | None = None,
    capture_output: bool = True,
    input: str | None = None,
) -> CommandResult:
    """Run a subprocess command."""
    full_env = {**os.environ, **(env or {})}
    logger.debug("Running: %s", " ".join(str(part) for part in cmd))

    try:
        result = subprocess.run(
            cmd,
            env=full_env,
            cwd=cwd,
            capture_output=capture_output,
            input=input,
            text=True,
        )
    except FileNotFoundError:
        # Missing executable behaves like the shell's "command not found"
        return CommandResult(returncode=127, stdout="", stderr=f"{cmd[0]}: command not found")

    return CommandResult(
        returncode=result.returncode,
        stdout=result.stdout if capture_output else "",
        stderr=result.stderr if capture_output else "",
    )


def run_privileged(
    cmd: list[str],
    cwd: Path | None = None,
    input: str | None = None,
) -> CommandResult:
    """Run a command with elevated permission, streaming its output."""
    return run_command(privileged(cmd), cwd=cwd, capture_output=input is not None, input=input)


def run_bash(
    script: str,
    env: dict[str, str] | None = None,
    capture_output: bool = True,
) -> CommandResult:
    """Run a snippet through bash, for tools that only exist as shell functions."""
    return run_command(["bash", "-c", script], env=env, capture_output=capture_output)


def run_npm_install(cwd: Path) -> CommandResult:
    """Install the project's declared npm dependencies."""
    # Don't capture output so user sees progress
    return run_command(["npm", "install", "--force"], cwd=cwd, capture_output=False)


def run_cdk_bootstrap(
    cwd: Path,
    account_id: str | None = None,
    region: str | None = None,
) -> CommandResult:
    """Bootstrap CDK in the account/region."""
    cmd = ["cdk", "bootstrap"]
    if account_id and region:
        cmd.append(f"aws://{account_id}/{region}")

    return run_command(cmd, cwd=cwd, capture_output=False)


def run_cdk_list(cwd: Path) -> CommandResult:
    """List the stacks the CDK app synthesizes."""
    return run_command(["cdk", "list"], cwd=cwd, capture_output=False)
