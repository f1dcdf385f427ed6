"""Install-or-skip guard shared by every installer step."""

import logging
import re
from dataclasses import dataclass
from typing import Callable

from .commands import CommandResult, check_command_exists, run_command
from .host import PlatformDescriptor

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"(\d+\.\d+\.\d+)")

SATISFIED = "satisfied"
INSTALLED = "installed"
DEFERRED = "deferred"


class InstallationFailedError(Exception):
    """A tool could not be installed or failed verification afterwards."""

    def __init__(self, tool: str, message: str, returncode: int | None = None):
        super().__init__(f"{tool}: {message}")
        self.tool = tool
        self.returncode = returncode


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of checking whether a tool is present, and at which version."""

    present: bool
    version: str | None = None
    raw: str = ""

    @classmethod
    def missing(cls) -> "ProbeResult":
        return cls(present=False)


@dataclass
class StepOutcome:
    """What the guard did for one tool."""

    tool: str
    status: str
    version: str | None = None


def version_from_output(text: str) -> str | None:
    """Extract the first dotted version (e.g. 2.177.0) from CLI output."""
    match = VERSION_PATTERN.search(text or "")
    return match.group(1) if match else None


def probe_command(
    executable: str,
    args: list[str],
    parse: Callable[[str], str | None] = version_from_output,
) -> ProbeResult:
    """Probe a tool by running its version command."""
    if not check_command_exists(executable):
        return ProbeResult.missing()

    result: CommandResult = run_command([executable, *args])
    if not result.success:
        return ProbeResult.missing()

    return ProbeResult(present=True, version=parse(result.output), raw=result.output)


def any_version(probe: ProbeResult) -> bool:
    """Default acceptance: any successfully probed version will do."""
    return probe.present


def pinned(version: str) -> Callable[[ProbeResult], bool]:
    """Acceptance policy requiring an exact version match."""

    def accepts(probe: ProbeResult) -> bool:
        return probe.present and probe.version == version

    return accepts


@dataclass
class ToolRequirement:
    """Presence check, install procedure and verification for one tool.

    ``install`` receives the platform and the probe that triggered it, so
    a step can choose between a fresh install and an in-place upgrade.
    It may return ``DEFERRED`` when installation is left to the operator.
    """

    name: str
    probe: Callable[[], ProbeResult]
    install: Callable[[PlatformDescriptor, ProbeResult], str | None]
    accepts: Callable[[ProbeResult], bool] = any_version


def ensure_tool(requirement: ToolRequirement, platform: PlatformDescriptor) -> StepOutcome:
    """Install a tool unless it is already present at an acceptable version.

    Raises:
        InstallationFailedError: If the tool is still unusable after installing.
    """
    name = requirement.name
    logger.info("Installing %s...", name)

    before = requirement.probe()
    if requirement.accepts(before):
        logger.info("%s is already installed: %s", name, before.raw or before.version)
        return StepOutcome(tool=name, status=SATISFIED, version=before.version)

    if before.present:
        logger.info("%s %s found, installing the required version", name, before.version or "(unknown version)")
    else:
        logger.info("%s not found, installing...", name)

    if requirement.install(platform, before) == DEFERRED:
        return StepOutcome(tool=name, status=DEFERRED)

    after = requirement.probe()
    if not requirement.accepts(after):
        if after.present:
            raise InstallationFailedError(name, f"installed version {after.version} is not acceptable")
        raise InstallationFailedError(name, "installation failed, command still not available")

    logger.info("%s installed successfully: %s", name, after.raw or after.version)
    return StepOutcome(tool=name, status=INSTALLED, version=after.version)
