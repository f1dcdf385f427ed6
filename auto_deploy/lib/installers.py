"""Installer steps, one per required tool.

Each step pairs a probe (is the tool there, at which version) with an
install procedure for the detected platform. ``ensure_tool`` decides
whether the procedure runs at all and verifies the result.
"""

import json
import logging
import os
from functools import partial
from pathlib import Path

from .commands import check_command_exists, run_bash, run_command, run_privileged
from .constants import (
    AWS_CLI_INSTALL_DIR,
    AWS_CLI_LINUX_URL,
    AWS_CLI_MACOS_URL,
    BIN_DIR,
    CDK_PACKAGE_NAME,
    CDK_VERSION,
    EKSCTL_URL,
    KUBECTL_STABLE_URL,
    KUBECTL_URL,
    NVM_INSTALL_URL,
)
from .download import DownloadError, download_file, extract_tarball, fetch_text, scoped_workdir
from .host import PlatformDescriptor
from .package_managers import DOCKER_TOOL, package_manager_for, require
from .tools import (
    DEFERRED,
    InstallationFailedError,
    ProbeResult,
    ToolRequirement,
    pinned,
    probe_command,
    version_from_output,
)

logger = logging.getLogger(__name__)

AWS_CLI_TOOL = "AWS CLI"
EKSCTL_TOOL = "eksctl"
KUBECTL_TOOL = "kubectl"
NODE_TOOL = "Node.js"
CDK_TOOL = "AWS CDK"


def _download(tool: str, url: str, path: Path) -> Path:
    try:
        return download_file(url, path)
    except DownloadError as e:
        raise InstallationFailedError(tool, str(e)) from e


def _move_into_bin(tool: str, source: Path, name: str) -> None:
    require(
        run_privileged(["mv", str(source), str(BIN_DIR / name)]),
        tool,
        f"Failed to install {name} to {BIN_DIR}",
    )


# AWS CLI


def probe_aws_cli() -> ProbeResult:
    return probe_command("aws", ["--version"])


def accepts_aws_cli(probe: ProbeResult) -> bool:
    """Only AWS CLI v2 is acceptable; v1 gets upgraded in place."""
    return probe.present and bool(probe.version) and probe.version.split(".")[0] == "2"


def install_aws_cli(platform: PlatformDescriptor, probe: ProbeResult) -> None:
    """Download the AWS CLI v2 bundle and run its installer."""
    with scoped_workdir("awscli") as workdir:
        if platform.is_macos:
            pkg = _download(AWS_CLI_TOOL, AWS_CLI_MACOS_URL, workdir / "AWSCLIV2.pkg")
            require(
                run_privileged(["installer", "-pkg", str(pkg), "-target", "/"]),
                AWS_CLI_TOOL,
                "Failed to install AWS CLI",
            )
            return

        url = AWS_CLI_LINUX_URL.format(arch=platform.aws_cli_arch)
        bundle = _download(AWS_CLI_TOOL, url, workdir / "awscliv2.zip")
        # unzip keeps the executable bits the bundled installer needs
        require(
            run_command(["unzip", "-q", str(bundle), "-d", str(workdir)]),
            AWS_CLI_TOOL,
            "Failed to unzip AWS CLI package",
        )

        installer = str(workdir / "aws" / "install")
        if probe.present:
            logger.info("Upgrading AWS CLI %s to v2...", probe.version)
            cmd = [installer, "--bin-dir", str(BIN_DIR), "--install-dir", AWS_CLI_INSTALL_DIR, "--update"]
            message = "Failed to update AWS CLI"
        else:
            cmd = [installer]
            message = "Failed to install AWS CLI"
        require(run_privileged(cmd), AWS_CLI_TOOL, message)


# eksctl


def probe_eksctl() -> ProbeResult:
    return probe_command("eksctl", ["version"])


def install_eksctl(platform: PlatformDescriptor, probe: ProbeResult) -> None:
    """Fetch the latest eksctl release for this platform and move it into place."""
    asset = platform.eksctl_platform
    logger.info("Downloading eksctl for %s...", asset)

    with scoped_workdir("eksctl") as workdir:
        archive = _download(EKSCTL_TOOL, EKSCTL_URL.format(platform=asset), workdir / f"eksctl_{asset}.tar.gz")
        try:
            extract_tarball(archive, workdir)
        except DownloadError as e:
            raise InstallationFailedError(EKSCTL_TOOL, str(e)) from e
        _move_into_bin(EKSCTL_TOOL, workdir / "eksctl", "eksctl")


# kubectl


def parse_kubectl_version(output: str) -> str | None:
    """Read clientVersion.gitVersion from `kubectl version --client -o json`."""
    try:
        git_version = json.loads(output)["clientVersion"]["gitVersion"]
    except (ValueError, KeyError, TypeError):
        return version_from_output(output)
    return git_version.lstrip("v")


def probe_kubectl() -> ProbeResult:
    return probe_command("kubectl", ["version", "--client", "-o", "json"], parse=parse_kubectl_version)


def install_kubectl(platform: PlatformDescriptor, probe: ProbeResult) -> None:
    """Resolve the latest stable kubectl and install the matching binary."""
    try:
        version = fetch_text(KUBECTL_STABLE_URL)
    except DownloadError as e:
        raise InstallationFailedError(KUBECTL_TOOL, str(e)) from e

    os_name = platform.kubernetes_os
    logger.info("Downloading kubectl %s for %s/%s...", version, os_name, platform.arch)

    with scoped_workdir("kubectl") as workdir:
        url = KUBECTL_URL.format(version=version, os=os_name, arch=platform.arch)
        binary = _download(KUBECTL_TOOL, url, workdir / "kubectl")
        try:
            binary.chmod(0o755)
        except OSError as e:
            raise InstallationFailedError(KUBECTL_TOOL, f"Could not make {binary} executable: {e.strerror or e}") from e
        _move_into_bin(KUBECTL_TOOL, binary, "kubectl")


# Docker


def probe_docker() -> ProbeResult:
    return probe_command("docker", ["--version"])


def install_docker(platform: PlatformDescriptor, probe: ProbeResult, strict: bool = False) -> str | None:
    """Install Docker through the platform's package manager.

    On macOS Docker Desktop is left to the operator; that defers the step
    unless running strict.
    """
    outcome = package_manager_for(platform).install_docker()
    if outcome == DEFERRED and strict:
        raise InstallationFailedError(DOCKER_TOOL, "Docker Desktop must be installed before continuing")
    return outcome


# Node.js via nvm


def nvm_dir() -> Path:
    return Path(os.environ.get("NVM_DIR") or Path.home() / ".nvm")


def _nvm_script(directory: Path, command: str) -> str:
    return f'export NVM_DIR="{directory}"; . "$NVM_DIR/nvm.sh" && {command}'


def probe_node() -> ProbeResult:
    """Node.js counts as present only when npm is available too."""
    if not check_command_exists("npm"):
        return ProbeResult.missing()
    return probe_command("node", ["-v"])


def install_nvm(directory: Path) -> None:
    """Run the nvm install script unless nvm's home directory already exists."""
    if directory.is_dir():
        logger.info("nvm is already installed")
        return

    logger.info("Installing nvm...")
    with scoped_workdir("nvm") as workdir:
        script = _download(NODE_TOOL, NVM_INSTALL_URL, workdir / "install.sh")
        require(run_command(["bash", str(script)], capture_output=False), NODE_TOOL, "Failed to install nvm")


def load_nvm(directory: Path) -> bool:
    """Install and select the LTS Node.js release, then put it on this process's PATH.

    Returns False when nvm itself cannot be loaded.
    """
    if not run_bash(_nvm_script(directory, "command -v nvm")).success:
        return False

    logger.info("Installing LTS version of Node.js...")
    require(
        run_bash(_nvm_script(directory, "nvm install --lts && nvm use --lts"), capture_output=False),
        NODE_TOOL,
        "Failed to install Node.js LTS version",
    )

    which = run_bash(_nvm_script(directory, "nvm which 'lts/*'"))
    require(which, NODE_TOOL, "Failed to locate the Node.js LTS binary")

    node_bin = Path(which.output.splitlines()[-1]).parent
    os.environ["NVM_DIR"] = str(directory)
    os.environ["PATH"] = f"{node_bin}{os.pathsep}{os.environ.get('PATH', '')}"
    logger.debug("Added %s to PATH", node_bin)
    return True


def install_node(platform: PlatformDescriptor, probe: ProbeResult, strict: bool = False) -> None:
    directory = nvm_dir()
    install_nvm(directory)

    if not load_nvm(directory):
        logger.error("nvm installation failed or nvm command not available")
        if strict:
            raise InstallationFailedError(NODE_TOOL, "nvm could not be loaded")
        # The guard's verification fails the run if no system runtime exists either
        logger.info("Attempting to continue with system Node.js if available")


# AWS CDK


def probe_cdk() -> ProbeResult:
    return probe_command("cdk", ["--version"])


def install_cdk(platform: PlatformDescriptor, probe: ProbeResult) -> None:
    """Install the pinned CDK CLI globally, replacing any other version."""
    logger.info("Installing AWS CDK version %s...", CDK_VERSION)
    require(
        run_command(["npm", "install", "-g", f"{CDK_PACKAGE_NAME}@{CDK_VERSION}"], capture_output=False),
        CDK_TOOL,
        f"Failed to install AWS CDK version {CDK_VERSION}",
    )


def build_tool_requirements(strict: bool = False) -> list[ToolRequirement]:
    """The fixed set of tools, in installation order."""
    return [
        ToolRequirement(AWS_CLI_TOOL, probe_aws_cli, install_aws_cli, accepts=accepts_aws_cli),
        ToolRequirement(EKSCTL_TOOL, probe_eksctl, install_eksctl),
        ToolRequirement(KUBECTL_TOOL, probe_kubectl, install_kubectl),
        ToolRequirement(DOCKER_TOOL, probe_docker, partial(install_docker, strict=strict)),
        ToolRequirement(NODE_TOOL, probe_node, partial(install_node, strict=strict)),
        ToolRequirement(CDK_TOOL, probe_cdk, install_cdk, accepts=pinned(CDK_VERSION)),
    ]
