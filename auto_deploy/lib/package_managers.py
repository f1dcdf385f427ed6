"""One install procedure per package-manager family.

The family is picked once from the platform descriptor; steps call the
methods instead of branching on the OS themselves.
"""

import logging
import os

from .commands import CommandResult, check_command_exists, run_command, run_privileged
from .constants import (
    DOCKER_APT_REPO,
    DOCKER_APT_SOURCE,
    DOCKER_DESKTOP_URL,
    DOCKER_GPG_URL,
    DOCKER_KEYRING,
    DOCKER_KEYRING_DIR,
    DOCKER_LEGACY_APT_PACKAGES,
    DOCKER_LEGACY_YUM_PACKAGES,
    DOCKER_PACKAGES,
    DOCKER_YUM_REPO,
)
from .download import DownloadError, download_file, scoped_workdir
from .host import APT, BREW, LINUX_AMAZON, YUM, PlatformDescriptor
from .tools import DEFERRED, InstallationFailedError

logger = logging.getLogger(__name__)

BOOTSTRAP_TOOL = "package manager"
DOCKER_TOOL = "Docker"


def require(result: CommandResult, tool: str, message: str) -> CommandResult:
    """Turn a failed command into the tool's installation error."""
    if not result.success:
        raise InstallationFailedError(tool, message, returncode=result.returncode)
    return result


class PackageManager:
    """Base class for package-manager specific procedures."""

    name = ""
    prerequisites: list[str] = []

    def __init__(self, platform: PlatformDescriptor):
        self.platform = platform

    def refresh(self) -> CommandResult:
        raise NotImplementedError

    def install(self, packages: list[str]) -> CommandResult:
        raise NotImplementedError

    def bootstrap(self) -> None:
        """Refresh the package index and install prerequisite utilities."""
        logger.info("Installing basic dependencies...")
        require(self.refresh(), BOOTSTRAP_TOOL, "Failed to update package lists")
        require(self.install(self.prerequisites), BOOTSTRAP_TOOL, "Failed to install dependencies")
        logger.info("Basic dependencies installed successfully")

    def install_docker(self) -> str | None:
        raise NotImplementedError

    def add_docker_group(self) -> None:
        """Add the invoking user to the docker group."""
        user = os.environ.get("SUDO_USER") or os.environ.get("USER")
        if not user:
            logger.warning("Could not determine the current user, skipping docker group setup")
            return

        require(
            run_privileged(["usermod", "-aG", "docker", user]),
            DOCKER_TOOL,
            f"Failed to add {user} to the docker group",
        )
        logger.info("Added %s to the docker group", user)
        logger.warning("You may need to log out and back in for group changes to take effect")


class AptPackageManager(PackageManager):
    name = APT
    prerequisites = ["unzip", "curl", "ca-certificates", "gnupg", "lsb-release"]

    def refresh(self) -> CommandResult:
        return run_privileged(["apt-get", "update"])

    def install(self, packages: list[str]) -> CommandResult:
        return run_privileged(["apt-get", "install", "-y", *packages])

    def docker_distro(self) -> str:
        return "debian" if self.platform.distro_id == "debian" else "ubuntu"

    def install_docker(self) -> str | None:
        logger.info("Installing Docker using apt...")
        distro = self.docker_distro()

        # Old versions may not be installed at all
        run_privileged(["apt-get", "remove", "-y", *DOCKER_LEGACY_APT_PACKAGES])

        require(
            run_privileged(["install", "-m", "0755", "-d", DOCKER_KEYRING_DIR]),
            DOCKER_TOOL,
            "Failed to create the apt keyring directory",
        )
        with scoped_workdir("docker") as workdir:
            key_path = workdir / "docker.asc"
            try:
                download_file(DOCKER_GPG_URL.format(distro=distro), key_path)
            except DownloadError as e:
                raise InstallationFailedError(DOCKER_TOOL, str(e)) from e
            require(
                run_privileged(["gpg", "--batch", "--yes", "--dearmor", "-o", DOCKER_KEYRING, str(key_path)]),
                DOCKER_TOOL,
                "Failed to install the Docker repository key",
            )
        run_privileged(["chmod", "a+r", DOCKER_KEYRING])

        codename = self.platform.version_codename
        if not codename:
            raise InstallationFailedError(DOCKER_TOOL, "VERSION_CODENAME missing from /etc/os-release")
        source = (
            f"deb [arch={self.platform.arch} signed-by={DOCKER_KEYRING}] "
            f"{DOCKER_APT_REPO.format(distro=distro)} {codename} stable\n"
        )
        require(
            run_privileged(["tee", DOCKER_APT_SOURCE], input=source),
            DOCKER_TOOL,
            "Failed to add the Docker apt repository",
        )

        require(self.refresh(), DOCKER_TOOL, "Failed to update package lists")
        require(self.install(DOCKER_PACKAGES), DOCKER_TOOL, "Failed to install Docker packages")
        self.add_docker_group()
        return None


class YumPackageManager(PackageManager):
    name = YUM

    @property
    def prerequisites(self) -> list[str]:
        if self.platform.os_family == LINUX_AMAZON:
            return ["unzip", "curl", "wget", "git", "tar", "gzip"]
        return ["unzip", "curl", "ca-certificates", "gnupg2"]

    def refresh(self) -> CommandResult:
        return run_privileged(["yum", "makecache", "-y"])

    def install(self, packages: list[str]) -> CommandResult:
        return run_privileged(["yum", "install", "-y", *packages])

    def install_docker(self) -> str | None:
        logger.info("Installing Docker using yum...")

        if self.platform.os_family == LINUX_AMAZON:
            if self.platform.version_id == "2":
                result = run_privileged(["amazon-linux-extras", "install", "-y", "docker"])
            else:
                result = self.install(["docker"])
            require(result, DOCKER_TOOL, "Failed to install Docker")
        else:
            run_privileged(["yum", "remove", "-y", *DOCKER_LEGACY_YUM_PACKAGES])
            require(self.install(["yum-utils"]), DOCKER_TOOL, "Failed to install yum-utils")
            require(
                run_privileged(["yum-config-manager", "--add-repo", DOCKER_YUM_REPO]),
                DOCKER_TOOL,
                "Failed to add the Docker yum repository",
            )
            require(self.install(DOCKER_PACKAGES), DOCKER_TOOL, "Failed to install Docker packages")

        require(run_privileged(["systemctl", "start", "docker"]), DOCKER_TOOL, "Failed to start Docker")
        require(run_privileged(["systemctl", "enable", "docker"]), DOCKER_TOOL, "Failed to enable Docker")
        self.add_docker_group()
        return None


class BrewPackageManager(PackageManager):
    name = BREW
    prerequisites = ["curl", "unzip"]

    def refresh(self) -> CommandResult:
        if not check_command_exists("brew"):
            raise InstallationFailedError(BOOTSTRAP_TOOL, "Homebrew not found. Please install Homebrew first.")
        return run_command(["brew", "update"], capture_output=False)

    def install(self, packages: list[str]) -> CommandResult:
        return run_command(["brew", "install", *packages], capture_output=False)

    def install_docker(self) -> str | None:
        logger.warning("Docker Desktop for Mac should be installed manually")
        logger.warning("Please download and install from %s", DOCKER_DESKTOP_URL)
        return DEFERRED


PACKAGE_MANAGERS: dict[str, type[PackageManager]] = {
    APT: AptPackageManager,
    YUM: YumPackageManager,
    BREW: BrewPackageManager,
}


def package_manager_for(platform: PlatformDescriptor) -> PackageManager:
    """Select the package-manager procedures for this platform."""
    return PACKAGE_MANAGERS[platform.package_manager](platform)
