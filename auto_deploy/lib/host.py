"""Host platform detection.

Works out the operating system family, the package manager that goes with
it, and the CPU architecture. The result is computed once per run and
handed to every installer step.
"""

import logging
import platform
from dataclasses import dataclass
from pathlib import Path

from .constants import OS_RELEASE_PATH

logger = logging.getLogger(__name__)

LINUX_DEBIAN = "linux-debian"
LINUX_RHEL_LIKE = "linux-rhel-like"
LINUX_AMAZON = "linux-amazon"
MACOS = "macos"

APT = "apt"
YUM = "yum"
BREW = "brew"

AMD64 = "amd64"
ARM64 = "arm64"

DEBIAN_IDS = {"ubuntu", "debian"}
RHEL_IDS = {"centos", "rhel", "fedora", "rocky", "almalinux"}
AMAZON_IDS = {"amzn"}

# Raw `uname -m` values mapped onto the names vendor download URLs use
ARCH_ALIASES = {
    "x86_64": AMD64,
    "amd64": AMD64,
    "arm64": ARM64,
    "aarch64": ARM64,
}


class UnsupportedPlatformError(Exception):
    """The kernel is neither Linux nor Darwin."""

    pass


@dataclass(frozen=True)
class PlatformDescriptor:
    """Immutable description of the host for the duration of a run."""

    os_family: str
    package_manager: str
    arch: str
    kernel: str
    distro_id: str = ""
    version_id: str = ""
    version_codename: str = ""

    @property
    def is_linux(self) -> bool:
        return self.os_family != MACOS

    @property
    def is_macos(self) -> bool:
        return self.os_family == MACOS

    @property
    def aws_cli_arch(self) -> str:
        """Architecture suffix used by the AWS CLI v2 Linux bundles."""
        return "aarch64" if self.arch == ARM64 else "x86_64"

    @property
    def kubernetes_os(self) -> str:
        return "darwin" if self.is_macos else "linux"

    @property
    def eksctl_platform(self) -> str:
        """Release asset suffix, e.g. Linux_amd64 or Darwin_arm64."""
        return f"{self.kernel}_{self.arch}"

    def describe(self) -> str:
        release = " ".join(part for part in (self.distro_id, self.version_id) if part)
        distro = f" ({release})" if release else ""
        return f"{self.os_family}{distro}, {self.package_manager}, {self.arch}"


def parse_os_release(path: Path = OS_RELEASE_PATH) -> dict[str, str]:
    """Parse an os-release file into a dict of KEY -> unquoted value."""
    values = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        values[key.strip()] = value
    return values


def normalize_arch(machine: str) -> str:
    """Map a raw machine string onto amd64/arm64, defaulting to amd64."""
    arch = ARCH_ALIASES.get(machine.strip().lower())
    if arch is None:
        logger.warning("Unrecognized architecture: %s, defaulting to %s", machine, AMD64)
        return AMD64
    return arch


def _linux_family(os_release: dict[str, str]) -> tuple[str, str] | None:
    distro_id = os_release.get("ID", "").lower()
    id_like = set(os_release.get("ID_LIKE", "").lower().split())

    if distro_id in AMAZON_IDS:
        return LINUX_AMAZON, YUM
    if distro_id in DEBIAN_IDS or "debian" in id_like or "ubuntu" in id_like:
        return LINUX_DEBIAN, APT
    if distro_id in RHEL_IDS or id_like & {"rhel", "fedora", "centos"}:
        return LINUX_RHEL_LIKE, YUM
    return None


def detect_platform(
    kernel: str | None = None,
    machine: str | None = None,
    os_release_path: Path = OS_RELEASE_PATH,
) -> PlatformDescriptor:
    """
    Detect the host platform.

    Args:
        kernel: Kernel name as reported by ``uname -s``; defaults to the host's
        machine: Machine string as reported by ``uname -m``; defaults to the host's
        os_release_path: os-release file consulted on Linux

    Returns:
        The platform descriptor for this run.

    Raises:
        UnsupportedPlatformError: If the kernel is neither Linux nor Darwin.
    """
    kernel = kernel if kernel is not None else platform.system()
    machine = machine if machine is not None else platform.machine()
    logger.info("Detecting operating system...")

    if kernel == "Darwin":
        logger.info("macOS detected")
        return PlatformDescriptor(
            os_family=MACOS,
            package_manager=BREW,
            arch=normalize_arch(machine),
            kernel=kernel,
        )

    if kernel != "Linux":
        raise UnsupportedPlatformError(f"Unsupported operating system: {kernel}")

    os_release: dict[str, str] = {}
    if os_release_path.exists():
        os_release = parse_os_release(os_release_path)
        family = _linux_family(os_release)
        if family is None:
            logger.warning("Unsupported Linux distribution: %s", os_release.get("ID", "unknown"))
            logger.warning("Attempting to proceed with apt-get")
            family = (LINUX_DEBIAN, APT)
        else:
            logger.info("%s Linux detected", os_release.get("NAME", os_release.get("ID")))
    else:
        logger.warning("Could not determine Linux distribution")
        logger.warning("Attempting to proceed with apt-get")
        family = (LINUX_DEBIAN, APT)

    os_family, package_manager = family
    return PlatformDescriptor(
        os_family=os_family,
        package_manager=package_manager,
        arch=normalize_arch(machine),
        kernel=kernel,
        distro_id=os_release.get("ID", ""),
        version_id=os_release.get("VERSION_ID", ""),
        version_codename=os_release.get("VERSION_CODENAME", ""),
    )
