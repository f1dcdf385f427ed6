"""Pinned versions, vendor download locations and install paths."""

from pathlib import Path

# AWS CDK CLI version the project is built against
CDK_VERSION = "2.177.0"
CDK_PACKAGE_NAME = "aws-cdk"

NVM_VERSION = "v0.40.1"
NVM_INSTALL_URL = f"https://raw.githubusercontent.com/nvm-sh/nvm/{NVM_VERSION}/install.sh"

AWS_CLI_LINUX_URL = "https://awscli.amazonaws.com/awscli-exe-linux-{arch}.zip"
AWS_CLI_MACOS_URL = "https://awscli.amazonaws.com/AWSCLIV2.pkg"
AWS_CLI_INSTALL_DIR = "/usr/local/aws-cli"

EKSCTL_URL = "https://github.com/eksctl-io/eksctl/releases/latest/download/eksctl_{platform}.tar.gz"

KUBECTL_STABLE_URL = "https://dl.k8s.io/release/stable.txt"
KUBECTL_URL = "https://dl.k8s.io/release/{version}/bin/{os}/{arch}/kubectl"

DOCKER_GPG_URL = "https://download.docker.com/linux/{distro}/gpg"
DOCKER_APT_REPO = "https://download.docker.com/linux/{distro}"
DOCKER_YUM_REPO = "https://download.docker.com/linux/centos/docker-ce.repo"
DOCKER_DESKTOP_URL = "https://www.docker.com/products/docker-desktop"
DOCKER_KEYRING_DIR = "/etc/apt/keyrings"
DOCKER_KEYRING = "/etc/apt/keyrings/docker.gpg"
DOCKER_APT_SOURCE = "/etc/apt/sources.list.d/docker.list"
DOCKER_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]
DOCKER_LEGACY_APT_PACKAGES = ["docker", "docker-engine", "docker.io", "containerd", "runc"]
DOCKER_LEGACY_YUM_PACKAGES = [
    "docker",
    "docker-client",
    "docker-client-latest",
    "docker-common",
    "docker-latest",
    "docker-latest-logrotate",
    "docker-logrotate",
    "docker-engine",
]

BIN_DIR = Path("/usr/local/bin")
OS_RELEASE_PATH = Path("/etc/os-release")

DEFAULT_ENV_FILE = Path("env.sh")
DEFAULT_PROJECT_CONFIG = "env.ts"
PROJECT_NAME_CONSTANT = "PROJECT_NAME"
