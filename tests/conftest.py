"""Pytest fixtures for the environment preparation tests."""

import logging

import pytest

from auto_deploy.lib.commands import CommandResult
from auto_deploy.lib.host import PlatformDescriptor


@pytest.fixture(autouse=True)
def clean_env_vars(monkeypatch):
    """Keep the host's configuration out of every test."""
    for name in ("CDK_DIR", "PROJECT_NAME", "STRICT_MODE", "ALLOW_ROOT", "SUDO_USER"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("USER", "tester")


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers configure_logging attached to CliRunner's streams."""
    yield
    logger = logging.getLogger("auto_deploy")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def debian():
    """Ubuntu 22.04 on x86_64."""
    return PlatformDescriptor(
        os_family="linux-debian",
        package_manager="apt",
        arch="amd64",
        kernel="Linux",
        distro_id="ubuntu",
        version_id="22.04",
        version_codename="jammy",
    )


@pytest.fixture
def amazon_linux():
    """Amazon Linux 2023 on Graviton."""
    return PlatformDescriptor(
        os_family="linux-amazon",
        package_manager="yum",
        arch="arm64",
        kernel="Linux",
        distro_id="amzn",
        version_id="2023",
    )


@pytest.fixture
def macos():
    """macOS on Apple silicon."""
    return PlatformDescriptor(
        os_family="macos",
        package_manager="brew",
        arch="arm64",
        kernel="Darwin",
    )


@pytest.fixture
def ok():
    """A successful command result."""
    return CommandResult(returncode=0, stdout="", stderr="")


@pytest.fixture
def cdk_project(tmp_path):
    """A minimal CDK project directory with an env.ts."""
    project = tmp_path / "cdk"
    project.mkdir()
    (project / "package.json").write_text('{"name": "infra"}\n')
    (project / "env.ts").write_text(
        "export const REGION = 'us-east-1'\n"
        "export const PROJECT_NAME = 'old'\n"
        "export const STAGE = 'dev'\n"
    )
    return project
