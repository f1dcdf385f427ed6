"""Tests for host platform detection."""

import logging

import pytest

from auto_deploy.lib.host import (
    AMD64,
    APT,
    ARM64,
    BREW,
    LINUX_AMAZON,
    LINUX_DEBIAN,
    LINUX_RHEL_LIKE,
    MACOS,
    YUM,
    PlatformDescriptor,
    UnsupportedPlatformError,
    detect_platform,
    normalize_arch,
    parse_os_release,
)


def write_os_release(tmp_path, content):
    path = tmp_path / "os-release"
    path.write_text(content)
    return path


class TestDetectPlatform:
    """Tests for detect_platform."""

    @pytest.mark.parametrize(
        "os_release, family, manager",
        [
            ('ID=ubuntu\nVERSION_CODENAME=jammy\n', LINUX_DEBIAN, APT),
            ("ID=debian\n", LINUX_DEBIAN, APT),
            ('ID="amzn"\nVERSION_ID="2023"\n', LINUX_AMAZON, YUM),
            ('ID="centos"\n', LINUX_RHEL_LIKE, YUM),
            ('ID="rhel"\n', LINUX_RHEL_LIKE, YUM),
            ("ID=fedora\n", LINUX_RHEL_LIKE, YUM),
            ('ID="rocky"\nID_LIKE="rhel centos fedora"\n', LINUX_RHEL_LIKE, YUM),
            ("ID=linuxmint\nID_LIKE=ubuntu\n", LINUX_DEBIAN, APT),
        ],
    )
    def test_supported_linux_distributions(self, tmp_path, os_release, family, manager):
        """Test each known distribution maps onto its package manager."""
        path = write_os_release(tmp_path, os_release)

        platform = detect_platform("Linux", "x86_64", os_release_path=path)

        assert platform.os_family == family
        assert platform.package_manager == manager
        assert platform.package_manager in {APT, YUM, BREW}

    def test_darwin_uses_brew(self, tmp_path):
        """Test macOS is detected from the Darwin kernel."""
        platform = detect_platform("Darwin", "arm64", os_release_path=tmp_path / "missing")

        assert platform.os_family == MACOS
        assert platform.package_manager == BREW
        assert platform.arch == ARM64

    def test_unknown_distribution_falls_back_to_apt(self, tmp_path, caplog):
        """Test an unrecognized distribution warns and defaults to apt."""
        path = write_os_release(tmp_path, "ID=gentoo\n")

        with caplog.at_level(logging.WARNING):
            platform = detect_platform("Linux", "x86_64", os_release_path=path)

        assert platform.os_family == LINUX_DEBIAN
        assert platform.package_manager == APT
        assert "Unsupported Linux distribution: gentoo" in caplog.text

    def test_missing_os_release_falls_back_to_apt(self, tmp_path, caplog):
        """Test a missing os-release file warns and defaults to apt."""
        with caplog.at_level(logging.WARNING):
            platform = detect_platform("Linux", "x86_64", os_release_path=tmp_path / "missing")

        assert platform.package_manager == APT
        assert "Could not determine Linux distribution" in caplog.text

    @pytest.mark.parametrize("kernel", ["Windows", "FreeBSD", "SunOS", ""])
    def test_unsupported_kernel_raises(self, tmp_path, kernel):
        """Test kernels other than Linux and Darwin are rejected."""
        with pytest.raises(UnsupportedPlatformError):
            detect_platform(kernel, "x86_64", os_release_path=tmp_path / "missing")

    def test_release_details_recorded(self, tmp_path):
        """Test distro id, version and codename are kept on the descriptor."""
        path = write_os_release(
            tmp_path,
            'NAME="Ubuntu"\nID=ubuntu\nVERSION_ID="22.04"\nVERSION_CODENAME=jammy\n',
        )

        platform = detect_platform("Linux", "aarch64", os_release_path=path)

        assert platform.distro_id == "ubuntu"
        assert platform.version_id == "22.04"
        assert platform.version_codename == "jammy"
        assert platform.arch == ARM64

    def test_descriptor_is_immutable(self, debian):
        """Test the descriptor cannot be changed after detection."""
        with pytest.raises(AttributeError):
            debian.arch = ARM64


class TestNormalizeArch:
    """Tests for architecture normalization."""

    def test_x86_64_maps_to_amd64(self):
        assert normalize_arch("x86_64") == AMD64

    @pytest.mark.parametrize("machine", ["arm64", "aarch64"])
    def test_arm_names_map_to_arm64(self, machine):
        assert normalize_arch(machine) == ARM64

    def test_amd64_preserved(self):
        assert normalize_arch("amd64") == AMD64

    def test_unrecognized_defaults_to_amd64(self, caplog):
        """Test an unknown machine string defaults to amd64 with a warning."""
        with caplog.at_level(logging.WARNING):
            assert normalize_arch("riscv64") == AMD64

        assert "Unrecognized architecture: riscv64" in caplog.text


class TestPlatformDescriptor:
    """Tests for the derived download names."""

    def test_linux_amd64_names(self, debian):
        assert debian.aws_cli_arch == "x86_64"
        assert debian.kubernetes_os == "linux"
        assert debian.eksctl_platform == "Linux_amd64"
        assert debian.is_linux

    def test_macos_arm64_names(self, macos):
        assert macos.aws_cli_arch == "aarch64"
        assert macos.kubernetes_os == "darwin"
        assert macos.eksctl_platform == "Darwin_arm64"
        assert macos.is_macos

    def test_describe(self, debian):
        assert debian.describe() == "linux-debian (ubuntu 22.04), apt, amd64"

    def test_describe_without_distro(self):
        platform = PlatformDescriptor(os_family=MACOS, package_manager=BREW, arch=AMD64, kernel="Darwin")
        assert platform.describe() == "macos, brew, amd64"


class TestParseOsRelease:
    """Tests for the os-release parser."""

    def test_quotes_and_comments(self, tmp_path):
        path = write_os_release(
            tmp_path,
            "# comment\n\nNAME='Amazon Linux'\nID=\"amzn\"\nVERSION_ID=2\nBROKEN LINE\n",
        )

        values = parse_os_release(path)

        assert values == {"NAME": "Amazon Linux", "ID": "amzn", "VERSION_ID": "2"}
