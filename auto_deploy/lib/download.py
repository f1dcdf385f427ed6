"""Artifact downloads into scoped temporary directories."""

import logging
import os
import shutil
import tarfile
import tempfile
import urllib.error
import urllib.request
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


class DownloadError(Exception):
    """Raised when a file download fails."""

    pass


def download_file(url: str, file_path: Path) -> Path:
    """
    Download a file from a URL.

    Args:
        url: URL to download from
        file_path: Path to save the file to

    Returns:
        The path to the downloaded file

    Raises:
        DownloadError: If the download fails or the file cannot be written
    """
    logger.debug("Downloading %s", url)
    try:
        with urllib.request.urlopen(url) as response:
            with open(file_path, "wb") as f:
                shutil.copyfileobj(response, f)
    except urllib.error.HTTPError as e:
        # HTTPError subclasses URLError, so it has to be caught first
        _cleanup_partial_download(file_path)
        raise DownloadError(f"HTTP error downloading {url}: {e.code} {e.reason}") from e
    except urllib.error.URLError as e:
        _cleanup_partial_download(file_path)
        raise DownloadError(f"Failed to download {url}: {e}") from e
    except OSError as e:
        _cleanup_partial_download(file_path)
        raise DownloadError(f"Failed to save {url} to {file_path}: {e.strerror or e}") from e

    return file_path


def fetch_text(url: str) -> str:
    """Fetch a small text document, such as a release pointer."""
    try:
        with urllib.request.urlopen(url) as response:
            return response.read().decode("utf-8").strip()
    except (urllib.error.URLError, UnicodeDecodeError) as e:
        raise DownloadError(f"Failed to fetch {url}: {e}") from e


def _cleanup_partial_download(file_path: Path) -> None:
    """Remove a partially downloaded file if it exists."""
    try:
        if os.path.exists(file_path):
            os.unlink(file_path)
    except OSError:
        pass  # Best effort cleanup


@contextmanager
def scoped_workdir(tool: str) -> Iterator[Path]:
    """Yield a temporary directory that is removed however the block exits."""
    try:
        workdir = Path(tempfile.mkdtemp(prefix=f"auto-deploy-{tool}-"))
    except OSError as e:
        raise DownloadError(f"Could not create a temporary directory for {tool}: {e.strerror or e}") from e
    try:
        yield workdir
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
        logger.debug("Removed temporary directory %s", workdir)


def _is_within_directory(directory: Path, target: Path) -> bool:
    abs_directory = os.path.abspath(directory)
    abs_target = os.path.abspath(target)
    return os.path.commonpath([abs_directory, abs_target]) == abs_directory


def extract_tarball(archive: Path, destination: Path) -> None:
    """Extract a .tar.gz archive, refusing members that escape the destination."""
    try:
        with tarfile.open(archive, "r:*") as tar:
            for member in tar.getmembers():
                if not _is_within_directory(destination, destination / member.name):
                    raise DownloadError(f"Attempted path traversal in {archive.name}: {member.name}")
            if hasattr(tarfile, "data_filter"):
                tar.extractall(destination, filter="data")
            else:
                tar.extractall(destination)
    except (tarfile.TarError, OSError) as e:
        raise DownloadError(f"Failed to extract {archive.name}: {e}") from e
