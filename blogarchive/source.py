"""Retrieval of blog export files for blogarchive."""

import logging
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import quote, unquote, urljoin

import requests
from bs4 import BeautifulSoup

from .models import Category

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
DEFAULT_BLOGS_PATH = Path(".")

CATEGORY_FILES = [category.filename for category in Category]

# Folder TumblThree keeps its own index files in
INDEX_DIR = "Index"


class ArchiveSource(Protocol):
    """Anything that can list blogs and fetch their export files."""

    def fetch(self, blog: str, filename: str) -> Optional[str]: ...

    def list_blogs(self) -> list[str]: ...


class TransportError(Exception):
    """Raised when a file cannot be retrieved for a reason other than being absent."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Error getting blog file {path}: {reason}")


class HttpArchiveSource:
    """Export files served over HTTP under /blogs/{blog}/{filename}."""

    def __init__(self, base_url: str, timeout: int = DEFAULT_TIMEOUT):
        """Initialize the source.

        Args:
            base_url: Root URL of the server hosting the blogs directory
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout

    def file_url(self, blog: str, filename: str) -> str:
        return urljoin(self.base_url, f"blogs/{quote(blog)}/{quote(filename)}")

    def fetch(self, blog: str, filename: str) -> Optional[str]:
        """Fetch one export file.

        Args:
            blog: Blog name
            filename: Category file name, e.g. images.txt

        Returns:
            The file content, or None if the server reports it as not found

        Raises:
            TransportError: If the request fails or returns any other error status
        """
        url = self.file_url(blog, filename)
        try:
            response = requests.get(url, timeout=self.timeout)
            if response.status_code == 404:
                logger.debug("No %s for blog %s", filename, blog)
                return None
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(url, str(e)) from e

        return response.content.decode("utf-8", errors="replace")

    def list_blogs(self) -> list[str]:
        """List the blogs in the server's directory index of /blogs/.

        Raises:
            TransportError: If the index cannot be fetched
        """
        url = urljoin(self.base_url, "blogs/")
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(url, str(e)) from e

        soup = BeautifulSoup(response.content, "html.parser")

        blogs = []
        for link in soup.find_all("a", href=True):
            href = link["href"].strip()
            # Directories are listed with a trailing slash
            if not href.endswith("/") or href.startswith(("../", "/", "?")):
                continue
            name = unquote(href.rstrip("/"))
            if name and name != INDEX_DIR and name not in blogs:
                blogs.append(name)

        return blogs


class DirectoryArchiveSource:
    """Export files in a local TumblThree blogs directory."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_BLOGS_PATH

    def fetch(self, blog: str, filename: str) -> Optional[str]:
        """Read one export file.

        Returns:
            The file content, or None if the file does not exist

        Raises:
            TransportError: If the file exists but cannot be read
        """
        file_path = self.path / blog / filename
        if not file_path.is_file():
            logger.debug("No %s for blog %s", filename, blog)
            return None

        try:
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TransportError(str(file_path), str(e)) from e

    def list_blogs(self) -> list[str]:
        """List subdirectories holding at least one category file.

        Raises:
            TransportError: If the blogs directory cannot be read
        """
        try:
            entries = sorted(self.path.iterdir())
        except OSError as e:
            raise TransportError(str(self.path), str(e)) from e

        return [
            entry.name
            for entry in entries
            if entry.is_dir()
            and entry.name != INDEX_DIR
            and any((entry / filename).is_file() for filename in CATEGORY_FILES)
        ]
