"""Tests for export file retrieval."""

import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import requests

from blogarchive.source import DirectoryArchiveSource, HttpArchiveSource, TransportError

# nginx autoindex page for /blogs/
SAMPLE_INDEX_PAGE = """<html>
<head><title>Index of /blogs/</title></head>
<body>
<h1>Index of /blogs/</h1><hr><pre><a href="../">../</a>
<a href="Index/">Index/</a>                                             01-Jan-2023 10:00       -
<a href="catblog/">catblog/</a>                                         01-Jan-2023 10:00       -
<a href="my%20blog/">my blog/</a>                                       01-Jan-2023 10:00       -
<a href="notes.txt">notes.txt</a>                                       01-Jan-2023 10:00     120
</pre><hr></body>
</html>
"""


def make_response(status_code=200, content=b""):
    response = Mock()
    response.status_code = status_code
    response.content = content
    if status_code >= 400:
        response.raise_for_status = Mock(
            side_effect=requests.HTTPError(f"{status_code} Error")
        )
    else:
        response.raise_for_status = Mock()
    return response


@pytest.fixture
def blogs_dir():
    """Create a temporary blogs directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "catblog").mkdir()
        (root / "catblog" / "images.txt").write_text("Post id: 1\n", encoding="utf-8")
        (root / "dogblog").mkdir()
        (root / "dogblog" / "answers.txt").write_text("[]", encoding="utf-8")
        (root / "empty").mkdir()
        (root / "Index").mkdir()
        (root / "Index" / "texts.txt").write_text("", encoding="utf-8")
        (root / "stray.txt").write_text("", encoding="utf-8")
        yield root


class TestHttpArchiveSource:
    """Tests for HttpArchiveSource."""

    def test_file_url(self):
        """Test the URL of a blog file."""
        source = HttpArchiveSource("http://localhost:8080")

        assert source.file_url("catblog", "images.txt") == "http://localhost:8080/blogs/catblog/images.txt"

    @patch("blogarchive.source.requests.get")
    def test_fetch(self, mock_get):
        """Test fetching an existing file."""
        mock_get.return_value = make_response(content="Post id: 1\nTags: café\n".encode())

        content = HttpArchiveSource("http://localhost").fetch("catblog", "texts.txt")

        assert content == "Post id: 1\nTags: café\n"
        mock_get.assert_called_once_with("http://localhost/blogs/catblog/texts.txt", timeout=30)

    @patch("blogarchive.source.requests.get")
    def test_fetch_not_found(self, mock_get):
        """Test that a 404 means the file is absent."""
        mock_get.return_value = make_response(status_code=404)

        assert HttpArchiveSource("http://localhost").fetch("catblog", "videos.txt") is None

    @patch("blogarchive.source.requests.get")
    def test_fetch_server_error(self, mock_get):
        """Test that other error statuses raise TransportError."""
        mock_get.return_value = make_response(status_code=500)

        with pytest.raises(TransportError) as exc_info:
            HttpArchiveSource("http://localhost").fetch("catblog", "videos.txt")

        assert exc_info.value.path == "http://localhost/blogs/catblog/videos.txt"
        assert "500" in exc_info.value.reason

    @patch("blogarchive.source.requests.get")
    def test_fetch_connection_error(self, mock_get):
        """Test that network failures raise TransportError."""
        mock_get.side_effect = requests.ConnectionError("Connection refused")

        with pytest.raises(TransportError, match="Connection refused"):
            HttpArchiveSource("http://localhost").fetch("catblog", "images.txt")

    @patch("blogarchive.source.requests.get")
    def test_list_blogs(self, mock_get):
        """Test listing blogs from a directory index."""
        mock_get.return_value = make_response(content=SAMPLE_INDEX_PAGE.encode())

        blogs = HttpArchiveSource("http://localhost/").list_blogs()

        assert blogs == ["catblog", "my blog"]
        mock_get.assert_called_once_with("http://localhost/blogs/", timeout=30)

    @patch("blogarchive.source.requests.get")
    def test_list_blogs_error(self, mock_get):
        """Test that a failing index raises TransportError."""
        mock_get.return_value = make_response(status_code=403)

        with pytest.raises(TransportError):
            HttpArchiveSource("http://localhost").list_blogs()


class TestDirectoryArchiveSource:
    """Tests for DirectoryArchiveSource."""

    def test_fetch(self, blogs_dir: Path):
        """Test reading an existing file."""
        source = DirectoryArchiveSource(blogs_dir)

        assert source.fetch("catblog", "images.txt") == "Post id: 1\n"

    def test_fetch_missing(self, blogs_dir: Path):
        """Test that a missing file or blog is absent."""
        source = DirectoryArchiveSource(blogs_dir)

        assert source.fetch("catblog", "videos.txt") is None
        assert source.fetch("nosuchblog", "images.txt") is None

    def test_fetch_unreadable(self, blogs_dir: Path):
        """Test that a file that cannot be decoded raises TransportError."""
        (blogs_dir / "catblog" / "texts.txt").write_bytes(b"\xff\xfe\xfa")

        with pytest.raises(TransportError):
            DirectoryArchiveSource(blogs_dir).fetch("catblog", "texts.txt")

    def test_list_blogs(self, blogs_dir: Path):
        """Test that only blog folders with category files are listed."""
        assert DirectoryArchiveSource(blogs_dir).list_blogs() == ["catblog", "dogblog"]

    def test_list_blogs_missing_directory(self, blogs_dir: Path):
        """Test that a missing blogs directory raises TransportError."""
        with pytest.raises(TransportError):
            DirectoryArchiveSource(blogs_dir / "missing").list_blogs()
