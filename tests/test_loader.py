"""Tests for loading whole blogs."""

import json
import threading

import pytest

from blogarchive.loader import BlogLoadError, load_blog
from blogarchive.models import Category, ImagePost, TextPost
from blogarchive.source import TransportError


class FakeSource:
    """In-memory archive source keyed by (blog, filename)."""

    def __init__(self, files=None, failing=()):
        self.files = files or {}
        self.failing = set(failing)
        self.calls = []
        self._lock = threading.Lock()

    def fetch(self, blog, filename):
        with self._lock:
            self.calls.append((blog, filename))
        if filename in self.failing:
            raise TransportError(f"/blogs/{blog}/{filename}", "500 Server Error")
        return self.files.get((blog, filename))

    def list_blogs(self):
        return sorted({blog for blog, _ in self.files})


IMAGES = """Post id: 30
Date: 2020-01-03
Photo url: https://64.media.tumblr.com/a/one.jpg
Tags: cats
"""

TEXTS = json.dumps(
    [
        {"id": "10", "date": "2020-01-01", "tags": [], "title": "First", "body": "<p>hi</p>"},
        {"id": "oops", "date": "2020-01-02", "tags": [], "body": "bad"},
        {"id": "20", "date": "2020-01-02", "tags": [], "body": "<p>again</p>"},
    ]
)


class TestLoadBlog:
    """Tests for load_blog."""

    def test_fetches_all_categories(self):
        """Test that every category file is requested once."""
        source = FakeSource()

        load_blog(source, "catblog")

        assert sorted(source.calls) == sorted(
            ("catblog", category.filename) for category in Category
        )

    def test_merges_and_sorts(self):
        """Test that posts from all files are merged in id order."""
        source = FakeSource(
            {
                ("catblog", "images.txt"): IMAGES,
                ("catblog", "texts.txt"): TEXTS,
            }
        )

        load = load_blog(source, "catblog")

        assert load.blog == "catblog"
        assert [post.id for post in load.posts] == [10, 20, 30]
        assert isinstance(load.posts[0], TextPost)
        assert isinstance(load.posts[2], ImagePost)
        assert load.posts[2].photo_urls == ("/blogs/catblog/one.jpg",)

    def test_faults_collected_per_category(self):
        """Test that skipped entries are reported by category."""
        source = FakeSource({("catblog", "texts.txt"): TEXTS})

        load = load_blog(source, "catblog")

        assert load.fault_count == 1
        assert list(load.faults) == [Category.TEXTS]
        assert load.faults[Category.TEXTS][0].entry == 2

    def test_absent_files_are_empty(self):
        """Test that a blog with no files loads with no posts."""
        load = load_blog(FakeSource(), "ghost")

        assert load.posts == []
        assert load.fault_count == 0

    def test_transport_error_aborts(self):
        """Test that one failing download fails the whole load."""
        source = FakeSource({("catblog", "images.txt"): IMAGES}, failing=["videos.txt"])

        with pytest.raises(BlogLoadError) as exc_info:
            load_blog(source, "catblog")

        assert exc_info.value.blog == "catblog"
        assert "videos.txt" in exc_info.value.reason
        assert isinstance(exc_info.value.__cause__, TransportError)
        # The other requests still ran to completion
        assert len(source.calls) == 4
