"""Loading all category files of a blog for blogarchive."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .models import Category, Post
from .parser import Fault, parse_archive
from .source import ArchiveSource, TransportError

logger = logging.getLogger(__name__)


@dataclass
class BlogLoad:
    """Posts of one blog merged across categories."""

    blog: str
    posts: list[Post] = field(default_factory=list)
    faults: dict[Category, list[Fault]] = field(default_factory=dict)

    @property
    def fault_count(self) -> int:
        return sum(len(faults) for faults in self.faults.values())


class BlogLoadError(Exception):
    """Raised when a blog cannot be loaded."""

    def __init__(self, blog: str, reason: str):
        self.blog = blog
        self.reason = reason
        super().__init__(f"Failed to load blog '{blog}': {reason}")


def load_blog(source: ArchiveSource, blog: str) -> BlogLoad:
    """Fetch and parse every category file of a blog.

    The four files are fetched concurrently and the load waits for all of
    them. Absent files contribute no posts.

    Args:
        source: Where the export files come from
        blog: Blog name

    Returns:
        BlogLoad with all posts sorted by id

    Raises:
        BlogLoadError: If any file fails to download
    """
    categories = list(Category)

    with ThreadPoolExecutor(max_workers=len(categories)) as executor:
        futures = {
            category: executor.submit(source.fetch, blog, category.filename)
            for category in categories
        }
        contents = {}
        errors = []
        for category, future in futures.items():
            try:
                contents[category] = future.result()
            except TransportError as e:
                errors.append(e)

    if errors:
        raise BlogLoadError(blog, str(errors[0])) from errors[0]

    load = BlogLoad(blog=blog)
    for category in categories:
        result = parse_archive(contents[category], category, blog)
        load.posts.extend(result.posts)
        if result.faults:
            load.faults[category] = result.faults

    load.posts.sort(key=lambda post: post.id)

    logger.info(
        "Loaded %d posts for blog %s (%d entries skipped)",
        len(load.posts),
        blog,
        load.fault_count,
    )
    return load
