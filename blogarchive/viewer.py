"""Viewer state for blogarchive."""

import logging
import threading
from typing import Optional

from .listing import ALL_TYPES, PAGE_SIZE, SortOrder, filter_posts, page_count, paginate
from .loader import BlogLoad, load_blog
from .models import Post
from .render import render_container
from .source import ArchiveSource

logger = logging.getLogger(__name__)


class StaleLoadError(Exception):
    """Raised when a load finishes after a newer blog was selected."""

    def __init__(self, blog: str):
        self.blog = blog
        super().__init__(f"Load of blog '{blog}' was superseded by a newer selection")


class ViewerController:
    """Owns the loaded posts and the listing settings shown to the user.

    Every blog selection gets a generation number. A load only replaces the
    posts if no other selection started after it, so a slow load never
    overwrites a newer one. A failed load leaves the previous blog in place.
    """

    def __init__(self, source: ArchiveSource, page_size: int = PAGE_SIZE):
        self.source = source
        self.page_size = page_size
        self.blog: Optional[str] = None
        self.posts: tuple[Post, ...] = ()
        self.type_filter = ALL_TYPES
        self.search = ""
        self.sort = SortOrder.NEWEST
        self.page = 1
        self._working_set: list[Post] = []
        self._generation = 0
        self._lock = threading.Lock()

    def begin_load(self) -> int:
        """Start a new selection and return its generation number."""
        with self._lock:
            self._generation += 1
            return self._generation

    def finish_load(self, generation: int, load: BlogLoad) -> None:
        """Replace the posts with a finished load.

        Raises:
            StaleLoadError: If another selection started after this one
        """
        with self._lock:
            if generation != self._generation:
                logger.info("Discarding stale load of blog %s", load.blog)
                raise StaleLoadError(load.blog)
            self.blog = load.blog
            self.posts = tuple(load.posts)
            self.page = 1
            self._refresh()

    def select_blog(self, blog: str) -> BlogLoad:
        """Load a blog and show it.

        Raises:
            BlogLoadError: If the blog cannot be loaded; the current blog stays shown
            StaleLoadError: If another selection started while this one was loading
        """
        generation = self.begin_load()
        load = load_blog(self.source, blog)
        self.finish_load(generation, load)
        return load

    def set_filters(
        self,
        type_filter: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[SortOrder] = None,
    ) -> None:
        """Change the listing settings and go back to the first page."""
        with self._lock:
            if type_filter is not None:
                self.type_filter = type_filter
            if search is not None:
                self.search = search
            if sort is not None:
                self.sort = SortOrder(sort)
            self.page = 1
            self._refresh()

    def set_page(self, page: int) -> None:
        """Show a 1-based page of the working set.

        Raises:
            ValueError: If the page is out of range
        """
        with self._lock:
            last = max(self.page_count, 1)
            if not 1 <= page <= last:
                raise ValueError(f"Page {page} out of range 1-{last}")
            self.page = page

    @property
    def working_set(self) -> list[Post]:
        return list(self._working_set)

    @property
    def page_count(self) -> int:
        return page_count(len(self._working_set), self.page_size)

    def current_posts(self) -> list[Post]:
        return paginate(self._working_set, self.page, self.page_size)

    def render_page(self) -> list[str]:
        """Render the posts on the current page, each in its own container."""
        return [render_container(post) for post in self.current_posts()]

    def _refresh(self) -> None:
        self._working_set = filter_posts(self.posts, self.type_filter, self.search, self.sort)
