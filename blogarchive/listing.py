"""Filtering, sorting and pagination of posts for blogarchive."""

import math
from enum import Enum
from typing import Iterable

from .models import Post, matches_search, post_types

PAGE_SIZE = 100
ALL_TYPES = "All"


class SortOrder(str, Enum):
    """Order of the listing by post id."""

    NEWEST = "Newest"
    OLDEST = "Oldest"


def filter_posts(
    posts: Iterable[Post],
    type_filter: str = ALL_TYPES,
    search: str = "",
    sort: SortOrder = SortOrder.NEWEST,
) -> list[Post]:
    """Build the working set shown to the user.

    Args:
        posts: All loaded posts
        type_filter: A post type name, or "All"
        search: Substring to search for; empty matches every post
        sort: Newest first or oldest first, by id

    Returns:
        New list of matching posts in the requested order
    """
    selected = [
        post
        for post in posts
        if (type_filter == ALL_TYPES or type_filter in post_types(post))
        and (not search or matches_search(post, search))
    ]
    selected.sort(key=lambda post: post.id, reverse=SortOrder(sort) is SortOrder.NEWEST)
    return selected


def page_count(total: int, page_size: int = PAGE_SIZE) -> int:
    """Return the number of pages needed for total posts."""
    return math.ceil(total / page_size)


def paginate(posts: list[Post], page: int, page_size: int = PAGE_SIZE) -> list[Post]:
    """Return the posts on a 1-based page.

    Pages past the end are empty.
    """
    if page < 1:
        raise ValueError(f"Page must be 1 or greater, got {page}")
    start = (page - 1) * page_size
    return posts[start:start + page_size]
