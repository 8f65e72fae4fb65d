"""Data models for blogarchive."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class PostType(str, Enum):
    """Type tag carried by every post variant."""

    IMAGE = "Image"
    VIDEO = "Video"
    TEXT = "Text"
    ANSWER = "Answer"


class Category(Enum):
    """A category file in a blog export and the post type it holds."""

    IMAGES = ("images.txt", PostType.IMAGE)
    VIDEOS = ("videos.txt", PostType.VIDEO)
    TEXTS = ("texts.txt", PostType.TEXT)
    ANSWERS = ("answers.txt", PostType.ANSWER)

    @property
    def filename(self) -> str:
        return self.value[0]

    @property
    def post_type(self) -> PostType:
        return self.value[1]


@dataclass(frozen=True)
class ImagePost:
    """A photo or photo set post."""

    id: int
    date: Optional[str]
    tags: tuple[str, ...]
    photo_urls: tuple[str, ...]
    caption: Optional[str] = None

    type = PostType.IMAGE


@dataclass(frozen=True)
class VideoPost:
    """A video post."""

    id: int
    date: Optional[str]
    tags: tuple[str, ...]
    url: str
    caption: Optional[str] = None

    type = PostType.VIDEO


@dataclass(frozen=True)
class TextPost:
    """A text post; the body may contain HTML."""

    id: int
    date: Optional[str]
    tags: tuple[str, ...]
    body: str
    title: Optional[str] = None
    media_urls: tuple[str, ...] = ()

    type = PostType.TEXT


@dataclass(frozen=True)
class AnswerPost:
    """An answered ask."""

    id: int
    date: Optional[str]
    tags: tuple[str, ...]
    body: str

    type = PostType.ANSWER


Post = Union[ImagePost, VideoPost, TextPost, AnswerPost]

_VARIANTS = {
    PostType.IMAGE: ImagePost,
    PostType.VIDEO: VideoPost,
    PostType.TEXT: TextPost,
    PostType.ANSWER: AnswerPost,
}

# Text fields searched for each variant, in addition to the tags
_SEARCH_FIELDS = {
    PostType.IMAGE: ("caption",),
    PostType.VIDEO: ("caption",),
    PostType.TEXT: ("title", "body"),
    PostType.ANSWER: ("body",),
}

_TUPLE_FIELDS = ("tags", "photo_urls", "media_urls")


class UnknownVariantError(Exception):
    """Raised when a serialized post carries an unrecognized type tag."""

    def __init__(self, type_name: object):
        self.type_name = type_name
        super().__init__(f"Unknown post type {type_name!r}")


def tags_text(post: Post) -> str:
    """Return the tags as the single display string used for search and rendering."""
    return ", ".join(post.tags)


def matches_search(post: Post, query: str) -> bool:
    """Check whether a post contains the query.

    The test is a case-sensitive substring match against the joined tags or
    any of the variant's text fields. Missing fields count as empty.

    Args:
        post: Post to test
        query: Substring to look for

    Returns:
        True if the query occurs in the tags or a text field
    """
    if query in tags_text(post):
        return True

    for field in _SEARCH_FIELDS[post.type]:
        if query in (getattr(post, field) or ""):
            return True

    return False


def post_types(post: Post) -> tuple[PostType, ...]:
    """Return the type tags a post is listed under.

    Text posts with embedded media are also listed under Video (if any media
    is an mp4) or else Image.
    """
    if post.type is not PostType.TEXT or not post.media_urls:
        return (post.type,)

    if any(url.endswith(".mp4") for url in post.media_urls):
        return (PostType.TEXT, PostType.VIDEO)
    return (PostType.TEXT, PostType.IMAGE)


def post_to_dict(post: Post) -> dict:
    """Serialize a post to a flat dict tagged with its type."""
    data = {"type": post.type.value}
    for name in post.__dataclass_fields__:
        value = getattr(post, name)
        data[name] = list(value) if name in _TUPLE_FIELDS else value
    return data


def post_from_dict(data: dict) -> Post:
    """Deserialize a post from a dict produced by post_to_dict.

    Raises:
        UnknownVariantError: If the type tag is not one of the four variants
    """
    type_name = data.get("type")
    try:
        variant = _VARIANTS[PostType(type_name)]
    except ValueError:
        raise UnknownVariantError(type_name) from None

    kwargs = {}
    for name in variant.__dataclass_fields__:
        if name not in data:
            continue
        value = data[name]
        kwargs[name] = tuple(value) if name in _TUPLE_FIELDS else value
    return variant(**kwargs)
