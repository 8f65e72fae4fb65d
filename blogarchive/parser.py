"""Export file parsing for blogarchive.

A category file is either the legacy line format, where every post starts at
a ``Post id: `` line, or a JSON array of post objects. The format is detected
from the first non-blank character. Each entry is converted on its own; an
entry that cannot be converted is dropped and recorded as a Fault.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .media import (
    extract_nested_src,
    find_media_urls,
    rewrite_body_images,
    rewrite_media_url,
    rewrite_video_url,
    strip_body_media,
)
from .models import AnswerPost, Category, ImagePost, Post, TextPost, VideoPost

logger = logging.getLogger(__name__)

POST_ID = "Post id: "
DATE = "Date: "
TAGS = "Tags: "
TITLE = "Title: "
REBLOG_NAME = "Reblog name: "
PHOTO_URL = "Photo url: "
PHOTO_SET_URLS = "Photo set urls: "
PHOTO_CAPTION = "Photo caption: "
VIDEO_PLAYER = "Video player: "
VIDEO_CAPTION = "Video caption: "

TAG_SEPARATOR = ", "


@dataclass
class Fault:
    """Diagnostic for an entry that was dropped."""

    entry: int
    reason: str
    post_id: Optional[str] = None


@dataclass
class ParseResult:
    """Posts converted from one category file and the entries that failed."""

    posts: list[Post] = field(default_factory=list)
    faults: list[Fault] = field(default_factory=list)


class MalformedEntryError(Exception):
    """Raised when a single entry cannot be converted to a post."""

    pass


def parse_archive(content: Optional[str], category: Category, blog: str) -> ParseResult:
    """Parse one category file of a blog export.

    Args:
        content: File content, or None if the file is absent
        category: Category the file belongs to
        blog: Blog name, used to rewrite media URLs

    Returns:
        ParseResult with the converted posts and a Fault per dropped entry
    """
    result = ParseResult()
    if content is None or not content.strip():
        return result

    if content.lstrip().startswith("["):
        try:
            candidates = _json_entries(content)
        except ValueError as e:
            fault = Fault(entry=0, reason=f"Invalid JSON array: {e}")
            logger.warning("Skipping %s for blog %s: %s", category.filename, blog, fault.reason)
            result.faults.append(fault)
            return result
        convert = _post_from_json
    else:
        candidates = [
            record
            for entry in split_entries(content.splitlines())
            for record in _separate_records(entry)
            if _has_content(record)
        ]
        convert = _post_from_lines

    for number, candidate in enumerate(candidates, start=1):
        try:
            result.posts.append(convert(candidate, category, blog))
        except (MalformedEntryError, ValueError, TypeError, KeyError) as e:
            fault = Fault(entry=number, reason=str(e), post_id=_candidate_id(candidate))
            logger.warning(
                "Skipping entry %d (post id %s) in %s for blog %s: %s",
                fault.entry,
                fault.post_id,
                category.filename,
                blog,
                fault.reason,
            )
            result.faults.append(fault)

    logger.debug(
        "Parsed %d posts from %s for blog %s (%d skipped)",
        len(result.posts),
        category.filename,
        blog,
        len(result.faults),
    )
    return result


# Legacy line format


def split_entries(lines: list[str]) -> list[list[str]]:
    """Split the lines of a legacy export into one group of lines per post.

    A new group starts at every line beginning with ``Post id: ``. Lines before
    the first marker form their own group, so joining the groups gives back
    the input.
    """
    entries = []
    current: list[str] = []

    for line in lines:
        if line.startswith(POST_ID) and current:
            entries.append(current)
            current = []
        current.append(line)

    if current:
        entries.append(current)

    return entries


def line_starting_with(lines: list[str], prefix: str) -> Optional[str]:
    """Return the rest of the first line starting with prefix, or None."""
    for line in lines:
        if line.startswith(prefix):
            return line[len(prefix):]
    return None


def contents_between(lines: list[str], left: str, right: Optional[str]) -> str:
    """Return the lines from the first one starting with left up to the next one starting with right.

    The left line is included as is and the right line is excluded. Without a
    matching right line (or with right None) collection runs to the end.
    Returns an empty string if no line starts with left.
    """
    collected = []
    collecting = False

    for line in lines:
        if not collecting:
            if line.startswith(left):
                collecting = True
                collected.append(line)
            continue
        if right is not None and line.startswith(right):
            break
        collected.append(line)

    return "\n".join(collected)


def _has_content(lines: list[str]) -> bool:
    return any(line.strip() for line in lines)


def _separate_records(lines: list[str]) -> list[list[str]]:
    """Split off records that lost their ``Post id: `` line.

    Such a record is absorbed into the previous entry by split_entries. It is
    recognised by a ``Date: `` line following that entry's tags line, and is
    returned as its own group so it gets reported instead of dropped silently.
    """
    records = []
    current: list[str] = []
    tags_seen = False

    for line in lines:
        if tags_seen and line.startswith(DATE):
            records.append(current)
            current = []
            tags_seen = False
        if line.startswith(TAGS.rstrip()):
            tags_seen = True
        current.append(line)

    records.append(current)
    return records


def _post_from_lines(lines: list[str], category: Category, blog: str) -> Post:
    raw_id = line_starting_with(lines, POST_ID)
    if raw_id is None:
        raise MalformedEntryError("Missing 'Post id' line")

    common = {
        "id": _parse_id(raw_id),
        "date": line_starting_with(lines, DATE),
        "tags": _split_tags(line_starting_with(lines, TAGS)),
    }

    if category is Category.IMAGES:
        urls = _photo_set_urls(lines)
        if not urls:
            single = line_starting_with(lines, PHOTO_URL)
            if single and single.strip():
                urls = [single.strip()]
        if not urls:
            raise MalformedEntryError("No photo urls")
        return ImagePost(
            **common,
            photo_urls=tuple(rewrite_media_url(url, blog) for url in urls),
            caption=line_starting_with(lines, PHOTO_CAPTION),
        )

    if category is Category.VIDEOS:
        player = contents_between(lines, VIDEO_PLAYER, None)
        if not player:
            raise MalformedEntryError("Missing 'Video player' line")
        src = extract_nested_src(player[len(VIDEO_PLAYER):])
        if not src:
            raise MalformedEntryError("Video player has no element with a src attribute")
        return VideoPost(
            **common,
            url=rewrite_video_url(src, blog),
            caption=line_starting_with(lines, VIDEO_CAPTION),
        )

    if category is Category.TEXTS:
        title = line_starting_with(lines, TITLE)
        if title is not None:
            body = contents_between(lines, TITLE, TAGS)
        else:
            # Untitled posts start their body right after the date
            body = "\n".join(contents_between(lines, DATE, TAGS).splitlines()[1:])
        return TextPost(**common, title=title, body=rewrite_body_images(body, blog))

    return AnswerPost(**common, body=contents_between(lines, REBLOG_NAME, TAGS))


def _photo_set_urls(lines: list[str]) -> list[str]:
    for index, line in enumerate(lines):
        if not line.startswith(PHOTO_SET_URLS):
            continue
        urls = line[len(PHOTO_SET_URLS):].split()
        # Long photo sets wrap onto following lines
        for following in lines[index + 1:]:
            if not following.startswith("https://"):
                break
            urls.extend(following.split())
        return urls
    return []


def _split_tags(raw: Optional[str]) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(tag for tag in raw.split(TAG_SEPARATOR) if tag)


def _parse_id(raw: Any) -> int:
    if isinstance(raw, bool):
        raise MalformedEntryError(f"Invalid post id {raw!r}")
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        raise MalformedEntryError(f"Invalid post id {raw!r}") from None


def _candidate_id(candidate: Any) -> Optional[str]:
    if isinstance(candidate, dict):
        raw = candidate.get("id")
        return None if raw is None else str(raw)
    if isinstance(candidate, list):
        raw = line_starting_with(candidate, POST_ID)
        return None if raw is None else raw.strip()
    return None


# JSON format


def _json_entries(content: str) -> list:
    entries = json.loads(content)
    if not isinstance(entries, list):
        raise ValueError("top level value is not an array")
    return entries


def _post_from_json(data: Any, category: Category, blog: str) -> Post:
    if not isinstance(data, dict):
        raise MalformedEntryError(f"Expected an object, got {type(data).__name__}")
    if data.get("id") is None:
        raise MalformedEntryError("Missing 'id' field")

    tags = data.get("tags") or []
    if not isinstance(tags, list):
        raise MalformedEntryError("'tags' is not a list")

    common = {
        "id": _parse_id(data["id"]),
        "date": _optional_str(data.get("date")),
        "tags": tuple(str(tag) for tag in tags if tag),
    }
    media_files = _media_files(data)

    if category is Category.IMAGES:
        caption = _optional_str(_first(data, "caption", "photo-caption"))
        urls = data.get("photo_urls") or media_files
        if isinstance(urls, str):
            urls = urls.split()
        urls = _url_list(urls, "photo_urls")
        if not urls:
            urls = find_media_urls(_optional_str(data.get("body"))) or find_media_urls(caption)
        if not urls:
            raise MalformedEntryError("No photo urls")
        return ImagePost(
            **common,
            photo_urls=tuple(rewrite_media_url(url, blog) for url in urls),
            caption=caption,
        )

    if category is Category.VIDEOS:
        url = data.get("video_url") or (media_files[0] if media_files else None)
        if not url:
            raise MalformedEntryError("Missing 'video_url' field")
        if not isinstance(url, str):
            raise MalformedEntryError(f"'video_url' is not a string: {url!r}")
        return VideoPost(
            **common,
            url=rewrite_video_url(url, blog),
            caption=_optional_str(data.get("caption")),
        )

    if category is Category.TEXTS:
        body = _optional_str(_first(data, "body", "regular-body")) or ""
        return TextPost(
            **common,
            title=_optional_str(_first(data, "title", "regular-title")),
            body=strip_body_media(body),
            media_urls=tuple(
                dict.fromkeys(rewrite_media_url(name, blog) for name in media_files)
            ),
        )

    body = _optional_str(data.get("body"))
    if body is None and "question" in data:
        body = f"<em>{data['question']}</em><br>{data.get('answer', '')}"
    return AnswerPost(**common, body=body or "")


def _first(data: dict, *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _media_files(data: dict) -> list[str]:
    files = _first(data, "downloaded_media_files", "downloaded-media-files") or []
    return _url_list(files, "downloaded_media_files")


def _url_list(urls: Any, name: str) -> list[str]:
    if not isinstance(urls, list):
        raise MalformedEntryError(f"'{name}' is not a list")
    for url in urls:
        if not isinstance(url, str) or not url.strip():
            raise MalformedEntryError(f"'{name}' holds an invalid url {url!r}")
    return urls
