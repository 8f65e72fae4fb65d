"""Media URL rewriting and HTML helpers for blogarchive."""

import re
from typing import Optional

from bs4 import BeautifulSoup

# Remote images served from Tumblr's media hosts, e.g. https://64.media.tumblr.com/...
MEDIA_HOST_PATTERN = re.compile(r"^https://[^/\"]*media\.[^/\"]+/")

_OPEN_TAG = re.compile(r"<[A-Za-z][^>]*>")
_SRC_TAG = re.compile(r"<[A-Za-z][^>]*?\ssrc\s*=\s*([\"'])(.*?)\1", re.DOTALL)

_REMOVED_BODY_TAGS = ("img", "figure", "video")


def local_media_url(blog: str, filename: str) -> str:
    """Return the local path of a media file exported for a blog."""
    return f"/blogs/{blog}/{filename}"


def rewrite_media_url(url: str, blog: str) -> str:
    """Rewrite a remote media URL to the blog's local copy.

    Only the last path segment is kept, so rewriting an already local
    ``/blogs/{blog}/{name}`` path returns it unchanged.

    Args:
        url: Original media URL
        blog: Blog the media belongs to

    Returns:
        Local path of the form /blogs/{blog}/{filename}
    """
    filename = url.strip().rsplit("/", 1)[-1]
    return local_media_url(blog, filename)


def rewrite_video_url(url: str, blog: str) -> str:
    """Rewrite a remote video URL to the blog's local copy.

    Exported videos are stored without the size suffix, so ``abc_1280.mp4``
    becomes ``abc.mp4``. Names where the text before the last underscore ends
    in ``tumblr`` (``tumblr_xyz.mp4``) are kept as they are.
    """
    local = rewrite_media_url(url, blog)
    directory, filename = local.rsplit("/", 1)

    underscore = filename.rfind("_")
    dot = filename.rfind(".")
    if underscore == -1 or dot < underscore:
        return local

    stem = filename[:underscore]
    if stem.endswith("tumblr"):
        return local

    return f"{directory}/{stem}{filename[dot:]}"


def extract_nested_src(fragment: str) -> Optional[str]:
    """Return the src attribute of the first element nested in an HTML fragment.

    Handles the one shape video players are exported in, an outer element
    wrapping an element that carries ``src``, for example
    ``<video controls><source src="..." type="video/mp4"></video>``.

    Args:
        fragment: HTML fragment

    Returns:
        The src value, or None if the fragment has no nested element with src
    """
    outer = _OPEN_TAG.search(fragment)
    if not outer:
        return None

    nested = _SRC_TAG.search(fragment, outer.end())
    if not nested:
        return None

    return nested.group(2).strip() or None


def find_media_urls(html: Optional[str]) -> list[str]:
    """Find remote media image URLs embedded in an HTML fragment.

    Args:
        html: HTML fragment, may be None

    Returns:
        img src values pointing at a media host, in document order, without duplicates
    """
    if not html or "<img" not in html:
        return []

    soup = BeautifulSoup(html, "html.parser")

    urls = []
    seen = set()
    for img in soup.find_all("img", src=True):
        src = img["src"].strip()
        if not MEDIA_HOST_PATTERN.match(src) or src in seen:
            continue
        seen.add(src)
        urls.append(src)

    return urls


def rewrite_body_images(html: str, blog: str) -> str:
    """Point every img src in a post body at the blog's local copy.

    Bodies without images are returned untouched.
    """
    if "<img" not in html:
        return html

    soup = BeautifulSoup(html, "html.parser")
    for img in soup.find_all("img", src=True):
        img["src"] = rewrite_media_url(img["src"], blog)

    return str(soup)


def strip_body_media(html: str) -> str:
    """Remove img, figure and video elements from a post body.

    Their files are listed separately as downloaded media, so the remote
    copies are dropped. Bodies without such elements are returned untouched.
    """
    if not any(f"<{tag}" in html for tag in _REMOVED_BODY_TAGS):
        return html

    soup = BeautifulSoup(html, "html.parser")
    for element in soup.find_all(list(_REMOVED_BODY_TAGS)):
        element.extract()

    return str(soup)
