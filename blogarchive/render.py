"""HTML rendering of posts for blogarchive."""

from .models import Post, PostType, tags_text


def render(post: Post) -> str:
    """Render a post as an HTML fragment.

    The fragment is the date header, the variant's body and, when the post
    has tags, a tags footer, joined by newlines. The output depends only on
    the post's fields.
    """
    parts = [f"<p>{post.date or ''}</p>"]
    parts.extend(_BODY_RENDERERS[post.type](post))

    if post.tags:
        parts.append(f"<p>Tags: {tags_text(post)}</p>")

    return "\n".join(parts)


def render_container(post: Post) -> str:
    """Render a post wrapped in a div addressable by type and id."""
    return f'<div class="post {post.type.value}" id="{post.id}">{render(post)}</div>'


def render_image(url: str) -> str:
    return f'<img src="{url}" alt="[image]">'


def render_video(url: str) -> str:
    return f'<video controls><source src="{url}"></video>'


def render_media(url: str) -> str:
    """Render an embedded media file as a video or image tag by extension."""
    if url.endswith(".mp4"):
        return render_video(url)
    return render_image(url)


def _image_body(post) -> list[str]:
    parts = [post.caption] if post.caption else []
    parts.extend(render_image(url) for url in post.photo_urls)
    return parts


def _video_body(post) -> list[str]:
    return [f"<div>{post.caption or ''}</div>", render_video(post.url)]


def _text_body(post) -> list[str]:
    parts = [f"<h4>{post.title}</h4>"] if post.title else []
    parts.append(post.body)
    parts.extend(render_media(url) for url in post.media_urls)
    return parts


def _answer_body(post) -> list[str]:
    return [post.body]


_BODY_RENDERERS = {
    PostType.IMAGE: _image_body,
    PostType.VIDEO: _video_body,
    PostType.TEXT: _text_body,
    PostType.ANSWER: _answer_body,
}
