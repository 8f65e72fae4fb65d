"""CLI commands for blogarchive."""

import json
import logging
from pathlib import Path
from typing import Optional

import click

from .listing import ALL_TYPES, SortOrder
from .loader import BlogLoadError
from .models import Post, PostType, post_to_dict
from .source import DEFAULT_BLOGS_PATH, DirectoryArchiveSource, HttpArchiveSource, TransportError
from .viewer import ViewerController

TYPE_CHOICES = [ALL_TYPES] + [post_type.value for post_type in PostType]
SORT_CHOICES = [order.value for order in SortOrder]

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title}</title>
</head>
<body>
<p>Total: {total} | Showing: {showing} | Page {page} of {pages}</p>
<div id="posts">
{posts}
</div>
</body>
</html>
"""


@click.group()
@click.version_option()
@click.option(
    "--path",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_BLOGS_PATH,
    show_default=True,
    help="Local TumblThree blogs directory",
)
@click.option("--url", "base_url", help="Base URL of a server hosting /blogs/ (overrides --path)")
@click.option("--verbose", "-v", is_flag=True, help="Log parsing details")
@click.pass_context
def cli(ctx: click.Context, path: Path, base_url: Optional[str], verbose: bool):
    """blogarchive - Browse exported Tumblr blog archives."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if base_url:
        ctx.obj = HttpArchiveSource(base_url)
    else:
        ctx.obj = DirectoryArchiveSource(path)


def listing_options(func):
    """Options shared by commands that show a page of posts."""
    func = click.option("--page", "-p", type=int, default=1, show_default=True, help="Page number")(func)
    func = click.option(
        "--sort",
        type=click.Choice(SORT_CHOICES),
        default=SortOrder.NEWEST.value,
        show_default=True,
        help="Order by post id",
    )(func)
    func = click.option("--search", "-s", default="", help="Only posts containing this text")(func)
    func = click.option(
        "--type",
        "-t",
        "type_filter",
        type=click.Choice(TYPE_CHOICES),
        default=ALL_TYPES,
        show_default=True,
        help="Only posts of this type",
    )(func)
    return func


@cli.command("list-blogs")
@click.pass_obj
def list_blogs(source):
    """List blogs available in the archive."""
    try:
        blogs = source.list_blogs()
    except TransportError as e:
        click.echo(click.style(f"Error: {e}", fg="red"))
        raise SystemExit(1)

    if not blogs:
        click.echo("No blogs found.")
        return

    click.echo(click.style(f"Blogs ({len(blogs)}):", fg="cyan", bold=True))
    for blog in blogs:
        click.echo(f"  {blog}")


@cli.command()
@click.argument("blog")
@listing_options
@click.option("--json", "as_json", is_flag=True, help="Print the page as JSON")
@click.pass_obj
def posts(source, blog: str, type_filter: str, search: str, sort: str, page: int, as_json: bool):
    """List posts of BLOG."""
    viewer = _open_viewer(source, blog, type_filter, search, sort, page)

    page_posts = viewer.current_posts()
    if as_json:
        click.echo(json.dumps([post_to_dict(post) for post in page_posts], indent=2))
        return

    if not page_posts:
        click.echo("No posts found.")
        return

    click.echo(
        click.style(
            f"Total: {len(viewer.posts)} | Matching: {len(viewer.working_set)} | "
            f"Page {viewer.page} of {viewer.page_count}",
            fg="cyan",
            bold=True,
        )
    )
    click.echo()

    for post in page_posts:
        _print_post(post)


@cli.command()
@click.argument("blog")
@listing_options
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Write the page to this file instead of stdout",
)
@click.pass_obj
def render(
    source,
    blog: str,
    type_filter: str,
    search: str,
    sort: str,
    page: int,
    output: Optional[Path],
):
    """Render a page of BLOG's posts as HTML."""
    viewer = _open_viewer(source, blog, type_filter, search, sort, page)

    fragments = viewer.render_page()
    html = PAGE_TEMPLATE.format(
        title=blog,
        total=len(viewer.posts),
        showing=len(fragments),
        page=viewer.page,
        pages=max(viewer.page_count, 1),
        posts="\n".join(fragments),
    )

    if output:
        output.write_text(html, encoding="utf-8")
        click.echo(click.style(f"Wrote {len(fragments)} post(s) to {output}", fg="green"))
    else:
        click.echo(html, nl=False)


def _open_viewer(
    source, blog: str, type_filter: str, search: str, sort: str, page: int
) -> ViewerController:
    """Load a blog and apply the listing options, exiting on failure."""
    viewer = ViewerController(source)
    try:
        load = viewer.select_blog(blog)
    except BlogLoadError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    if load.fault_count:
        click.echo(
            click.style(f"Warning: skipped {load.fault_count} malformed entries", fg="yellow"),
            err=True,
        )

    viewer.set_filters(type_filter=type_filter, search=search, sort=SortOrder(sort))
    try:
        viewer.set_page(page)
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    return viewer


def _print_post(post: Post):
    """Print a single post summary."""
    id_str = click.style(f"[{post.id}]", fg="cyan")
    type_str = click.style(post.type.value, fg="yellow")

    click.echo(f"  {id_str} {type_str} {post.date or ''}")
    summary = _summary(post)
    if summary:
        click.echo(f"       {summary}")
    if post.tags:
        click.echo(f"       Tags: {', '.join(post.tags)}")
    click.echo()


def _summary(post: Post) -> str:
    if post.type is PostType.IMAGE:
        return f"{len(post.photo_urls)} photo(s)" + (f": {post.caption}" if post.caption else "")
    if post.type is PostType.VIDEO:
        return post.url
    if post.type is PostType.TEXT and post.title:
        return post.title
    lines = post.body.splitlines()
    return lines[0] if lines else ""


if __name__ == "__main__":
    cli()
