"""Thumbnail previews for Figma files.

A file's ``thumbnail_url`` points at Figma, which answers with a 302 to a
short-lived signed image URL. We only want that URL to embed in the snippet,
so the request is sent with redirects disabled and the image is never fetched.
"""

import logging

import httpx

from .exceptions import ThumbnailResolutionError
from .models import File

logger = logging.getLogger(__name__)


async def resolve_signed_url(client: httpx.AsyncClient, thumbnail_url: str) -> str:
    """Return the signed image URL a thumbnail reference redirects to.

    Raises:
        ThumbnailResolutionError: If the response is not a 302 with a
            Location header. A 200 counts as a failure too.
    """
    resp = await client.get(thumbnail_url, follow_redirects=False)

    if resp.status_code != 302:
        raise ThumbnailResolutionError(
            f"Thumbnail URL not found: expected 302, got {resp.status_code}",
            url=thumbnail_url,
            status_code=resp.status_code,
        )

    location = resp.headers.get("location")
    if not location:
        raise ThumbnailResolutionError(
            "Thumbnail redirect has no Location header",
            url=thumbnail_url,
            status_code=resp.status_code,
        )

    logger.debug("Resolved thumbnail %s", thumbnail_url)
    return location


async def render_thumbnail(client: httpx.AsyncClient, file: File) -> str:
    """Generate a string of HTML for displaying a linked thumbnail."""
    src = await resolve_signed_url(client, file.thumbnail_url)
    return f'<a href="{file.url}"><img src="{src}"></a>'
