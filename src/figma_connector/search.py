"""Search across Figma files, projects and teams.

Figma's web app searches each resource kind through its own endpoint:

- "fig_files" -> design files, each shown with its thumbnail
- "folders"   -> projects, shown with up to three recent file thumbnails
- "teams"     -> teams, text only

All three are queried concurrently with the same session and flattened in
that order. A failure anywhere fails the whole search.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable

import httpx

from .exceptions import BackendRequestError
from .models import File, Project, Result, Team
from .thumbnail import render_thumbnail

logger = logging.getLogger(__name__)

SEARCH_PATH = "/api/search/{kind}"
MAX_PROJECT_THUMBNAILS = 3


class ResourceKind(str, Enum):
    """Resource kinds, valued by their search endpoint name."""

    FILES = "fig_files"
    PROJECTS = "folders"
    TEAMS = "teams"


def _plural(count: int, noun: str) -> str:
    return f"1 {noun}" if count == 1 else f"{count} {noun}s"


def _origin(client: httpx.AsyncClient) -> str:
    return str(client.base_url).rstrip("/")


async def _file_result(item: dict[str, Any], client: httpx.AsyncClient, organization: str) -> Result:
    f = File.from_api(item["model"])
    thumbnail = await render_thumbnail(client, f)
    return Result(
        title=f.name,
        url=f.url,
        snippet=f"File created by {f.creator_handle}<br>{thumbnail}",
    )


async def _project_result(item: dict[str, Any], client: httpx.AsyncClient, organization: str) -> Result:
    project = Project.from_api(item)
    thumbnails = await asyncio.gather(
        *(render_thumbnail(client, f) for f in project.recent_files[:MAX_PROJECT_THUMBNAILS])
    )
    return Result(
        title=project.name,
        url=f"{_origin(client)}/files/{organization}/project/{project.id}",
        snippet=f"Project containing {_plural(project.file_count, 'file')}<br>{''.join(thumbnails)}",
    )


async def _team_result(item: dict[str, Any], client: httpx.AsyncClient, organization: str) -> Result:
    team = Team.from_api(item)
    return Result(
        title=team.name,
        url=f"{_origin(client)}/files/{organization}/team/{team.id}",
        snippet=f"Team with {_plural(team.member_count, 'member')}",
    )


NORMALIZERS: dict[ResourceKind, Callable[[dict[str, Any], httpx.AsyncClient, str], Awaitable[Result]]] = {
    ResourceKind.FILES: _file_result,
    ResourceKind.PROJECTS: _project_result,
    ResourceKind.TEAMS: _team_result,
}


async def search_kind(
    client: httpx.AsyncClient,
    kind: ResourceKind,
    organization: str,
    query: str,
) -> list[Result]:
    """Search one resource kind and normalize its results.

    Raises:
        BackendRequestError: If the request fails or the body is not a
            search envelope.
    """
    resp = await client.get(
        SEARCH_PATH.format(kind=kind.value),
        params={
            "desc": False,
            "org_id": organization,
            "query": query,
            "sort": "relevancy",
        },
    )

    if not resp.is_success:
        raise BackendRequestError(
            f"Figma {kind.value} search failed (status {resp.status_code}): {resp.text[:200]}",
            kind=kind.value,
            status_code=resp.status_code,
        )

    try:
        items = resp.json()["meta"]["results"]
    except (ValueError, KeyError, TypeError):
        raise BackendRequestError(
            f"Unexpected Figma {kind.value} search response",
            kind=kind.value,
            status_code=resp.status_code,
        ) from None

    logger.debug("Figma %s search returned %d results", kind.value, len(items))

    normalize = NORMALIZERS[kind]
    try:
        return list(await asyncio.gather(*(normalize(item, client, organization) for item in items)))
    except (KeyError, TypeError) as e:
        raise BackendRequestError(
            f"Malformed Figma {kind.value} result: missing {e}",
            kind=kind.value,
            status_code=resp.status_code,
        ) from e


async def search(client: httpx.AsyncClient, organization: int | str, query: str) -> list[Result]:
    """Search files, projects and teams in an organization.

    Args:
        client: Authenticated client from ``auth.login``.
        organization: Figma organization id.
        query: Search query string.

    Returns:
        Files, then projects, then teams, each in Figma's relevancy order.

    Raises:
        BackendRequestError: If any kind's search fails.
        ThumbnailResolutionError: If any thumbnail cannot be resolved.
    """
    org_id = str(organization)
    batches = await asyncio.gather(*(search_kind(client, kind, org_id, query) for kind in ResourceKind))
    return [result for batch in batches for result in batch]
