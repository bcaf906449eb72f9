"""Recent release lookup for repositories on the public mirror registry."""

import asyncio
import logging
from typing import Sequence

import httpx

from ..errors import RegistryError
from ..registry import get_repo_info, list_tags, resolve_created
from ..structs import Release, RepoResult
from ..utils.tag_ranking import top_n

logger = logging.getLogger(__name__)

MAX_RELEASES = 5


async def fetch_candidate_tags(
    client: httpx.AsyncClient, registry: str, repository: str, n: int
) -> list[str]:
    """List a mirror repository anonymously and keep the n highest versioned tags.

    Listing failures are logged and yield an empty list.

    Returns:
        Up to n tags, lowest version first
    """
    try:
        tags = await list_tags(client, registry, repository, authenticate=False)
    except RegistryError as e:
        logger.warning(f"Error fetching tags for {repository} on {registry}: {e}")
        return []
    return top_n(tags, n)


async def fetch_mirror_releases(
    client: httpx.AsyncClient, url: str, top: int = MAX_RELEASES
) -> RepoResult:
    """Find the most recent releases of one mirror repository.

    The highest versioned tags are dated through their image configs; tags
    without a creation date are left out and the rest are ordered newest first.

    Args:
        client: httpx AsyncClient to use for requests
        url: The repository URL, e.g. "mcr.microsoft.com/oss/kubernetes-csi/livenessprobe"
        top: How many candidate tags to date and report

    Returns:
        RepoResult keyed by the URL as given
    """
    try:
        registry, repository = get_repo_info(url)
    except ValueError as e:
        logger.warning(str(e))
        return RepoResult(image=url, releases=[])

    tags = await fetch_candidate_tags(client, registry, repository, top)
    if not tags:
        return RepoResult(image=url, releases=[])

    created_dates = await asyncio.gather(
        *(resolve_created(client, registry, repository, tag) for tag in tags)
    )

    releases = [
        Release(tag=tag, created=created)
        for tag, created in zip(tags, created_dates)
        if created is not None
    ]
    releases.sort(key=lambda release: release.created, reverse=True)
    return RepoResult(image=url, releases=releases[:top])


async def process_mirror_images(
    client: httpx.AsyncClient, urls: Sequence[str], top: int = MAX_RELEASES
) -> list[RepoResult]:
    """Look up all configured mirror repositories concurrently, keeping their order."""
    return list(await asyncio.gather(*(fetch_mirror_releases(client, url, top) for url in urls)))
