"""Latest tag lookup for images in the private (token protected) registry."""

import asyncio
import logging
from typing import Pattern, Sequence

import httpx

from ..errors import RegistryError
from ..registry import list_tags
from ..structs import PrivateImageTag, PrivateImageError
from ..utils.tag_ranking import rank_latest

logger = logging.getLogger(__name__)


async def fetch_private_image_tag(
    client: httpx.AsyncClient, registry: str, image: str, pattern: Pattern[str]
) -> PrivateImageTag | PrivateImageError:
    """Find the latest tag of one private registry image.

    Args:
        client: httpx AsyncClient to use for requests
        registry: The private registry host
        image: The repository name within the registry
        pattern: Compiled tag pattern whose capture groups are the version parts

    Returns:
        Either a PrivateImageTag on success or PrivateImageError on failure
    """
    try:
        tags = await list_tags(client, registry, image)
        latest_tag = rank_latest(tags, pattern, image=image)
        return PrivateImageTag(image=image, tag=latest_tag)
    except RegistryError as e:
        logger.warning(f"Lookup of {image} on {registry} failed: {e}")
        return PrivateImageError(image=image, error=str(e))
    except Exception as e:
        logger.exception(f"Unexpected error looking up {image} on {registry}")
        return PrivateImageError(image=image, error=f"Failed to fetch latest tag: {e}")


async def process_private_images(
    client: httpx.AsyncClient,
    registry: str,
    images: Sequence[tuple[str, Pattern[str]]],
) -> dict[str, str]:
    """Look up all configured private images concurrently.

    Args:
        client: httpx AsyncClient to use for requests
        registry: The private registry host
        images: (image name, compiled pattern) pairs

    Returns:
        Image name mapped to its latest tag, or to "Error: <reason>" if the lookup failed
    """
    results = await asyncio.gather(
        *(fetch_private_image_tag(client, registry, image, pattern) for image, pattern in images)
    )

    merged: dict[str, str] = {}
    for result in results:
        if isinstance(result, PrivateImageError):
            merged[result.image] = result.display_value()
        else:
            merged[result.image] = result.tag
    return merged
