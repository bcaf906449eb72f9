"""Main dispatcher combining the private and mirror registry lookups."""

import asyncio
import logging
from typing import Optional

import httpx

from ..config import TrackerConfig, load_config
from .fetchers import process_private_images, process_mirror_images
from .registry import create_registry_client
from .structs import AggregateResult

logger = logging.getLogger(__name__)


async def fetch_all_releases(
    config: Optional[TrackerConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> AggregateResult:
    """Fetch the latest private tags and recent mirror releases in one go.

    Both registries are queried concurrently. Per-image failures are already
    contained by the fetchers; anything else that goes wrong yields an empty
    result instead of an exception.

    Args:
        config: The tracked images, defaults to the configuration from the environment
        client: httpx AsyncClient to use; a new one is created and closed per call if omitted

    Returns:
        The combined AggregateResult
    """
    try:
        if config is None:
            config = load_config()

        if client is None:
            async with create_registry_client(timeout=config.request_timeout) as own_client:
                return await _gather_results(own_client, config)
        return await _gather_results(client, config)
    except Exception:
        logger.exception("Failed to fetch image releases, returning an empty result")
        return AggregateResult()


async def _gather_results(client: httpx.AsyncClient, config: TrackerConfig) -> AggregateResult:
    private_images, mirror_images = await asyncio.gather(
        process_private_images(client, config.private_registry, config.private_images),
        process_mirror_images(client, config.mirror_images, config.mirror_top_n),
    )
    return AggregateResult(privateImages=private_images, mirrorImages=mirror_images)
