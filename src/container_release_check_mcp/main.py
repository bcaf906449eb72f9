"""MCP server reporting the latest release tags of the tracked container images."""

import logging
import os

from fastmcp import FastMCP

from .config import load_config
from .get_latest_releases_pkg.dispatcher import fetch_all_releases
from .get_latest_releases_pkg.structs import AggregateResult, TrackedImages, TrackedPrivateImage


config = load_config()

mcp = FastMCP("Container Release Check")


@mcp.tool()
async def get_latest_image_releases() -> AggregateResult:
    """Get the latest release tags of all tracked container images.

    Returns, for every private registry image, the tag with the highest
    version according to the image's tag naming scheme (or an 'Error: ...'
    string if it could not be determined), and for every mirror registry
    repository up to five recent releases with their creation time, newest
    first. Every call queries the registries again.
    """
    return await fetch_all_releases(config)


@mcp.tool()
async def get_tracked_images() -> TrackedImages:
    """Get the private registry images (with their tag patterns) and mirror repositories that are tracked."""
    return TrackedImages(
        private_registry=config.private_registry,
        private_images=[
            TrackedPrivateImage(image=image, pattern=pattern.pattern)
            for image, pattern in config.private_images
        ],
        mirror_images=list(config.mirror_images),
    )


def main():
    """Main entry point for the MCP server."""
    # stdout carries the MCP stdio transport, so logs go to stderr
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run()


if __name__ == "__main__":
    main()
