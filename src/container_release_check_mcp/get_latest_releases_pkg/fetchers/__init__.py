"""Registry specific release fetchers."""

from .private_registry import fetch_private_image_tag, process_private_images
from .mirror_registry import fetch_candidate_tags, fetch_mirror_releases, process_mirror_images

__all__ = [
    "fetch_private_image_tag",
    "process_private_images",
    "fetch_candidate_tags",
    "fetch_mirror_releases",
    "process_mirror_images",
]
