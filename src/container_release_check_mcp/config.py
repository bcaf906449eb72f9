"""Configuration of the tracked images, read once at process start."""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Pattern

import yaml


DEFAULT_PRIVATE_REGISTRY = "linuxgeneva-microsoft.azurecr.io"

# Image name -> tag pattern. Capture groups are the version parts, most significant first.
DEFAULT_PRIVATE_IMAGE_PATTERNS: dict[str, str] = {
    "genevamdsd": r"^mariner_(\d{8})\.(\d{1,2})$",  # e.g. mariner_20230101.1
    "genevamdm": r"^(\d{1,2})\.(\d{4})\.(\d{1,4})\.(\d{1,4})-.*$",  # e.g. 2.2023.210.1249-c1f0d4-20230210t1402
    "genevafluentd_td-agent": r"^mariner_(\d{8})\.(\d{1,2})$",
    "genevafluentd": r"^mariner_(\d{8})\.(\d{1,2})$",
    "genevasecpackinstall": r"^master_(\d{8})\.(\d{1,2})$",
}

DEFAULT_MIRROR_IMAGE_URLS: tuple[str, ...] = (
    "mcr.microsoft.com/azure-watson/agent/agent_mariner",
    "mcr.microsoft.com/oss/kubernetes-csi/livenessprobe",
    "mcr.microsoft.com/oss/kubernetes-csi/csi-node-driver-registrar",
    "mcr.microsoft.com/oss/azure/secrets-store/provider-azure",
    "mcr.microsoft.com/oss/kubernetes-csi/secrets-store/driver",
)

DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_MIRROR_TOP_N = 5


@dataclass(frozen=True)
class TrackerConfig:
    private_registry: str = DEFAULT_PRIVATE_REGISTRY
    private_images: tuple[tuple[str, Pattern[str]], ...] = ()
    mirror_images: tuple[str, ...] = DEFAULT_MIRROR_IMAGE_URLS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    mirror_top_n: int = DEFAULT_MIRROR_TOP_N


def compile_image_patterns(patterns: Mapping[str, str]) -> tuple[tuple[str, Pattern[str]], ...]:
    """Compile an image name -> pattern mapping, keeping its order.

    Raises:
        ValueError: If a pattern is not a valid regular expression
    """
    compiled = []
    for image, pattern in patterns.items():
        try:
            compiled.append((str(image), re.compile(pattern, re.IGNORECASE)))
        except (re.error, TypeError) as e:
            raise ValueError(f"Invalid tag pattern for image '{image}': {e}") from e
    return tuple(compiled)


def _load_yaml_overrides(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")

    private_registry = data.get("private_registry")
    if private_registry is not None and not isinstance(private_registry, str):
        raise ValueError(f"'private_registry' in {path} must be a registry host name")

    private_images = data.get("private_images")
    if private_images is not None and not isinstance(private_images, dict):
        raise ValueError(f"'private_images' in {path} must map image names to tag patterns")

    mirror_images = data.get("mirror_images")
    if mirror_images is not None and not (
        isinstance(mirror_images, list) and all(isinstance(url, str) for url in mirror_images)
    ):
        raise ValueError(f"'mirror_images' in {path} must be a list of repository URLs")

    return data


def load_config(environ: Optional[Mapping[str, str]] = None) -> TrackerConfig:
    """Build the tracker configuration from environment variables.

    CONTAINER_RELEASE_CONFIG may point to a YAML file with 'private_registry',
    'private_images' and 'mirror_images' keys; any key it sets replaces the
    built-in default.

    Args:
        environ: Environment to read, defaults to os.environ

    Returns:
        The immutable configuration

    Raises:
        ValueError: If the YAML file or a pattern in it is invalid
    """
    if environ is None:
        environ = os.environ

    private_registry = environ.get("PRIVATE_REGISTRY_HOST", DEFAULT_PRIVATE_REGISTRY)
    private_patterns: Mapping[str, str] = DEFAULT_PRIVATE_IMAGE_PATTERNS
    mirror_images = DEFAULT_MIRROR_IMAGE_URLS

    config_path = environ.get("CONTAINER_RELEASE_CONFIG")
    if config_path:
        overrides = _load_yaml_overrides(Path(config_path))
        private_registry = overrides.get("private_registry") or private_registry
        if overrides.get("private_images") is not None:
            private_patterns = overrides["private_images"]
        if overrides.get("mirror_images") is not None:
            mirror_images = tuple(overrides["mirror_images"])

    return TrackerConfig(
        private_registry=private_registry,
        private_images=compile_image_patterns(private_patterns),
        mirror_images=mirror_images,
        request_timeout=float(environ.get("REGISTRY_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT)),
        mirror_top_n=int(environ.get("MIRROR_TOP_N", DEFAULT_MIRROR_TOP_N)),
    )
