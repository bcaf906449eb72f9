"""Registry HTTP API v2 access: tokens, tag listing and image creation dates."""

import logging
import re
import urllib.parse
from datetime import datetime, timezone
from typing import Any, NamedTuple, Optional

import httpx

from .errors import AuthError, ListError

logger = logging.getLogger(__name__)

TAGS_PAGE_SIZE = 1000
MANIFEST_V2_MEDIA_TYPE = "application/vnd.docker.distribution.manifest.v2+json"
USER_AGENT = "container-release-check-mcp/0.1.0"

# Image configs often carry nanosecond timestamps; datetime only keeps microseconds.
_EXTRA_FRACTION_DIGITS = re.compile(r"(\.\d{6})\d+")


class RepoInfo(NamedTuple):
    registry: str
    repository: str


def get_repo_info(url: str) -> RepoInfo:
    """Split a repository URL into registry host and repository path.

    Accepts bare references ("mcr.microsoft.com/oss/foo") as well as API URLs
    ("https://mcr.microsoft.com/v2/oss/foo/tags/list"); both give the same result.

    Args:
        url: The repository URL

    Returns:
        A RepoInfo with the registry host (including any port) and the repository path

    Raises:
        ValueError: If the URL has no host or no repository path
    """
    if not url.startswith("http://") and not url.startswith("https://"):
        url = "https://" + url

    parsed = urllib.parse.urlparse(url)
    registry = parsed.hostname
    if registry and parsed.port:
        registry = f"{registry}:{parsed.port}"
    repository = parsed.path
    if repository.startswith("/v2/"):
        repository = repository[4:]
    if repository.endswith("/tags/list"):
        repository = repository[:-10]
    repository = repository.strip("/")

    if not registry or not repository:
        raise ValueError(
            f"Invalid repository URL: '{url}'. Expected format: 'registry-host/repository/path'"
        )

    return RepoInfo(registry=registry, repository=repository)


def create_registry_client(timeout: float = 30.0) -> httpx.AsyncClient:
    """Create an httpx AsyncClient configured for registry API requests.

    Args:
        timeout: Request timeout in seconds

    Returns:
        Configured httpx AsyncClient
    """
    # Blob downloads are redirected to a storage host
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )


async def fetch_token(client: httpx.AsyncClient, registry: str, repository: str) -> str:
    """Fetch a bearer token allowing metadata reads on one repository.

    Args:
        client: httpx AsyncClient to use for requests
        registry: The registry host
        repository: The repository path

    Returns:
        The access token

    Raises:
        AuthError: If the token endpoint fails or returns no token
    """
    url = f"https://{registry}/oauth2/token"
    params = {
        "service": registry,
        "scope": f"repository:{repository}:metadata_read",
    }

    try:
        response = await client.get(url, params=params)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        raise AuthError(
            f"Failed to get auth token for {repository}: HTTP {e.response.status_code}"
        ) from e
    except (httpx.HTTPError, ValueError) as e:
        raise AuthError(f"Failed to get auth token for {repository}: {e}") from e

    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        raise AuthError(f"Failed to get auth token for {repository}: no access_token in response")
    return token


async def list_tags(
    client: httpx.AsyncClient, registry: str, repository: str, authenticate: bool = True
) -> list[str]:
    """List every tag of a repository, following the 'last' cursor page by page.

    Paging stops only once a page comes back empty, so a repository whose tag
    count is a multiple of the page size costs one extra request. When
    authenticate is set, a new token is requested for each page.

    Args:
        client: httpx AsyncClient to use for requests
        registry: The registry host
        repository: The repository path
        authenticate: Whether to send a bearer token with each page request

    Returns:
        All tags in the order the registry returned them

    Raises:
        AuthError: If a token cannot be obtained
        ListError: If any page cannot be fetched
    """
    url = f"https://{registry}/v2/{repository}/tags/list"
    tags: list[str] = []
    last = ""

    while True:
        headers = {}
        if authenticate:
            token = await fetch_token(client, registry, repository)
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await client.get(
                url, params={"n": TAGS_PAGE_SIZE, "last": last}, headers=headers
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ListError(
                f"Error fetching tags for {repository}: HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ListError(f"Error fetching tags for {repository}: {e}") from e

        page = (data.get("tags") if isinstance(data, dict) else None) or []
        if not isinstance(page, list) or not all(isinstance(tag, str) for tag in page):
            raise ListError(f"Error fetching tags for {repository}: 'tags' is not a list of strings")
        logger.debug(f"Fetched {len(page)} tags for {registry}/{repository} after '{last}'")
        if not page:
            return tags
        if page[-1] == last:
            raise ListError(f"Error fetching tags for {repository}: registry ignored the '{last}' cursor")

        tags.extend(page)
        last = page[-1]


def parse_created(value: Any) -> Optional[datetime]:
    """Parse the 'created' field of an image config into an aware datetime.

    A trailing 'Z' is read as UTC, as are timestamps without any offset.

    Returns:
        The parsed datetime, or None if the value is not an ISO-8601 timestamp
    """
    if not isinstance(value, str):
        return None

    created_str = value.strip()
    if created_str.endswith("Z"):
        created_str = created_str[:-1] + "+00:00"
    created_str = _EXTRA_FRACTION_DIGITS.sub(r"\1", created_str, count=1)

    try:
        created = datetime.fromisoformat(created_str)
    except ValueError:
        return None

    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def _config_digest(manifest: Any) -> Optional[str]:
    if not isinstance(manifest, dict):
        return None
    config = manifest.get("config")
    if not isinstance(config, dict):
        return None
    return config.get("digest") or None


async def resolve_created(
    client: httpx.AsyncClient, registry: str, repository: str, tag: str
) -> Optional[datetime]:
    """Look up when the image behind a tag was built.

    Fetches the tag's manifest to find the config blob digest, then reads the
    'created' timestamp from the config blob. Failures are logged, never raised.

    Args:
        client: httpx AsyncClient to use for requests
        registry: The registry host
        repository: The repository path
        tag: The tag to resolve

    Returns:
        The creation time, or None if it cannot be determined
    """
    base_url = f"https://{registry}/v2/{repository}"

    try:
        manifest_response = await client.get(
            f"{base_url}/manifests/{tag}",
            headers={"Accept": MANIFEST_V2_MEDIA_TYPE},
        )
        manifest_response.raise_for_status()
        digest = _config_digest(manifest_response.json())
        if not digest:
            logger.warning(f"Manifest for {repository}:{tag} does not contain a config digest")
            return None

        config_response = await client.get(f"{base_url}/blobs/{digest}")
        config_response.raise_for_status()
        config = config_response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Error fetching creation date for {repository}:{tag}: {e}")
        return None

    created_str = config.get("created") if isinstance(config, dict) else None
    if not created_str:
        logger.warning(f"Config for {repository}:{tag} does not have a 'created' field")
        return None

    created = parse_created(created_str)
    if created is None:
        logger.warning(f"Config for {repository}:{tag} has an unparsable 'created' field: {created_str!r}")
    return created
