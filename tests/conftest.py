"""Shared fixtures: an in-memory registry served through httpx.MockTransport."""

import hashlib
import re

import httpx
import pytest


class FakeRegistry:
    """Serves the token, tag list, manifest and blob endpoints of any number of hosts."""

    def __init__(self):
        self.tags: dict[tuple[str, str], list[str]] = {}
        self.manifests: dict[tuple[str, str, str], dict] = {}
        self.blobs: dict[tuple[str, str, str], dict] = {}
        self.failing_tag_lists: set[tuple[str, str]] = set()
        self.failing_tokens: set[tuple[str, str]] = set()
        self.timeouts: set[tuple[str, str]] = set()
        # Served verbatim for every tag list request of the repository
        self.tag_list_bodies: dict[tuple[str, str], object] = {}
        self.requests: list[httpx.Request] = []

    def add_tags(self, host: str, repository: str, tags: list[str]):
        self.tags.setdefault((host, repository), []).extend(tags)

    def add_release(self, host: str, repository: str, tag: str, created: str | None):
        """Register a tag whose image config carries the given 'created' value."""
        self.add_tags(host, repository, [tag])
        digest = "sha256:" + hashlib.sha256(f"{repository}:{tag}".encode()).hexdigest()
        self.manifests[(host, repository, tag)] = {
            "schemaVersion": 2,
            "config": {"digest": digest},
        }
        config = {"architecture": "amd64"}
        if created is not None:
            config["created"] = created
        self.blobs[(host, repository, digest)] = config

    def calls(self, path_part: str) -> list[httpx.Request]:
        return [r for r in self.requests if path_part in r.url.path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        path = request.url.path

        if path == "/oauth2/token":
            repository = request.url.params["scope"].split(":")[1]
            if (host, repository) in self.failing_tokens:
                return httpx.Response(401, json={"errors": [{"code": "UNAUTHORIZED"}]})
            return httpx.Response(200, json={"access_token": f"token-for-{repository}"})

        match = re.fullmatch(r"/v2/(.+)/tags/list", path)
        if match:
            repository = match.group(1)
            if (host, repository) in self.timeouts:
                raise httpx.ReadTimeout("timed out", request=request)
            if (host, repository) in self.failing_tag_lists:
                return httpx.Response(500)
            if (host, repository) in self.tag_list_bodies:
                return httpx.Response(200, json=self.tag_list_bodies[(host, repository)])
            if (host, repository) not in self.tags:
                return httpx.Response(404, json={"errors": [{"code": "NAME_UNKNOWN"}]})
            tags = self.tags[(host, repository)]
            n = int(request.url.params.get("n", "1000"))
            last = request.url.params.get("last", "")
            start = tags.index(last) + 1 if last else 0
            return httpx.Response(200, json={"name": repository, "tags": tags[start:start + n]})

        match = re.fullmatch(r"/v2/(.+)/manifests/([^/]+)", path)
        if match:
            manifest = self.manifests.get((host, match.group(1), match.group(2)))
            if manifest is None:
                return httpx.Response(404)
            return httpx.Response(200, json=manifest)

        match = re.fullmatch(r"/v2/(.+)/blobs/([^/]+)", path)
        if match:
            blob = self.blobs.get((host, match.group(1), match.group(2)))
            if blob is None:
                return httpx.Response(404)
            return httpx.Response(200, json=blob)

        return httpx.Response(404)


@pytest.fixture
def fake_registry():
    return FakeRegistry()


@pytest.fixture
async def registry_client(fake_registry):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_registry.handler)) as client:
        yield client
