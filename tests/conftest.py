import os as _os
import sys

import httpx
import pytest
from docker.errors import APIError, DockerException

# Ensure project root is importable when running `pytest` from a checkout.
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from piccolo.settings import Settings  # noqa: E402


class FakeContainer:
    def __init__(self, name, image):
        self.name = name
        self.image = image
        self.short_id = f"c{abs(hash(name)) % 10**10:010d}"[:10]


class FakeContainers:
    """Mimics the subset of docker-py's ContainerCollection the agent uses."""

    def __init__(self):
        self.running: dict[str, FakeContainer] = {}
        self.run_calls: list[tuple[str, str]] = []
        self.list_error: Exception | None = None
        self.run_error: Exception | None = None
        self.start_on_run = True

    def list(self, all=False, filters=None):
        if self.list_error is not None:
            raise self.list_error
        needle = (filters or {}).get("name", "")
        # The daemon's name filter matches substrings.
        return [c for n, c in self.running.items() if needle in n]

    def run(self, image, name=None, detach=False, **kwargs):
        self.run_calls.append((name, image))
        if self.run_error is not None:
            raise self.run_error
        c = FakeContainer(name, image)
        if self.start_on_run:
            self.running[name] = c
        return c


class FakeDockerClient:
    def __init__(self):
        self.containers = FakeContainers()
        self.ping_error: Exception | None = None

    def ping(self):
        if self.ping_error is not None:
            raise self.ping_error
        return True


@pytest.fixture
def docker_client():
    return FakeDockerClient()


@pytest.fixture
def settings():
    return Settings(
        control_plane_url="http://cp.test",
        auth_username="admin",
        auth_password="",
        poll_interval_s=15,
        request_timeout_s=2,
    )


def component(name, image="nginx:latest", ctype="container"):
    props = {"container.image": image} if image is not None else {}
    return {"name": name, "type": ctype, "properties": props}


def catalog(name, components=None, removed=None, site="hq"):
    props = {}
    if components is not None:
        props["components"] = components
    if removed is not None:
        props["removed-components"] = removed
    return {
        "id": f"{name}-id",
        "spec": {
            "siteId": site,
            "name": name,
            "type": "instance",
            "properties": props,
            "generation": "1",
        },
        "status": {"properties": {}},
    }


TOKEN = {"accessToken": "tok-123", "tokenType": "Bearer", "username": "admin", "roles": ["administrator"]}


class ControlPlaneStub:
    """Request handler for httpx.MockTransport that records what it served."""

    def __init__(self, catalogs=None, token=TOKEN, auth_status=200, catalogs_status=200):
        self.catalogs = catalogs if catalogs is not None else []
        self.token = token
        self.auth_status = auth_status
        self.catalogs_status = catalogs_status
        self.requests: list[httpx.Request] = []

    def paths(self):
        return [r.url.path for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/v1alpha2/users/auth":
            return httpx.Response(self.auth_status, json=self.token)
        if request.url.path == "/v1alpha2/catalogs/registry":
            if request.headers.get("Authorization") != f"Bearer {TOKEN['accessToken']}":
                return httpx.Response(401)
            return httpx.Response(self.catalogs_status, json=self.catalogs)
        return httpx.Response(404)


def api_error(msg="Conflict. The container name is already in use"):
    return APIError("409 Client Error", explanation=msg)


def daemon_down():
    return DockerException("Error while fetching server API version")
