from __future__ import annotations

from typing import Any

import docker
from docker.errors import APIError, DockerException
from requests.exceptions import RequestException

from .errors import RuntimeExitFailure, RuntimeInvocationError
from .events import EventLog


class DockerRuntime:
    """The two container runtime primitives the agent needs: inspect-by-name and launch."""

    def __init__(self, timeout_s: int = 60, client: Any = None, events: EventLog | None = None):
        self.timeout_s = timeout_s
        self.events = events or EventLog()
        self._client = client

    def _get_client(self) -> docker.DockerClient:
        if self._client is None:
            # Raises DockerException when the daemon cannot be reached.
            self._client = docker.from_env(timeout=self.timeout_s)
        return self._client

    def docker_available(self) -> bool:
        try:
            self._get_client().ping()
            return True
        except (DockerException, RequestException):
            return False

    def is_running(self, name: str) -> bool:
        """True iff a running container has exactly this name.

        The daemon's name filter is a substring match, so results are re-checked.
        A failed query counts as not running.
        """
        try:
            containers = self._get_client().containers.list(filters={"name": name})
        except (DockerException, RequestException) as e:
            self.events.log_event("WARN", f"runtime query failed, assuming not running: {e}", component=name)
            return False
        return any(c.name == name for c in containers)

    def launch(self, name: str, image: str) -> str:
        """Start a detached container ``name`` from ``image``; returns its short id."""
        try:
            container = self._get_client().containers.run(image, name=name, detach=True)
        except APIError as e:
            raise RuntimeExitFailure(f"docker run {image} as {name} failed: {e.explanation or e}") from e
        except (DockerException, RequestException) as e:
            raise RuntimeInvocationError(f"container runtime unavailable: {e}") from e
        return getattr(container, "short_id", None) or str(getattr(container, "id", ""))[:12]
