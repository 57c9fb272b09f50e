from __future__ import annotations

from typing import Any

import httpx

from .errors import DecodeError, PiccoloError, ProtocolError, TransportError
from .events import EventLog
from .models import CatalogState, Credential, parse_catalogs, parse_credential
from .settings import Settings

AUTH_PATH = "/v1alpha2/users/auth"
CATALOGS_PATH = "/v1alpha2/catalogs/registry"


class ControlPlaneClient:
    """HTTP client for the control plane's auth and catalog registry endpoints.

    Public calls never raise: any transport, status or decode problem is logged
    and turned into an absent credential / empty catalog list. There is no retry
    here; the next agent tick is the retry.
    """

    def __init__(
        self,
        settings: Settings,
        events: EventLog | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.settings = settings
        self.events = events or EventLog()
        self._http = httpx.Client(
            base_url=settings.base_url,
            timeout=settings.request_timeout_s,
            follow_redirects=False,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ControlPlaneClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def authenticate(self, username: str, password: str) -> Credential | None:
        try:
            data = self._request("POST", AUTH_PATH, json={"username": username, "password": password})
            return parse_credential(data)
        except PiccoloError as e:
            self.events.log_event("WARN", f"authentication failed: {type(e).__name__}: {e}")
            return None

    def fetch_catalogs(self, credential: Credential) -> list[CatalogState]:
        try:
            data = self._request(
                "GET",
                CATALOGS_PATH,
                headers={"Authorization": f"Bearer {credential.access_token}"},
            )
            return parse_catalogs(data)
        except PiccoloError as e:
            self.events.log_event("WARN", f"get desired state failed: {type(e).__name__}: {e}")
            return []

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise TransportError(f"{method} {path} timed out after {self.settings.request_timeout_s}s") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path}: {e}") from e
        except ValueError as e:
            # e.g. a header value httpx cannot encode
            raise TransportError(f"{method} {path}: cannot build request: {e}") from e
        if not resp.is_success:
            raise ProtocolError(resp.status_code, f"{method} {path} returned HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(f"{method} {path} returned invalid JSON") from e
