from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_str(env: Mapping[str, str], name: str, default: str | None) -> str | None:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    # Control plane
    control_plane_url: str = "http://localhost:8082"
    auth_username: str = "admin"
    auth_password: str = ""
    request_timeout_s: int = 10

    # Loop
    poll_interval_s: int = 15
    runtime_timeout_s: int = 60

    # Observability
    events_db_path: str | None = None
    log_level: str = "INFO"

    @property
    def base_url(self) -> str:
        return self.control_plane_url.rstrip("/")


class ConfigFile(BaseModel):
    """On-disk JSON configuration, camelCase keys."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    control_plane_url: str | None = Field(None, alias="controlPlaneURL")
    auth_username: str | None = Field(None, alias="authUsername")
    auth_password: str | None = Field(None, alias="authPassword")
    poll_interval_s: int | None = Field(None, ge=1, alias="pollIntervalSeconds")
    request_timeout_s: int | None = Field(None, ge=1, alias="requestTimeoutSeconds")
    runtime_timeout_s: int | None = Field(None, ge=1, alias="runtimeTimeoutSeconds")
    events_db_path: str | None = Field(None, alias="eventsDbPath")
    log_level: str | None = Field(None, alias="logLevel")


ENV_PREFIX = "PICCOLO_"


def _from_file(base: Settings, path: str) -> Settings:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e
    try:
        parsed = ConfigFile.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
    return replace(base, **parsed.model_dump(exclude_none=True))


def _from_env(base: Settings, env: Mapping[str, str]) -> Settings:
    return replace(
        base,
        control_plane_url=_env_str(env, f"{ENV_PREFIX}CONTROL_PLANE_URL", base.control_plane_url),
        auth_username=_env_str(env, f"{ENV_PREFIX}AUTH_USERNAME", base.auth_username),
        # Password is taken verbatim, whitespace included.
        auth_password=env.get(f"{ENV_PREFIX}AUTH_PASSWORD", base.auth_password),
        poll_interval_s=_env_int(env, f"{ENV_PREFIX}POLL_INTERVAL_S", base.poll_interval_s),
        request_timeout_s=_env_int(env, f"{ENV_PREFIX}REQUEST_TIMEOUT_S", base.request_timeout_s),
        runtime_timeout_s=_env_int(env, f"{ENV_PREFIX}RUNTIME_TIMEOUT_S", base.runtime_timeout_s),
        events_db_path=_env_str(env, f"{ENV_PREFIX}EVENTS_DB", base.events_db_path) or None,
        log_level=(_env_str(env, f"{ENV_PREFIX}LOG_LEVEL", base.log_level) or base.log_level).upper(),
    )


def load_settings(
    config_path: str | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Resolve settings once: defaults < config file < environment < overrides.

    ``overrides`` holds explicit values (typically CLI flags); ``None`` entries are ignored.
    """
    env = os.environ if env is None else env
    s = Settings()
    if config_path:
        s = _from_file(s, config_path)
    s = _from_env(s, env)

    if overrides:
        known = {f.name for f in fields(Settings)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
        s = replace(s, **{k: v for k, v in overrides.items() if v is not None})

    if not s.control_plane_url.startswith(("http://", "https://")):
        raise ConfigError(f"controlPlaneURL must be an http(s) URL, got {s.control_plane_url!r}")
    for name in ("poll_interval_s", "request_timeout_s", "runtime_timeout_s"):
        if getattr(s, name) < 1:
            raise ConfigError(f"{name} must be >= 1")
    return s
