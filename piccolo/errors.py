from __future__ import annotations


class PiccoloError(Exception):
    """Base class for every error raised inside the agent."""


class ConfigError(PiccoloError):
    """Agent configuration could not be resolved at startup."""


class TransportError(PiccoloError):
    """Control plane unreachable or the request timed out."""


class ProtocolError(PiccoloError):
    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        super().__init__(message or f"HTTP {status_code}")


class DecodeError(PiccoloError):
    """Response body does not have the expected shape."""


class ConfigurationError(PiccoloError):
    """A component's desired state cannot be acted on (no name / no image)."""


class RuntimeInvocationError(PiccoloError):
    """The container runtime could not be reached at all."""


class RuntimeExitFailure(PiccoloError):
    """The runtime was reached but refused to start the container."""
