"""Type definitions for routeprobe."""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, TypeAlias

SECTION_ADD = "ip-add"
SECTION_BLOCK = "ip-block"
BLOCK_ALL_UNRESOLVED = "0.0.0.0"

HOST_NAME_UNKNOWN = "unknown"
HOST_NAME_DNS = "dns"
HOST_NAME_IPV4 = "ipv4"
HOST_NAME_IPV6 = "ipv6"

HostNameType: TypeAlias = Literal["unknown", "dns", "ipv4", "ipv6"]

DEFAULT_RUNTIME = "xcsandbox"
DEFAULT_LOG_SUBDIR = os.path.join("xcsandbox", "sessions", "{session_id}", "logs")


def user_data_root() -> Path:
    """Return the user-scoped application-data root."""
    override = os.environ.get("ROUTEPROBE_DATA_ROOT")
    if override:
        return Path(override)
    if sys.platform == "win32" and os.environ.get("LOCALAPPDATA"):
        return Path(os.environ["LOCALAPPDATA"])
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".local" / "share"


@dataclass
class Config:
    """Runtime and log location configuration."""

    binary_path: str = DEFAULT_RUNTIME
    """Path to the sandbox runtime binary."""

    use_sudo: bool = False
    """Whether to run the runtime with sudo."""

    data_root: Path = field(default_factory=user_data_root)
    """Application-data root that session log directories live under."""

    log_subdir: str = DEFAULT_LOG_SUBDIR
    """Log directory relative to data_root; ``{session_id}`` is substituted."""

    @classmethod
    def from_env(cls) -> "Config":
        return cls(binary_path=os.environ.get("ROUTEPROBE_RUNTIME", DEFAULT_RUNTIME))


@dataclass(frozen=True)
class Resolution:
    """A logged hostname resolution."""

    host: str
    ip: str


@dataclass(frozen=True)
class Blocked:
    """A logged blocked outbound connection."""

    ip: str


NetworkEvent: TypeAlias = Resolution | Blocked


@dataclass
class RunResult:
    """Result of one sandbox runtime invocation."""

    session_id: str
    """Sandbox/container identifier reported by the runtime."""

    exit_code: int = 0
    """Runtime process exit code."""

    raw: dict[str, Any] = field(default_factory=dict)
    """Full decoded result payload."""


class RouteProbeError(Exception):
    """Base exception for routeprobe errors."""

    pass


class InvalidHostError(RouteProbeError, ValueError):
    """Input could not be interpreted as a URL with a usable host."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"invalid host: {value!r}")


class RuntimeInvocationError(RouteProbeError):
    """The sandbox runtime could not be run or its result could not be read."""

    def __init__(self, message: str, exit_code: int | None = None, stderr: str = ""):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(message)


class RouteFileError(RouteProbeError):
    """A route file exists but could not be read, or could not be written."""

    def __init__(self, path: str | os.PathLike[str], message: str):
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")
