"""
routeprobe

Discover the hosts a sandboxed browser session needs by re-running it with a
growing allow-list until the target pages load.

Example usage:

    from routeprobe import Client, Config, Explorer

    explorer = Explorer(
        ["https://example.com"],
        client=Client(Config(binary_path="xcsandbox")),
        route_path="routes.txt",
    )
    result = explorer.run()
    print(result.route_text)
"""

from .client import Client
from .hosts import check_host_name, normalize_host, unmap_ipv4, wildcard_host
from .logs import parse_line, scan_lines, scan_session
from .loop import Explorer, LoopResult, is_affirmative
from .routes import RouteFile
from .types import (
    BLOCK_ALL_UNRESOLVED,
    SECTION_ADD,
    SECTION_BLOCK,
    Blocked,
    Config,
    InvalidHostError,
    Resolution,
    RouteFileError,
    RouteProbeError,
    RunResult,
    RuntimeInvocationError,
)

__version__ = "0.1.0"
__all__ = [
    "Client",
    "Config",
    "Explorer",
    "LoopResult",
    "RouteFile",
    "RunResult",
    "Resolution",
    "Blocked",
    "SECTION_ADD",
    "SECTION_BLOCK",
    "BLOCK_ALL_UNRESOLVED",
    "check_host_name",
    "normalize_host",
    "unmap_ipv4",
    "wildcard_host",
    "parse_line",
    "scan_lines",
    "scan_session",
    "is_affirmative",
    "RouteProbeError",
    "InvalidHostError",
    "RouteFileError",
    "RuntimeInvocationError",
]
