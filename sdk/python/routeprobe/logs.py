"""Network log scanning.

The sandbox writes one or more ``xcnetwork_*`` files per session. Only two
kinds of line matter here:

    Host cdn.example.com resolved to: ::ffff:203.0.113.7
    Connection blocked: 203.0.113.7

Everything else is ignored.
"""

import logging
import re
from pathlib import Path
from typing import Iterable

from .hosts import check_host_name, unmap_ipv4
from .types import HOST_NAME_UNKNOWN, Blocked, Config, NetworkEvent, Resolution

log = logging.getLogger(__name__)

LOG_FILE_PREFIX = "xcnetwork_"

_RESOLVED_RE = re.compile(r"Host (?P<host>\S+) resolved to: (?P<ip>\S+)")
_BLOCKED_RE = re.compile(r"Connection blocked: (?P<ip>\S+)")


def parse_line(line: str) -> NetworkEvent | None:
    m = _RESOLVED_RE.search(line)
    if m:
        return Resolution(host=m.group("host"), ip=unmap_ipv4(m.group("ip")))
    m = _BLOCKED_RE.search(line)
    if m:
        return Blocked(ip=unmap_ipv4(m.group("ip")))
    return None


def scan_lines(lines: Iterable[str]) -> list[str]:
    """Fold log lines into the deduplicated list of blocked destinations.

    A blocked address is reported by hostname when an earlier line resolved
    a valid hostname to it, otherwise by the raw address.
    """
    host_map: dict[str, str] = {}
    blocked: dict[str, None] = {}

    for line in lines:
        event = parse_line(line)
        if isinstance(event, Resolution):
            host_map[event.ip] = event.host
        elif isinstance(event, Blocked):
            host = host_map.get(event.ip)
            if host and check_host_name(host) != HOST_NAME_UNKNOWN:
                blocked[host] = None
            else:
                blocked[event.ip] = None

    return list(blocked)


def log_dir(session_id: str, config: Config | None = None) -> Path:
    if config is None:
        config = Config()
    return Path(config.data_root) / config.log_subdir.format(session_id=session_id)


def _read_session_lines(paths: list[Path]) -> Iterable[str]:
    for path in paths:
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                yield from f
        except OSError as e:
            log.warning("skipping unreadable log file %s: %s", path, e)


def scan_session(session_id: str, config: Config | None = None) -> list[str]:
    """Return the blocked destinations logged for ``session_id``.

    A missing log directory or one with no network logs yields an empty
    list.
    """
    directory = log_dir(session_id, config)
    if not directory.is_dir():
        log.debug("no log directory for session=%s at %s", session_id, directory)
        return []

    paths = sorted(
        p
        for p in directory.iterdir()
        if p.name.startswith(LOG_FILE_PREFIX) and p.is_file()
    )
    if not paths:
        log.debug("no %s* files in %s", LOG_FILE_PREFIX, directory)
        return []

    blocked = scan_lines(_read_session_lines(paths))
    log.info("session=%s blocked=%d files=%d", session_id, len(blocked), len(paths))
    return blocked
