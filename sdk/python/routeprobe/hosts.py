"""Host normalization and hostname classification.

Input URLs are reduced to a canonical hostname and wrapped as a wildcard
``ip-add`` entry:

    >>> wildcard_host('"www.Example.com/path"')
    '*.example.com'
"""

import ipaddress
import re
from urllib.parse import urlsplit

from .types import (
    HOST_NAME_DNS,
    HOST_NAME_IPV4,
    HOST_NAME_IPV6,
    HOST_NAME_UNKNOWN,
    HostNameType,
    InvalidHostError,
)

_QUOTES = ('"', "'")
_LABEL = re.compile(r"^(?!-)[A-Za-z0-9_-]{1,63}(?<!-)$")
_MAX_NAME_LENGTH = 253


def check_host_name(name: str) -> HostNameType:
    """Classify ``name`` as an IPv4/IPv6 literal, a DNS name, or unknown."""
    if not name:
        return HOST_NAME_UNKNOWN

    literal = name
    if literal.startswith("[") and literal.endswith("]"):
        literal = literal[1:-1]
    try:
        addr = ipaddress.ip_address(literal)
    except ValueError:
        pass
    else:
        return HOST_NAME_IPV4 if addr.version == 4 else HOST_NAME_IPV6

    if name.endswith("."):
        name = name[:-1]
    if not name or len(name) > _MAX_NAME_LENGTH:
        return HOST_NAME_UNKNOWN
    if all(_LABEL.match(label) for label in name.split(".")):
        return HOST_NAME_DNS
    return HOST_NAME_UNKNOWN


def unmap_ipv4(address: str) -> str:
    """Return the embedded dotted quad of an IPv4-mapped IPv6 address.

    Any other input, including strings that are not addresses at all, is
    returned unchanged.
    """
    try:
        addr = ipaddress.ip_address(address)
    except ValueError:
        return address
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return str(addr.ipv4_mapped)
    return address


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value


def _parse_host(value: str) -> str | None:
    try:
        parts = urlsplit(value)
        host = parts.hostname
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc or not host:
        return None
    if check_host_name(host) == HOST_NAME_UNKNOWN:
        return None
    return host.rstrip(".")


def normalize_host(raw: str) -> str:
    """Reduce a URL-like string to its canonical hostname.

    Tries ``raw`` as an absolute URL first and, unless it already names a
    scheme, again with an ``http://`` prefix. A leading ``www.`` label is
    dropped.

    Raises:
        InvalidHostError: neither attempt produced a usable host.
    """
    value = _strip_quotes(raw.strip()).strip()
    host = _parse_host(value)
    if host is None and "://" not in value:
        host = _parse_host("http://" + value)
    if host is None:
        raise InvalidHostError(raw)
    if host.startswith("www."):
        host = host[4:]
    return host


def wildcard_host(raw: str) -> str:
    """Return the ``*.<hostname>`` allow entry for ``raw``."""
    return "*." + normalize_host(raw)
