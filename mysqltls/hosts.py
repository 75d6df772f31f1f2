"""Host descriptor parsing for connect calls."""

from __future__ import annotations

import re

from .models import ConnectionTarget, DriverGeneration

_IPV6_PATTERN = re.compile(r"^(?:\[)?(?P<host>[0-9a-fA-F:]+)(?:\]:(?P<port>\d+))?")
_HOST_PATTERN = re.compile(r"^(?P<host>[^:/]*)(?::(?P<port>\d+))?")


def parse_host(raw: str) -> ConnectionTarget | None:
    """Split a raw host string into host, port, socket path and IPv6 flag.

    Accepted shapes are ``hostname``, ``hostname:port``,
    ``hostname:/path/to/socket``, ``[ipv6]`` and ``[ipv6]:port``. Returns
    ``None`` when the string cannot be decomposed; callers then use the raw
    value as the host.
    """

    host = raw
    socket_path: str | None = None
    socket_pos = host.find(":/")
    if socket_pos != -1:
        socket_path = host[socket_pos + 1 :]
        host = host[:socket_pos]

    is_ipv6 = host.count(":") > 1
    pattern = _IPV6_PATTERN if is_ipv6 else _HOST_PATTERN
    match = pattern.match(host)
    if match is None:
        return None

    port = match.group("port")
    return ConnectionTarget(
        host=match.group("host") or "",
        port=int(port) if port else None,
        socket_path=socket_path,
        is_ipv6=is_ipv6,
    )


def resolve_target(
    raw: str,
    generation: DriverGeneration,
    *,
    bracket_ipv6: bool = False,
) -> ConnectionTarget:
    """Parse ``raw`` and apply driver-specific IPv6 bracketing.

    ``bracket_ipv6`` is the driver's answer to whether its resolver wants
    literals as ``[addr]``; it only applies to the modern generation.
    """

    target = parse_host(raw) or ConnectionTarget(host=raw)
    if target.is_ipv6 and generation is DriverGeneration.MODERN and bracket_ipv6:
        return target.bracketed()
    return target


__all__ = ["parse_host", "resolve_target"]
