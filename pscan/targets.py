from __future__ import annotations

import ipaddress
import socket
from typing import Dict, List

from .models import PreconditionError, Target


def _family_of(ip) -> int:
    return socket.AF_INET6 if ip.version == 6 else socket.AF_INET


def resolve_target(target: str) -> List[Target]:
    """
    Supports:
      - Single IP: "172.20.0.10" or "::1"
      - Hostname: "webapp" (may resolve to several addresses)
    Returns distinct addresses, IPv4 first, each in ascending order.
    IPv6 scope ids ("fe80::1%eth0") are kept; connect() needs them.
    """
    target = target.strip()
    if not target:
        raise PreconditionError("Empty target")

    # Literal addresses need no lookup
    try:
        ip = ipaddress.ip_address(target)
        return [Target(host=target, address=str(ip), family=_family_of(ip))]
    except ValueError:
        pass

    try:
        infos = socket.getaddrinfo(target, None, proto=socket.IPPROTO_TCP)
    except (socket.gaierror, UnicodeError) as e:
        raise PreconditionError(f"Could not resolve target '{target}': {e}") from e

    # raw address (scope id included) -> parsed address without scope, for ordering
    found: Dict[str, object] = {}
    for info in infos:
        raw = info[4][0]
        found[raw] = ipaddress.ip_address(raw.split("%", 1)[0])
    if not found:
        raise PreconditionError(f"No IP addresses found for target '{target}'")

    ordered = sorted(found, key=lambda raw: (found[raw].version, found[raw], raw))
    return [Target(host=target, address=raw, family=_family_of(found[raw])) for raw in ordered]
