from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

# Well-known ports only; anything else has no hint.
SERVICE_HINTS: Mapping[int, str] = MappingProxyType({
    20: "ftp",
    21: "ftp",
    22: "ssh",
    23: "telnet",
    25: "smtp",
    53: "dns",
    80: "http",
    110: "pop3",
    135: "msrpc",
    139: "netbios",
    143: "imap",
    443: "https",
    445: "smb",
    3306: "mysql",
    3389: "rdp",
    5432: "postgres",
    6379: "redis",
    8000: "http-alt",
    8080: "http-alt",
    8443: "https-alt",
})


def service_hint(port: int) -> Optional[str]:
    return SERVICE_HINTS.get(port)
