from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from .models import PreconditionError

MIN_PORT = 1
MAX_PORT = 65535


@dataclass(frozen=True)
class PortRange:
    """Strictly ascending, de-duplicated ports in [1, 65535]."""

    ports: Tuple[int, ...]

    def __post_init__(self) -> None:
        if not self.ports:
            raise PreconditionError("Empty port list")
        prev = 0
        for p in self.ports:
            if p < MIN_PORT or p > MAX_PORT:
                raise PreconditionError(f"Invalid port: {p}")
            if p <= prev:
                raise PreconditionError("Ports must be strictly ascending")
            prev = p

    @classmethod
    def of(cls, ports: Iterable[int]) -> "PortRange":
        return cls(tuple(sorted(set(ports))))

    def __iter__(self) -> Iterator[int]:
        return iter(self.ports)

    def __len__(self) -> int:
        return len(self.ports)

    def __contains__(self, port: object) -> bool:
        return port in self.ports

    def describe(self) -> str:
        first, last = self.ports[0], self.ports[-1]
        if last - first + 1 == len(self.ports):
            return f"{first}-{last}" if first != last else str(first)
        return f"{len(self.ports)} ports between {first} and {last}"


def parse_ports(spec: str) -> PortRange:
    """
    Parses a port specification string into a PortRange.
    Supports:
    - Single ports: "80"
    - Ranges: "1-1024"
    - Comma-separated: "22,80,443"
    - Mixed: "1-1024,8080,9000-9005"
    """
    spec = spec.strip()
    if not spec:
        raise PreconditionError("Empty port spec")

    ports: List[int] = []
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            if "-" in part:
                start_s, end_s = part.split("-", 1)
                start = int(start_s)
                end = int(end_s)
                if start < MIN_PORT or end > MAX_PORT or start > end:
                    raise PreconditionError(f"Invalid port range: {part}")
                ports.extend(range(start, end + 1))
            else:
                ports.append(int(part))
        except ValueError as e:
            if isinstance(e, PreconditionError):
                raise
            raise PreconditionError(f"Invalid port spec: {part}") from e

    return PortRange.of(ports)
