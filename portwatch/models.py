from __future__ import annotations
import enum
import ipaddress
from dataclasses import dataclass
from typing import List, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class AddressScope(str, enum.Enum):
    LOOPBACK = "loopback"
    WILDCARD = "wildcard"
    ROUTABLE = "routable"


@dataclass(frozen=True)
class ServedPort:
    address: IPAddress
    port: int
    bound_to_localhost: bool

    def __post_init__(self):
        from .utils.net import is_bound_to_localhost
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port {self.port} out of range")
        if self.bound_to_localhost != is_bound_to_localhost(self.address):
            raise ValueError(f"bound_to_localhost={self.bound_to_localhost} does not match address {self.address}")

    @classmethod
    def of(cls, address: IPAddress, port: int) -> "ServedPort":
        from .utils.net import is_bound_to_localhost
        return cls(address=address, port=port, bound_to_localhost=is_bound_to_localhost(address))

    @property
    def scope(self) -> AddressScope:
        from .utils.net import classify_scope
        return classify_scope(self.address)

    def sort_key(self) -> tuple[int, bytes]:
        return (self.port, self.address.packed)

    def to_dict(self) -> dict:
        return {
            "address": str(self.address),
            "port": self.port,
            "bound_to_localhost": self.bound_to_localhost,
            "scope": self.scope.value,
            "family": self.address.version,
        }


# IPv4 entries first, then IPv6; each family ordered by (port, packed address)
Snapshot = List[ServedPort]


def sort_ports(ports) -> list[ServedPort]:
    """Order one family's ports by (port, address) and drop repeated entries."""
    seen: set[ServedPort] = set()
    out: list[ServedPort] = []
    for p in sorted(ports, key=ServedPort.sort_key):
        if p in seen:
            continue
        seen.add(p)
        out.append(p)
    return out
