"""
Node Address Value Object

Architectural Intent:
- A routable node address found by one of the NodePort lookup strategies
- Records which strategy produced it and whether it is expected to be externally reachable
"""

import ipaddress
from dataclasses import dataclass

_PRIVATE_RANGES = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
)


def is_rfc1918(address: str) -> bool:
    """True for IPv4 addresses in 10/8, 172.16/12 or 192.168/16.

    Anything that does not parse as an IPv4 address is not private.
    """
    try:
        ip = ipaddress.ip_address(address.strip())
    except ValueError:
        return False
    if ip.version != 4:
        return False
    return any(ip in network for network in _PRIVATE_RANGES)


@dataclass(frozen=True)
class NodeAddress:
    address: str
    source: str
    externally_routable: bool = True

    def __post_init__(self) -> None:
        if not self.address:
            raise ValueError("Node address cannot be empty")

    def __str__(self) -> str:
        return self.address
