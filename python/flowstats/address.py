"""IPv4/IPv6 socket addresses carried by the stats header and flow identities."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum, unique

from .errors import InvalidAddressVariant
from .utils import format_ip


@unique
class AddressFamily(Enum):
    """Address variant tag, valued with its wire ``addr_type`` byte."""

    V4 = 4
    V6 = 6

    @property
    def octet_count(self) -> int:
        return 4 if self is AddressFamily.V4 else 16


@dataclass(frozen=True)
class SocketAddress:
    family: AddressFamily
    octets: bytes
    port: int

    def __post_init__(self) -> None:
        if not isinstance(self.family, AddressFamily):
            raise InvalidAddressVariant(f"Unknown address family: {self.family!r}")
        if not isinstance(self.octets, (bytes, bytearray)) or len(self.octets) != self.family.octet_count:
            raise InvalidAddressVariant(
                f"{self.family.name} address needs {self.family.octet_count} octets, got {self.octets!r}"
            )
        if not 0 <= int(self.port) <= 0xFFFF:
            raise InvalidAddressVariant(f"Port out of range: {self.port}")
        object.__setattr__(self, "octets", bytes(self.octets))

    # Constructors --------------------------------------------------------
    @classmethod
    def ipv4(cls, host: str, port: int) -> "SocketAddress":
        return cls(AddressFamily.V4, ipaddress.IPv4Address(host).packed, port)

    @classmethod
    def ipv6(cls, host: str, port: int) -> "SocketAddress":
        return cls(AddressFamily.V6, ipaddress.IPv6Address(host).packed, port)

    @classmethod
    def from_octets(cls, octets: bytes, port: int) -> "SocketAddress":
        """Pick the family from the buffer length (4 or 16 bytes)."""
        if len(octets) == 4:
            return cls(AddressFamily.V4, octets, port)
        if len(octets) == 16:
            return cls(AddressFamily.V6, octets, port)
        raise InvalidAddressVariant(f"Address must be 4 or 16 octets, got {len(octets)}")

    @classmethod
    def parse(cls, text: str) -> "SocketAddress":
        """Parse ``a.b.c.d:port`` or ``[v6]:port``."""
        host, sep, port = text.rpartition(":")
        if not sep or not port.isdigit():
            raise InvalidAddressVariant(f"Not a socket address: {text!r}")
        try:
            if host.startswith("[") and host.endswith("]"):
                return cls.ipv6(host[1:-1], int(port))
            return cls.ipv4(host, int(port))
        except ipaddress.AddressValueError as exc:
            raise InvalidAddressVariant(f"Not a socket address: {text!r}") from exc

    # ---------------------------------------------------------------------
    @property
    def is_ipv4(self) -> bool:
        return self.family is AddressFamily.V4

    @property
    def host(self) -> str:
        return format_ip(self.octets)

    def __str__(self) -> str:
        if self.is_ipv4:
            return f"{self.host}:{self.port}"
        return f"[{self.host}]:{self.port}"


def require_address(value: object, what: str = "address") -> SocketAddress:
    """Return ``value`` if it is a valid socket address, otherwise fail."""
    if not isinstance(value, SocketAddress):
        raise InvalidAddressVariant(
            f"{what} is not correct! Type must be an IPv4 or IPv6 socket address, got {value!r}"
        )
    return value


__all__ = ["AddressFamily", "SocketAddress", "require_address"]
