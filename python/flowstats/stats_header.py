"""Per-packet statistics header carried at the start of every test payload.

Wire layout (network byte order)::

    seq:u32 | ts:u64 | node_id:u32 | app_id:u32 | addr_type:u8 | addr:4B/16B | port:u16

``ts`` is the send time in integer time steps, ``node_id``/``app_id``
identify the sending application and ``address`` is the peer (destination)
socket address of the flow. Bytes following the header are kept in ``data``.
"""

from __future__ import annotations

import struct
from typing import Optional

import dpkt

from .address import AddressFamily, SocketAddress, require_address
from .errors import InvalidAddressVariant
from .utils import steps_to_seconds

_PORT_FMT = ">H"
_PORT_LEN = struct.calcsize(_PORT_FMT)


class StatsHeader(dpkt.Packet):
    """Sequence number, send timestamp, origin ids and peer address."""

    __hdr__ = (
        ("seq", "I", 0),
        ("ts", "Q", 0),
        ("node_id", "I", 0),
        ("app_id", "I", 0),
        ("addr_type", "B", 0),
    )

    address: Optional[SocketAddress] = None

    def unpack(self, buf: bytes) -> None:
        dpkt.Packet.unpack(self, buf)
        try:
            family = AddressFamily(self.addr_type)
        except ValueError:
            raise InvalidAddressVariant(
                f"Deserialize: unknown address type {self.addr_type}, expected 4 or 6"
            ) from None
        needed = family.octet_count + _PORT_LEN
        if len(self.data) < needed:
            raise dpkt.NeedData(
                f"got {len(self.data)} address bytes, {needed} needed for {family.name}"
            )
        (port,) = struct.unpack(_PORT_FMT, self.data[family.octet_count:needed])
        self.address = SocketAddress(family, self.data[: family.octet_count], port)
        self.data = self.data[needed:]

    def pack_hdr(self) -> bytes:
        address = require_address(self.address, "StatsHeader address")
        self.addr_type = address.family.value
        return dpkt.Packet.pack_hdr(self) + address.octets + struct.pack(_PORT_FMT, address.port)

    def __len__(self) -> int:
        return self.header_length + len(self.data)

    def __bytes__(self) -> bytes:
        return self.pack_hdr() + bytes(self.data)

    # ------------------------------------------------------------------
    @property
    def header_length(self) -> int:
        """Serialized size of the header alone: 27 bytes (IPv4) or 39 (IPv6)."""
        address = require_address(self.address, "StatsHeader address")
        return self.__hdr_len__ + address.family.octet_count + _PORT_LEN

    @property
    def send_time_seconds(self) -> float:
        return steps_to_seconds(self.ts)

    def __str__(self) -> str:
        peer = str(self.address) if isinstance(self.address, SocketAddress) else "<not valid>"
        return (
            f"(seq={self.seq} time={self.send_time_seconds} nodeId={self.node_id} "
            f"appId={self.app_id} Ip={peer})"
        )


__all__ = ["StatsHeader"]
