"""Flow identities: keyed by sender node/application and destination address.

A flow is created on its first sent packet, when only the sending side is
known (:class:`PendingIdentity`). The first received packet supplies the
sink node/application and the address the packets arrived from, turning the
identity into a :class:`ResolvedIdentity`. Matching only ever looks at the
primary key, so both phases compare equal to each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple, Union

from .address import SocketAddress, require_address

FlowKey = Tuple[int, int, SocketAddress]


@dataclass(frozen=True)
class PendingIdentity:
    source_node_id: int
    source_app_id: int
    destination: SocketAddress
    flow_index: int = 0

    def __post_init__(self) -> None:
        require_address(self.destination, "Flow destination address")

    @property
    def key(self) -> FlowKey:
        return (self.source_node_id, self.source_app_id, self.destination)

    @property
    def is_resolved(self) -> bool:
        return False

    def resolve(self, sink_node_id: int, sink_app_id: int, source_address: SocketAddress) -> "ResolvedIdentity":
        return ResolvedIdentity(
            source_node_id=self.source_node_id,
            source_app_id=self.source_app_id,
            destination=self.destination,
            flow_index=self.flow_index,
            sink_node_id=sink_node_id,
            sink_app_id=sink_app_id,
            source_address=require_address(source_address, "Flow source address"),
        )

    def __str__(self) -> str:
        return (
            f"{self.flow_index}: {self.source_node_id}-{self.source_app_id}( <not valid> ) ---> "
            f"0-0( {self.destination} )"
        )

    def csv_columns(self) -> List[object]:
        return [self.flow_index, self.source_node_id, self.source_app_id, "<not valid>", 0, 0, str(self.destination)]


@dataclass(frozen=True)
class ResolvedIdentity:
    source_node_id: int
    source_app_id: int
    destination: SocketAddress
    flow_index: int
    sink_node_id: int
    sink_app_id: int
    source_address: SocketAddress

    @property
    def key(self) -> FlowKey:
        return (self.source_node_id, self.source_app_id, self.destination)

    @property
    def is_resolved(self) -> bool:
        return True

    def __str__(self) -> str:
        return (
            f"{self.flow_index}: {self.source_node_id}-{self.source_app_id}( {self.source_address} ) ---> "
            f"{self.sink_node_id}-{self.sink_app_id}( {self.destination} )"
        )

    def csv_columns(self) -> List[object]:
        return [
            self.flow_index,
            self.source_node_id,
            self.source_app_id,
            str(self.source_address),
            self.sink_node_id,
            self.sink_app_id,
            str(self.destination),
        ]


FlowIdentity = Union[PendingIdentity, ResolvedIdentity]

IDENTITY_HEADER = [
    "Flow Index",
    "Source Node",
    "Source App",
    "Source Address",
    "Sink Node",
    "Sink App",
    "Sink Address",
]


def matches(first: FlowIdentity, second: FlowIdentity) -> bool:
    """True when both identities share node, application and destination.

    Destinations of different address families never match.
    """
    require_address(first.destination, "Flow not valid! Sink address")
    require_address(second.destination, "Flow not valid! Sink address")
    return first.key == second.key


__all__ = [
    "FlowKey",
    "FlowIdentity",
    "PendingIdentity",
    "ResolvedIdentity",
    "IDENTITY_HEADER",
    "matches",
]
