"""Sent / received packet events and time ordered merging of event streams."""

from __future__ import annotations

import heapq
from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple, Union

from .address import SocketAddress
from .listeners import EventSink
from .stats_header import StatsHeader


@dataclass(frozen=True)
class SentEvent:
    header: StatsHeader
    size: int
    now: int

    def deliver(self, sink: EventSink) -> None:
        sink.on_sent(self.header, self.size, self.now)


@dataclass(frozen=True)
class ReceivedEvent:
    header: StatsHeader
    size: int
    now: int
    sink_node_id: int
    sink_app_id: int
    source_address: SocketAddress

    def deliver(self, sink: EventSink) -> None:
        sink.on_received(
            self.header,
            self.size,
            self.now,
            self.sink_node_id,
            self.sink_app_id,
            self.source_address,
        )


PacketEvent = Union[SentEvent, ReceivedEvent]


def _order(event: PacketEvent) -> Tuple[int, int]:
    # sends go first when a send and a receive share a timestamp
    return (event.now, 0 if isinstance(event, SentEvent) else 1)


def merge_events(*streams: Iterable[PacketEvent]) -> Iterator[PacketEvent]:
    """Merge individually time ordered streams into one time ordered stream."""
    return heapq.merge(*streams, key=_order)


def deliver_all(events: Iterable[PacketEvent], sink: EventSink) -> int:
    delivered = 0
    for event in events:
        event.deliver(sink)
        delivered += 1
    return delivered


__all__ = ["SentEvent", "ReceivedEvent", "PacketEvent", "merge_events", "deliver_all"]
