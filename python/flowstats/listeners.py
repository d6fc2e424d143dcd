"""Listener interfaces for packet sent / received events."""

from __future__ import annotations

from typing import Protocol

from .address import SocketAddress
from .stats_header import StatsHeader


class EventSink(Protocol):
    def on_sent(self, header: StatsHeader, size: int, now: int) -> None:  # pragma: no cover - protocol definition
        ...

    def on_received(
        self,
        header: StatsHeader,
        size: int,
        now: int,
        sink_node_id: int,
        sink_app_id: int,
        source_address: SocketAddress,
    ) -> None:  # pragma: no cover - protocol definition
        ...


__all__ = ["EventSink"]
