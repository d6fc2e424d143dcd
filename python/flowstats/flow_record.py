"""Per-flow traffic counters and the flow record owning them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .address import SocketAddress
from .config import DEFAULT_HIST_RESOLUTION
from .flow_id import FlowIdentity, PendingIdentity
from .reporting import RunReport
from .stats_header import StatsHeader
from .streaming_histogram import StreamingHistogram
from .summary import Summary
from .utils import steps_to_micros, steps_to_seconds

logger = logging.getLogger(__name__)


def _rate(byte_count: int, duration: float) -> float:
    if duration <= 0:
        return 0.0
    return 8.0 * byte_count / duration


@dataclass
class TrafficCounters:
    """Packet and byte counters plus the delay histogram of a packet stream.

    Timestamps are in integer time steps. Used both for a single flow and for
    the pooled statistics of every packet in a run.
    """

    hist_resolution: float = DEFAULT_HIST_RESOLUTION
    tx_packets: int = 0
    rx_packets: int = 0
    tx_bytes: int = 0
    rx_bytes: int = 0
    last_packet_size: int = 0
    first_sent: int = 0
    last_sent: int = 0
    first_received: int = 0
    last_received: int = 0
    first_delay: int = 0
    last_delay: int = 0
    delays: StreamingHistogram = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.delays = StreamingHistogram(self.hist_resolution)

    def record_sent(self, header: StatsHeader, size: int) -> None:
        self.tx_packets += 1
        self.last_packet_size = size
        self.tx_bytes += size
        self.last_sent = header.ts
        if self.tx_packets == 1:
            self.first_sent = self.last_sent

    def record_received(self, header: StatsHeader, size: int, now: int) -> int:
        """Count a received packet and return its one-way delay in time steps."""
        delay = now - header.ts
        if delay < 0:
            raise ValueError(f"Packet {header} received at {now} before it was sent")
        self.rx_packets += 1
        self.last_packet_size = size
        self.rx_bytes += size
        self.last_received = now
        self.last_delay = delay
        if self.rx_packets == 1:
            self.first_received = now
            self.first_delay = delay
        self.delays.add_value(steps_to_seconds(delay))
        return delay

    def summarize(self) -> Summary:
        endpoint = max(self.last_sent, self.last_received)
        duration = steps_to_seconds(endpoint - self.first_sent)
        lost = self.tx_packets - self.rx_packets
        return Summary(
            duration=duration,
            throughput=_rate(self.rx_bytes, duration),
            tx_packets=self.tx_packets,
            rx_packets=self.rx_packets,
            lost_packets=lost,
            lost_ratio=100.0 * lost / self.tx_packets if self.tx_packets else 0.0,
            e2e_delay_min=self.delays.min,
            e2e_delay_max=self.delays.max,
            e2e_delay_average=self.delays.mean,
            e2e_delay_median_estimate=self.delays.median_estimate(),
            e2e_delay_jitter=self.delays.stddev,
        )

    def detail_values(self) -> List[object]:
        """Values for the detail columns of the scalar report."""
        return [
            self.last_packet_size,
            self.tx_bytes,
            self.rx_bytes,
            steps_to_micros(self.first_sent),
            steps_to_micros(self.last_sent),
            _rate(self.tx_bytes, steps_to_seconds(self.last_sent - self.first_sent)),
            steps_to_micros(self.first_received),
            steps_to_micros(self.last_received),
            _rate(self.rx_bytes, steps_to_seconds(self.last_received - self.first_received)),
            self.delays.count,
        ]


class FlowRecord:
    """Statistics of one flow, from its first sent packet until finalization."""

    def __init__(
        self,
        identity: PendingIdentity,
        hist_resolution: float = DEFAULT_HIST_RESOLUTION,
        vector_report: Optional[RunReport] = None,
    ) -> None:
        self._identity: FlowIdentity = identity
        self.counters = TrafficCounters(hist_resolution)
        self.vector_report = vector_report
        self._summary: Optional[Summary] = None

    @property
    def identity(self) -> FlowIdentity:
        return self._identity

    @property
    def flow_index(self) -> int:
        return self._identity.flow_index

    @property
    def is_finalized(self) -> bool:
        return self._summary is not None

    def on_sent(self, header: StatsHeader, size: int, now: int) -> None:
        self.counters.record_sent(header, size)

    def on_received(
        self,
        header: StatsHeader,
        size: int,
        now: int,
        sink_node_id: int,
        sink_app_id: int,
        source_address: SocketAddress,
    ) -> int:
        delay = self.counters.record_received(header, size, now)
        if isinstance(self._identity, PendingIdentity):
            self._identity = self._identity.resolve(sink_node_id, sink_app_id, source_address)
            logger.debug("Flow bound: %s", self._identity)
        if self.vector_report is not None:
            self.vector_report.write_delay(self.flow_index, now, header.seq, delay)
        return delay

    def finalize(self, report: Optional[RunReport] = None) -> Summary:
        if self._summary is not None:
            raise RuntimeError(f"Flow {self._identity} already finalized")
        summary = self.counters.summarize()
        self._summary = summary
        if report is not None:
            report.write_flow(self._identity, summary, self.counters.detail_values())
        return summary

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"FlowRecord({self._identity}, tx={self.counters.tx_packets}, rx={self.counters.rx_packets})"


__all__ = ["TrafficCounters", "FlowRecord"]
