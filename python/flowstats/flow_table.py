"""Per-run table of flows fed by packet sent / received events."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from .address import SocketAddress
from .config import StatsConfig
from .errors import FlowNotFoundOnReceive, SinkWriteFailure
from .flow_id import PendingIdentity, matches
from .flow_record import FlowRecord, TrafficCounters
from .reporting import RunReport
from .sinks import OutputSink
from .stats_header import StatsHeader
from .summary import RunSummary, Summary

logger = logging.getLogger(__name__)


class TableState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINALIZING = "finalizing"


class FlowTable:
    """Correlates sent and received packets into flows for a single run.

    Flows are discovered from sent packets; every received packet must belong
    to a flow that has already sent. Besides the per-flow records the table
    keeps pooled counters over every packet of the run. :meth:`finalize`
    turns both into a :class:`RunSummary` and resets the table for the next
    run.
    """

    def __init__(
        self,
        config: Optional[StatsConfig] = None,
        sink: Optional[OutputSink] = None,
        run_index: int = 1,
    ) -> None:
        self.config = config or StatsConfig()
        if sink is None and (self.config.scalar_output or self.config.vector_output):
            raise ValueError("scalar or vector output needs an output sink")
        self.sink = sink
        self.run_index = run_index
        self._state = TableState.IDLE
        self._reset()

    # ------------------------------------------------------------------
    def _reset(self) -> None:
        self._flows: List[FlowRecord] = []
        self._pooled = TrafficCounters(self.config.hist_resolution)
        self._report: Optional[RunReport] = None
        self._state = TableState.IDLE

    def _activate(self) -> None:
        if self._state is TableState.FINALIZING:
            raise RuntimeError("Flow table received an event while finalizing")
        if self._state is TableState.IDLE:
            if self.sink is not None:
                self._report = RunReport(
                    self.sink,
                    self.config.file_prefix,
                    self.run_index,
                    self.config.export_resolution,
                )
            self._state = TableState.ACTIVE
            logger.debug("Run %d started", self.run_index)

    @property
    def state(self) -> TableState:
        return self._state

    @property
    def flows(self) -> List[FlowRecord]:
        return list(self._flows)

    @property
    def pooled(self) -> TrafficCounters:
        return self._pooled

    def __len__(self) -> int:
        return len(self._flows)

    def begin_run(self, run_index: int) -> None:
        if self._state is not TableState.IDLE:
            raise RuntimeError(f"Cannot start run {run_index}: run {self.run_index} is {self._state.value}")
        self.run_index = run_index

    # ------------------------------------------------------------------
    def find_flow(self, identity: PendingIdentity) -> Optional[FlowRecord]:
        for flow in self._flows:
            if matches(identity, flow.identity):
                return flow
        return None

    def dispatch_send(self, header: StatsHeader, size: int, now: int) -> FlowRecord:
        self._activate()
        identity = PendingIdentity(header.node_id, header.app_id, header.address, len(self._flows))
        flow = self.find_flow(identity)
        if flow is None:
            vector_report = self._report if self.config.vector_output else None
            flow = FlowRecord(identity, self.config.hist_resolution, vector_report)
            self._flows.append(flow)
            logger.debug("New flow [size=%d]: %s", len(self._flows), identity)

        flow.on_sent(header, size, now)
        self._pooled.record_sent(header, size)
        return flow

    def dispatch_receive(
        self,
        header: StatsHeader,
        size: int,
        now: int,
        sink_node_id: int,
        sink_app_id: int,
        source_address: SocketAddress,
    ) -> FlowRecord:
        self._activate()
        identity = PendingIdentity(header.node_id, header.app_id, header.address)
        flow = self.find_flow(identity)
        if flow is None:
            logger.error("Received packet for a flow that never sent: %s", header)
            logger.info("Existing flows:")
            for existing in self._flows:
                logger.info("%s", existing.identity)
            raise FlowNotFoundOnReceive(identity)

        # Raises on a negative delay before any counter changes.
        self._pooled.record_received(header, size, now)
        try:
            flow.on_received(header, size, now, sink_node_id, sink_app_id, source_address)
        except SinkWriteFailure:
            logger.error("Run %d aborted: delay vector write failed", self.run_index)
            self._reset()
            raise
        return flow

    on_sent = dispatch_send

    def on_received(
        self,
        header: StatsHeader,
        size: int,
        now: int,
        sink_node_id: int,
        sink_app_id: int,
        source_address: SocketAddress,
    ) -> None:
        self.dispatch_receive(header, size, now, sink_node_id, sink_app_id, source_address)

    # ------------------------------------------------------------------
    def finalize(self) -> RunSummary:
        """Summarize the run, write the scalar report and clear the table."""
        if self._state is TableState.IDLE:
            self._activate()
        self._state = TableState.FINALIZING
        try:
            report = self._report if self.config.scalar_output else None
            if report is not None:
                report.open_scalar()

            average = Summary()
            for iteration, flow in enumerate(self._flows, 1):
                average = average.iterative_add(flow.finalize(report), iteration)

            run_summary = RunSummary(
                number_of_flows=len(self._flows),
                average_per_flow=average,
                average_per_packet=self._pooled.summarize(),
            )
            if report is not None:
                report.write_averages(run_summary, self._pooled.delays)
            logger.info(
                "Run %d finalized: flows=%d, tx=%d, rx=%d",
                self.run_index,
                len(self._flows),
                self._pooled.tx_packets,
                self._pooled.rx_packets,
            )
            return run_summary
        finally:
            self._reset()


__all__ = ["TableState", "FlowTable"]
