"""Streaming per-flow and per-run packet statistics with delay histograms."""

from .address import AddressFamily, SocketAddress
from .config import RunRange, StatsConfig
from .errors import (
    AggregatorClosed,
    FlowNotFoundOnReceive,
    FlowStatsError,
    InvalidAddressVariant,
    RunSequenceError,
    SinkWriteFailure,
)
from .stats_header import StatsHeader
from .streaming_histogram import StreamingHistogram
from .flow_id import PendingIdentity, ResolvedIdentity, matches
from .summary import RunSummary, Summary, SummaryField
from .flow_record import FlowRecord, TrafficCounters
from .flow_table import FlowTable, TableState
from .run_aggregator import RunAggregator
from .sinks import CsvDirectorySink, MemorySink, OutputSink
from .events import ReceivedEvent, SentEvent, merge_events
from .listeners import EventSink
from .trace_reader import Direction, TraceReader, load_run_directory
from .experiment import run_experiment

__all__ = [
    "AddressFamily",
    "SocketAddress",
    "StatsConfig",
    "RunRange",
    "FlowStatsError",
    "InvalidAddressVariant",
    "FlowNotFoundOnReceive",
    "SinkWriteFailure",
    "RunSequenceError",
    "AggregatorClosed",
    "StatsHeader",
    "StreamingHistogram",
    "PendingIdentity",
    "ResolvedIdentity",
    "matches",
    "Summary",
    "RunSummary",
    "SummaryField",
    "TrafficCounters",
    "FlowRecord",
    "FlowTable",
    "TableState",
    "RunAggregator",
    "OutputSink",
    "CsvDirectorySink",
    "MemorySink",
    "SentEvent",
    "ReceivedEvent",
    "merge_events",
    "EventSink",
    "Direction",
    "TraceReader",
    "load_run_directory",
    "run_experiment",
]
