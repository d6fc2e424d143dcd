"""Exception hierarchy for fatal conditions raised while collecting statistics."""

from __future__ import annotations


class FlowStatsError(RuntimeError):
    """Base class for errors that abort processing of the current run."""


class InvalidAddressVariant(FlowStatsError, ValueError):
    """Raised when an address is neither an IPv4 nor an IPv6 socket address."""


class FlowNotFoundOnReceive(FlowStatsError):
    """Raised when a received packet belongs to no flow sent from in this run."""

    def __init__(self, identity: object) -> None:
        super().__init__(f"Received packet for unknown flow: {identity}")
        self.identity = identity


class SinkWriteFailure(FlowStatsError):
    """Raised when an output table cannot be created or appended to."""


class RunSequenceError(FlowStatsError):
    """Raised when a run index is outside the configured range or repeated."""


class AggregatorClosed(RunSequenceError):
    """Raised when a run is accumulated after the final run was processed."""


__all__ = [
    "FlowStatsError",
    "InvalidAddressVariant",
    "FlowNotFoundOnReceive",
    "SinkWriteFailure",
    "RunSequenceError",
    "AggregatorClosed",
]
