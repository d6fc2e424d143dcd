"""Multi-run driver: one flow table per run, one aggregator per scenario."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from .config import RunRange, StatsConfig
from .events import PacketEvent, deliver_all
from .flow_table import FlowTable
from .run_aggregator import RunAggregator
from .sinks import OutputSink

logger = logging.getLogger(__name__)

EventSource = Callable[[int], Iterable[PacketEvent]]


def run_experiment(
    events_for_run: EventSource,
    run_range: Optional[RunRange] = None,
    config: Optional[StatsConfig] = None,
    sink: Optional[OutputSink] = None,
) -> RunAggregator:
    """Process every run of ``run_range`` and return the filled aggregator.

    ``events_for_run`` is called with each run index and must return that
    run's events in time order.
    """
    run_range = run_range or RunRange()
    config = config or StatsConfig()
    table = FlowTable(config, sink)
    aggregator = RunAggregator(run_range, sink, config.file_prefix)

    for run_index in run_range.run_indices():
        table.begin_run(run_index)
        delivered = deliver_all(events_for_run(run_index), table)
        logger.info("Run %d: %d events delivered", run_index, delivered)
        aggregator.accumulate(table.finalize(), run_index)

    return aggregator


__all__ = ["EventSource", "run_experiment"]
