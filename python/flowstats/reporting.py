"""Table names and row layouts of the per-run and per-scenario reports."""

from __future__ import annotations

import logging
from typing import List, Sequence

from .flow_id import IDENTITY_HEADER, FlowIdentity
from .sinks import OutputSink, append_rows
from .streaming_histogram import StreamingHistogram
from .summary import RunSummary, Summary, SummaryField
from .utils import SCALAR_SUFFIX, SUMMARY_SUFFIX, VECTOR_SUFFIX, run_file_prefix, steps_to_micros

logger = logging.getLogger(__name__)

VECTOR_HEADER = ["Flow Index", "Time [us]", "Sequence Id", "Delay [us]"]

DETAIL_HEADER = [
    "Last Packet Length [B]",
    "Tx Bytes",
    "Rx Bytes",
    "Tx First Packet [us]",
    "Tx Last Packet [us]",
    "Tx Throughput [bps]",
    "Rx First Packet [us]",
    "Rx Last Packet [us]",
    "Rx Throughput [bps]",
    "Delays In Histogram",
]

HISTOGRAM_DESCRIPTION = "E2E Delay Hist:"


def summary_table_name(file_prefix: str) -> str:
    return f"{file_prefix}{SUMMARY_SUFFIX}"


def scalar_table_name(file_prefix: str, run_index: int) -> str:
    return f"{run_file_prefix(file_prefix, run_index)}{SCALAR_SUFFIX}"


def vector_table_name(file_prefix: str, run_index: int) -> str:
    return f"{run_file_prefix(file_prefix, run_index)}{VECTOR_SUFFIX}"


def scalar_header() -> List[str]:
    return IDENTITY_HEADER + SummaryField.get_header() + DETAIL_HEADER


def summary_header() -> List[str]:
    return ["Rng Run"] + SummaryField.run_header()


def summary_row(label: object, run_summary: RunSummary) -> List[object]:
    """One line of the summary table; delay columns are scaled to ms."""
    return [label] + SummaryField.report_run_row(run_summary.as_row())


class RunReport:
    """Writes the scalar and vector tables of one run through a sink.

    The vector table is created by the first delay written to it, the scalar
    table by :meth:`open_scalar`.
    """

    def __init__(
        self,
        sink: OutputSink,
        file_prefix: str,
        run_index: int,
        export_resolution: float,
    ) -> None:
        self.sink = sink
        self.file_prefix = file_prefix
        self.run_index = run_index
        self.export_resolution = export_resolution
        self._vector_open = False

    @property
    def scalar_name(self) -> str:
        return scalar_table_name(self.file_prefix, self.run_index)

    @property
    def vector_name(self) -> str:
        return vector_table_name(self.file_prefix, self.run_index)

    # Vector --------------------------------------------------------------
    def write_delay(self, flow_index: int, now: int, seq: int, delay: int) -> None:
        if not self._vector_open:
            self.sink.create_or_truncate(self.vector_name)
            self.sink.append(self.vector_name, VECTOR_HEADER)
            self._vector_open = True
        self.sink.append(
            self.vector_name,
            [flow_index, steps_to_micros(now), seq, steps_to_micros(delay)],
        )

    # Scalar --------------------------------------------------------------
    def open_scalar(self) -> None:
        self.sink.create_or_truncate(self.scalar_name)
        self.sink.append(self.scalar_name, scalar_header())

    def write_flow(self, identity: FlowIdentity, summary: Summary, details: Sequence[object]) -> None:
        self.sink.append(
            self.scalar_name,
            identity.csv_columns() + SummaryField.report_values(summary) + list(details),
        )

    def write_averages(self, run_summary: RunSummary, pooled: StreamingHistogram) -> None:
        padding = [""] * (len(IDENTITY_HEADER) - 1)
        rows: List[Sequence[object]] = [
            [f"Average of all flows ({int(run_summary.number_of_flows)})"]
            + padding
            + SummaryField.report_values(run_summary.average_per_flow),
            ["Average of all packets"] + padding + SummaryField.report_values(run_summary.average_per_packet),
            [],
        ]
        rows.extend(pooled.export_rows(self.export_resolution, HISTOGRAM_DESCRIPTION))
        append_rows(self.sink, self.scalar_name, rows)
        logger.info("Scalar report for run %d written to %s", self.run_index, self.scalar_name)


__all__ = [
    "VECTOR_HEADER",
    "DETAIL_HEADER",
    "HISTOGRAM_DESCRIPTION",
    "summary_table_name",
    "scalar_table_name",
    "vector_table_name",
    "scalar_header",
    "summary_header",
    "summary_row",
    "RunReport",
]
