"""Immutable per-flow and per-run result records and their report columns."""

from __future__ import annotations

from dataclasses import astuple, dataclass, field, fields
from enum import Enum, unique
from typing import List, Sequence, Tuple


@dataclass(frozen=True)
class Summary:
    """Statistics of one flow, or an average over flows or runs.

    Durations and delays are in seconds, throughput in bits per second and
    ``lost_ratio`` in percent. Packet counts become fractional once averaged.
    """

    duration: float = 0.0
    throughput: float = 0.0
    tx_packets: float = 0
    rx_packets: float = 0
    lost_packets: float = 0
    lost_ratio: float = 0.0
    e2e_delay_min: float = 0.0
    e2e_delay_max: float = 0.0
    e2e_delay_average: float = 0.0
    e2e_delay_median_estimate: float = 0.0
    e2e_delay_jitter: float = 0.0

    def iterative_add(self, other: "Summary", iteration: int) -> "Summary":
        """Fold ``other`` into a running average over ``iteration`` items.

        ``self`` is the average of the first ``iteration - 1`` items; each
        field becomes ``(self * (iteration - 1) + other) / iteration``.
        """
        if iteration < 1:
            raise ValueError("iteration counts from 1")
        return Summary(
            *(
                (mine * (iteration - 1) + theirs) / iteration
                for mine, theirs in zip(astuple(self), astuple(other))
            )
        )

    def as_tuple(self) -> Tuple[float, ...]:
        return astuple(self)


@dataclass(frozen=True)
class RunSummary:
    """Outcome of one run: flow count, per-flow average, per-packet summary."""

    number_of_flows: float = 0
    average_per_flow: Summary = field(default_factory=Summary)
    average_per_packet: Summary = field(default_factory=Summary)

    def as_row(self) -> List[float]:
        """Flatten to ``[flows, flow_0, packet_0, flow_1, packet_1, ...]``."""
        row: List[float] = [self.number_of_flows]
        for per_flow, per_packet in zip(self.average_per_flow.as_tuple(), self.average_per_packet.as_tuple()):
            row.append(per_flow)
            row.append(per_packet)
        return row

    @classmethod
    def from_row(cls, row: Sequence[float]) -> "RunSummary":
        width = len(fields(Summary))
        if len(row) != 1 + 2 * width:
            raise ValueError(f"RunSummary row needs {1 + 2 * width} values, got {len(row)}")
        values = [float(value) for value in row]
        return cls(
            number_of_flows=values[0],
            average_per_flow=Summary(*values[1::2]),
            average_per_packet=Summary(*values[2::2]),
        )

    def iterative_add(self, other: "RunSummary", iteration: int) -> "RunSummary":
        return RunSummary(
            number_of_flows=(self.number_of_flows * (iteration - 1) + other.number_of_flows) / iteration,
            average_per_flow=self.average_per_flow.iterative_add(other.average_per_flow, iteration),
            average_per_packet=self.average_per_packet.iterative_add(other.average_per_packet, iteration),
        )


@unique
class SummaryField(Enum):
    """Report columns for :class:`Summary`; delays are reported in ms."""

    duration = ("Transmission Duration [s]", 1.0)
    throughput = ("Throughput [bps]", 1.0)
    tx_packets = ("Tx Packets", 1.0)
    rx_packets = ("Rx Packets", 1.0)
    lost_packets = ("Lost Packets", 1.0)
    lost_ratio = ("Lost Ratio [%]", 1.0)
    e2e_delay_min = ("E2E Delay Min [ms]", 1000.0)
    e2e_delay_max = ("E2E Delay Max [ms]", 1000.0)
    e2e_delay_average = ("E2E Delay Average [ms]", 1000.0)
    e2e_delay_median_estimate = ("E2E Delay Median Estimate [ms]", 1000.0)
    e2e_delay_jitter = ("E2E Delay Jitter [ms]", 1000.0)

    def __init__(self, display_name: str, scale: float) -> None:
        self.display_name = display_name
        self.scale = scale

    def scaled(self, summary: Summary) -> float:
        return getattr(summary, self.name) * self.scale

    @classmethod
    def get_header(cls) -> List[str]:
        return [item.display_name for item in cls]

    @classmethod
    def report_values(cls, summary: Summary) -> List[float]:
        return [item.scaled(summary) for item in cls]

    @classmethod
    def run_header(cls) -> List[str]:
        """Column labels matching :meth:`RunSummary.as_row`."""
        header = ["Number of Flows"]
        for item in cls:
            header.append(f"{item.display_name} all flows avg")
            header.append(f"{item.display_name} all packets avg")
        return header

    @classmethod
    def run_scales(cls) -> List[float]:
        scales = [1.0]
        for item in cls:
            scales.extend((item.scale, item.scale))
        return scales

    @classmethod
    def report_run_row(cls, row: Sequence[float]) -> List[float]:
        return [value * scale for value, scale in zip(row, cls.run_scales())]

    def __str__(self) -> str:  # pragma: no cover - human readable repr
        return self.display_name


__all__ = ["Summary", "RunSummary", "SummaryField"]
