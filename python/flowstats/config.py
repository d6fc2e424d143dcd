"""Construction-time settings for flow tables and multi-run experiments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_FILE_PREFIX = "Net-Parameters"
DEFAULT_HIST_RESOLUTION = 0.0001  # 0.1 ms


@dataclass(frozen=True)
class StatsConfig:
    """Options of a per-run :class:`~flowstats.flow_table.FlowTable`.

    ``hist_resolution`` is the delay histogram bin width in seconds and
    ``export_resolution`` the bin width used when the pooled histogram is
    written to the scalar table.
    """

    file_prefix: str = DEFAULT_FILE_PREFIX
    hist_resolution: float = DEFAULT_HIST_RESOLUTION
    scalar_output: bool = False
    vector_output: bool = False
    export_resolution: float = DEFAULT_HIST_RESOLUTION

    def __post_init__(self) -> None:
        if not self.file_prefix:
            raise ValueError("file_prefix must not be empty")
        if self.hist_resolution <= 0:
            raise ValueError("hist_resolution must be positive")
        if self.export_resolution <= 0:
            raise ValueError("export_resolution must be positive")


@dataclass(frozen=True)
class RunRange:
    """Inclusive range of run indices processed by one experiment.

    With ``external_control`` the caller supplies the run being processed in
    ``current_run`` instead of iterating over the whole range.
    """

    start_run: int = 1
    stop_run: int = 1
    external_control: bool = False
    current_run: Optional[int] = None

    def __post_init__(self) -> None:
        if self.start_run > self.stop_run:
            raise ValueError("First run number must be less or equal to last.")
        if self.current_run is not None and not self.contains(self.current_run):
            raise ValueError(
                f"current_run {self.current_run} outside [{self.start_run}, {self.stop_run}]"
            )

    def contains(self, run_index: int) -> bool:
        return self.start_run <= run_index <= self.stop_run

    def run_indices(self) -> range:
        if self.external_control:
            current = self.start_run if self.current_run is None else self.current_run
            return range(current, current + 1)
        return range(self.start_run, self.stop_run + 1)


__all__ = ["DEFAULT_FILE_PREFIX", "DEFAULT_HIST_RESOLUTION", "StatsConfig", "RunRange"]
