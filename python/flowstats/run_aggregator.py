"""Aggregation of run summaries across repeated runs of one scenario."""

from __future__ import annotations

import logging
import math
from typing import List, Optional

import numpy as np

from .config import DEFAULT_FILE_PREFIX, RunRange
from .errors import AggregatorClosed, RunSequenceError
from .reporting import summary_header, summary_row, summary_table_name
from .sinks import OutputSink
from .summary import RunSummary

logger = logging.getLogger(__name__)


class RunAggregator:
    """Running min / max / mean / median / standard error over run summaries.

    Each accumulated run is appended to the ``<prefix>-Summary.csv`` table.
    Once the last run of the range has been accumulated the closing rows are
    written and the aggregator refuses further runs.
    """

    def __init__(
        self,
        run_range: Optional[RunRange] = None,
        sink: Optional[OutputSink] = None,
        file_prefix: str = DEFAULT_FILE_PREFIX,
    ) -> None:
        self.run_range = run_range or RunRange()
        self.sink = sink
        self.file_prefix = file_prefix

        if self.run_range.external_control and self.run_range.current_run is not None:
            self._current_run = self.run_range.current_run
        else:
            self._current_run = self.run_range.start_run
        self._last_run: Optional[int] = None
        self._closed = False

        self._runs = 0
        self._average = RunSummary()
        self._rows: List[np.ndarray] = []
        self._min: Optional[np.ndarray] = None
        self._max: Optional[np.ndarray] = None
        self._mean: Optional[np.ndarray] = None
        self._m2: Optional[np.ndarray] = None

    # ------------------------------------------------------------------
    @property
    def table_name(self) -> str:
        return summary_table_name(self.file_prefix)

    @property
    def current_run(self) -> int:
        return self._current_run

    @property
    def runs_processed(self) -> int:
        return self._runs

    @property
    def closed(self) -> bool:
        return self._closed

    def next_run(self) -> int:
        if self._closed:
            raise AggregatorClosed("All runs have already been processed")
        if self._current_run >= self.run_range.stop_run:
            raise RunSequenceError(f"Run {self._current_run} is the last run of the range")
        self._current_run += 1
        return self._current_run

    # ------------------------------------------------------------------
    def accumulate(self, run_summary: RunSummary, run_index: Optional[int] = None) -> None:
        if self._closed:
            raise AggregatorClosed("All runs have already been processed")
        index = self._current_run if run_index is None else run_index
        if not self.run_range.contains(index):
            raise RunSequenceError(
                f"Run {index} outside [{self.run_range.start_run}, {self.run_range.stop_run}]"
            )
        if self._last_run is not None and index <= self._last_run:
            raise RunSequenceError(f"Run {index} does not follow run {self._last_run}")

        if index == self.run_range.start_run:
            self._write(None, summary_header(), truncate=True)
        elif self._runs == 0:
            logger.warning(
                "First processed run %d is not the first run of the range (%d), appending to %s",
                index,
                self.run_range.start_run,
                self.table_name,
            )

        self._write(index, run_summary)
        self._last_run = index
        self._current_run = index

        row = np.asarray(run_summary.as_row(), dtype=float)
        self._runs += 1
        self._average = self._average.iterative_add(run_summary, self._runs)
        self._rows.append(row)
        if self._mean is None:
            self._min = row.copy()
            self._max = row.copy()
            self._mean = row.copy()
            self._m2 = np.zeros_like(row)
        else:
            self._min = np.minimum(self._min, row)
            self._max = np.maximum(self._max, row)
            delta = row - self._mean
            self._mean = self._mean + delta / self._runs
            self._m2 = self._m2 + delta * (row - self._mean)

        logger.info("Run %d accumulated (%d processed)", index, self._runs)

        if index == self.run_range.stop_run:
            self._close()

    def _close(self) -> None:
        self._write(None, [])
        self._write("Min", self.minimum)
        self._write("Max", self.maximum)
        self._write("Average", self.average)
        self._write("Median", self.median)
        self._write("Std. error", self.standard_error)
        self._closed = True
        logger.info("Summary of %d runs written to %s", self._runs, self.table_name)

    def _write(self, label: object, value, truncate: bool = False) -> None:
        if self.sink is None:
            return
        if truncate:
            self.sink.create_or_truncate(self.table_name)
        if isinstance(value, RunSummary):
            value = summary_row(label, value)
        self.sink.append(self.table_name, value)

    # ------------------------------------------------------------------
    def _from_array(self, values: Optional[np.ndarray]) -> RunSummary:
        if values is None:
            return RunSummary()
        return RunSummary.from_row(values.tolist())

    @property
    def average(self) -> RunSummary:
        return self._average

    @property
    def minimum(self) -> RunSummary:
        return self._from_array(self._min)

    @property
    def maximum(self) -> RunSummary:
        return self._from_array(self._max)

    @property
    def median(self) -> RunSummary:
        if not self._rows:
            return RunSummary()
        return self._from_array(np.median(np.vstack(self._rows), axis=0))

    @property
    def standard_error(self) -> RunSummary:
        """Sample standard deviation over ``sqrt(N)``; zero below two runs."""
        if self._runs < 2 or self._m2 is None:
            return RunSummary()
        stddev = np.sqrt(self._m2 / (self._runs - 1))
        return self._from_array(stddev / math.sqrt(self._runs))


__all__ = ["RunAggregator"]
