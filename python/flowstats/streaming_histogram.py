"""One-pass moment accumulator combined with a growable fixed-width histogram."""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np

# floor(target / width) must not lose a whole bin to representation error
_MERGE_EPSILON = 1e-9


class StreamingHistogram:
    """Histogram of non-negative values with exact running moments.

    Bin ``i`` counts values in ``[i * bin_width, (i + 1) * bin_width)``. The
    bin array grows to fit the largest value seen and is never re-indexed.
    Mean and variance are maintained with Welford's update, so no sample is
    kept beyond the bin counts.
    """

    __slots__ = (
        "_bin_width",
        "unit",
        "_bins",
        "_count",
        "_sum",
        "_sum_sq",
        "_min",
        "_max",
        "_mean",
        "_s",
    )

    def __init__(self, bin_width: float = 1.0, unit: str = "seconds") -> None:
        if bin_width <= 0:
            raise ValueError("bin_width must be positive")
        self._bin_width = float(bin_width)
        self.unit = unit
        self.clear()

    def clear(self) -> None:
        self._bins: List[int] = []
        self._count = 0
        self._sum = 0.0
        self._sum_sq = 0.0
        self._min = 0.0
        self._max = 0.0
        self._mean = 0.0
        self._s = 0.0

    # ------------------------------------------------------------------
    def add_value(self, value: float) -> None:
        if value < 0:
            raise ValueError(f"Histogram only accepts non-negative values, got {value}")

        index = int(math.floor(value / self._bin_width))
        if index >= len(self._bins):
            self._bins.extend([0] * (index + 1 - len(self._bins)))
        self._bins[index] += 1

        self._count += 1
        self._sum += value
        self._sum_sq += value * value

        if self._count == 1:
            self._min = value
            self._max = value
            self._mean = value
            self._s = 0.0
        else:
            self._min = min(self._min, value)
            self._max = max(self._max, value)
            previous_mean = self._mean
            self._mean = previous_mean + (value - previous_mean) / self._count
            self._s += (value - previous_mean) * (value - self._mean)

    # Moments -----------------------------------------------------------
    @property
    def count(self) -> int:
        return self._count

    @property
    def sum(self) -> float:
        return self._sum

    @property
    def sum_sq(self) -> float:
        return self._sum_sq

    @property
    def min(self) -> float:
        return self._min

    @property
    def max(self) -> float:
        return self._max

    @property
    def mean(self) -> float:
        return self._mean

    @property
    def variance(self) -> float:
        if self._count < 2:
            return 0.0
        return self._s / (self._count - 1)

    @property
    def stddev(self) -> float:
        return math.sqrt(self.variance)

    # Bins --------------------------------------------------------------
    @property
    def bin_width(self) -> float:
        return self._bin_width

    def set_bin_width(self, bin_width: float) -> None:
        """Change the bin width; only allowed before any value was added."""
        if self._bins:
            raise ValueError("bin width can only be changed while the histogram is empty")
        if bin_width <= 0:
            raise ValueError("bin_width must be positive")
        self._bin_width = float(bin_width)

    @property
    def number_of_bins(self) -> int:
        return len(self._bins)

    @property
    def bins(self) -> Sequence[int]:
        return tuple(self._bins)

    def bin_count(self, index: int) -> int:
        if not 0 <= index < len(self._bins):
            raise IndexError(f"bin {index} outside histogram of {len(self._bins)} bins")
        return self._bins[index]

    def bin_start(self, index: int) -> float:
        return index * self._bin_width

    def bin_end(self, index: int) -> float:
        return (index + 1) * self._bin_width

    def bin_middle(self, index: int) -> float:
        return (index + 0.5) * self._bin_width

    # ------------------------------------------------------------------
    def median_estimate(self) -> float:
        """Estimate the median to within half a bin width.

        Two pointers start at both ends of the histogram and walk inward,
        always advancing the side that has accumulated fewer values, until
        they meet.
        """
        bins = self._bins
        left = 0
        right = len(bins) - 1
        if right == -1:
            return 0.0
        if right == 0:
            return 0.5 * self._bin_width

        left_count = bins[left]
        right_count = bins[right]
        while right - left > 1:
            if left_count < right_count:
                left += 1
                left_count += bins[left]
            elif left_count > right_count:
                right -= 1
                right_count += bins[right]
            elif right - left > 2:
                left += 1
                left_count += bins[left]
                right -= 1
                right_count += bins[right]
            else:
                # exactly one bin left between the two sides
                return self.bin_middle(left + 1)

        if left_count > right_count:
            return self.bin_middle(left)
        return self.bin_middle(right)

    # Export ------------------------------------------------------------
    def coarsened(self, target_width: float) -> List[Tuple[float, int]]:
        """Merge adjacent bins to roughly ``target_width`` wide rows.

        Returns ``(merged bin midpoint, merged count)`` for non-empty rows.
        """
        merge = max(1, int(math.floor(target_width / self._bin_width + _MERGE_EPSILON)))
        if not self._bins:
            return []

        counts = np.asarray(self._bins, dtype=np.int64)
        padding = (-len(counts)) % merge
        if padding:
            counts = np.concatenate([counts, np.zeros(padding, dtype=np.int64)])
        merged = counts.reshape(-1, merge).sum(axis=1)
        merged_width = merge * self._bin_width
        middles = np.arange(len(merged)) * merged_width + 0.5 * merged_width
        return [
            (float(middle), int(count))
            for middle, count in zip(middles, merged)
            if count > 0
        ]

    def export_rows(self, target_width: float, description: str = "Hist Data:") -> List[List[object]]:
        rows: List[List[object]] = [
            [description],
            [f"Resolution: {target_width} {self.unit}"],
            ["Bin:", "Count:"],
        ]
        rows.extend([middle, count] for middle, count in self.coarsened(target_width))
        return rows

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (
            f"StreamingHistogram(bin_width={self._bin_width}, bins={len(self._bins)}, "
            f"count={self._count}, mean={self._mean})"
        )


__all__ = ["StreamingHistogram"]
