"""Utility helpers and constants shared by the statistics modules."""

from __future__ import annotations

import ipaddress
from typing import Union

TIME_STEPS_PER_SECOND = 1_000_000_000
TIME_STEPS_PER_MICRO = 1_000

SUMMARY_SUFFIX = "-Summary.csv"
SCALAR_SUFFIX = "-sca.csv"
VECTOR_SUFFIX = "-vec.csv"


def format_ip(value: Union[bytes, bytearray, str]) -> str:
    """Convert a raw IP buffer into a printable string."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) == 4:
            return ".".join(str(b & 0xFF) for b in value)
        if len(value) == 16:
            return str(ipaddress.IPv6Address(bytes(value)))
    return str(value)


def steps_to_seconds(steps: int) -> float:
    return steps / TIME_STEPS_PER_SECOND


def steps_to_micros(steps: int) -> float:
    return steps / TIME_STEPS_PER_MICRO


def seconds_to_steps(seconds: float) -> int:
    return int(round(seconds * TIME_STEPS_PER_SECOND))


def run_file_prefix(prefix: str, run_index: int) -> str:
    """Name prefix of the per-run output tables."""
    return f"{prefix}-Run_{run_index}"


__all__ = [
    "TIME_STEPS_PER_SECOND",
    "TIME_STEPS_PER_MICRO",
    "SUMMARY_SUFFIX",
    "SCALAR_SUFFIX",
    "VECTOR_SUFFIX",
    "format_ip",
    "steps_to_seconds",
    "steps_to_micros",
    "seconds_to_steps",
    "run_file_prefix",
]
