"""Output sinks: named append-only tables, on disk or in memory."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Dict, List, Protocol, Sequence, Union

from .errors import SinkWriteFailure

logger = logging.getLogger(__name__)

Row = Sequence[object]


class OutputSink(Protocol):
    def create_or_truncate(self, name: str) -> None:  # pragma: no cover - protocol definition
        ...

    def append(self, name: str, row: Row) -> None:  # pragma: no cover - protocol definition
        ...


class CsvDirectorySink:
    """Writes every table as ``<directory>/<name>`` CSV file.

    An empty row is written as a blank line.
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def path_for(self, name: str) -> Path:
        return self.directory / name

    def create_or_truncate(self, name: str) -> None:
        path = self.path_for(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.open("w", encoding="utf-8").close()
        except OSError as exc:
            raise SinkWriteFailure(f"Cannot create {path}: {exc}") from exc
        logger.debug("Opened %s", path)

    def append(self, name: str, row: Row) -> None:
        self.append_rows(name, [row])

    def append_rows(self, name: str, rows: Sequence[Row]) -> int:
        if not rows:
            return 0
        path = self.path_for(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8", newline="") as handle:
                writer = csv.writer(handle, lineterminator="\n")
                for row in rows:
                    writer.writerow(row)
        except OSError as exc:
            raise SinkWriteFailure(f"Cannot append to {path}: {exc}") from exc
        return len(rows)


class MemorySink:
    """Keeps tables as lists of rows; handy for tests and notebooks."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[List[object]]] = {}

    def create_or_truncate(self, name: str) -> None:
        self.tables[name] = []

    def append(self, name: str, row: Row) -> None:
        self.tables.setdefault(name, []).append(list(row))

    def rows(self, name: str) -> List[List[object]]:
        return self.tables.get(name, [])


def append_rows(sink: OutputSink, name: str, rows: Sequence[Row]) -> int:
    """Append several rows through any sink, in order."""
    for row in rows:
        sink.append(name, row)
    return len(rows)


__all__ = ["Row", "OutputSink", "CsvDirectorySink", "MemorySink", "append_rows"]
