"""Replay of sender / receiver packet captures as sent and received events."""

from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path
from typing import IO, Iterator, List, Optional, Union

import dpkt
from dpkt.ethernet import VLANtag8021Q

from .address import SocketAddress
from .errors import InvalidAddressVariant
from .events import PacketEvent, ReceivedEvent, SentEvent, merge_events
from .stats_header import StatsHeader
from .utils import seconds_to_steps

logger = logging.getLogger(__name__)

CAPTURE_SUFFIXES = {".pcap", ".pcapng"}
_RECEIVER_NAME = re.compile(r"^rx-(?P<node>\d+)-(?P<app>\d+)")


class Direction(Enum):
    SENT = "sent"
    RECEIVED = "received"


class TraceReader:
    """Iterates over the stats-header packets of one capture file.

    A sender capture yields :class:`SentEvent`, a receiver capture
    :class:`ReceivedEvent` tagged with the receiving node and application.
    Event times are capture timestamps in time steps.
    """

    def __init__(
        self,
        path: Union[str, Path],
        direction: Direction = Direction.SENT,
        sink_node_id: int = 0,
        sink_app_id: int = 0,
    ) -> None:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Capture file does not exist: {path}")
        self.path = path
        self.direction = direction
        self.sink_node_id = sink_node_id
        self.sink_app_id = sink_app_id
        self.packets_read = 0
        self.skipped = 0

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"TraceReader({str(self.path)!r}, {self.direction.name})"

    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[PacketEvent]:
        with self.path.open("rb") as handle:
            for timestamp, frame in self._open(handle):
                self.packets_read += 1
                event = self._decode_frame(timestamp, frame)
                if event is None:
                    self.skipped += 1
                    continue
                yield event
        logger.debug(
            "%s: %d packets read, %d skipped", self.path.name, self.packets_read, self.skipped
        )

    def _open(self, handle: IO[bytes]):
        try:
            if self.path.suffix.lower() == ".pcapng":
                return dpkt.pcapng.Reader(handle)
            return dpkt.pcap.Reader(handle)
        except (ValueError, dpkt.dpkt.NeedData) as exc:
            raise RuntimeError(f"Failed to open capture file: {self.path}") from exc

    # ------------------------------------------------------------------
    def _decode_frame(self, timestamp: float, frame: bytes) -> Optional[PacketEvent]:
        try:
            ethernet = dpkt.ethernet.Ethernet(frame)
        except (dpkt.UnpackError, ValueError):
            logger.debug("Skipping undecodable Ethernet frame", exc_info=True)
            return None

        payload = ethernet.data
        if isinstance(payload, VLANtag8021Q):
            payload = payload.data

        if not isinstance(payload, (dpkt.ip.IP, dpkt.ip6.IP6)):
            return None
        transport = payload.data
        if not isinstance(transport, dpkt.udp.UDP):
            return None

        data = bytes(transport.data)
        try:
            header = StatsHeader(data)
        except (dpkt.UnpackError, InvalidAddressVariant):
            logger.debug("Skipping UDP payload without stats header in %s", self.path.name, exc_info=True)
            return None

        now = seconds_to_steps(timestamp)
        if self.direction is Direction.SENT:
            return SentEvent(header, len(data), now)
        return ReceivedEvent(
            header,
            len(data),
            now,
            self.sink_node_id,
            self.sink_app_id,
            SocketAddress.from_octets(payload.src, transport.sport),
        )


def _is_capture(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in CAPTURE_SUFFIXES


def load_run_directory(path: Union[str, Path]) -> List[TraceReader]:
    """Readers for the ``tx*`` and ``rx-<node>-<app>*`` captures of one run."""
    directory = Path(path)
    if not directory.is_dir():
        raise FileNotFoundError(f"Run directory does not exist: {directory}")

    readers: List[TraceReader] = []
    for entry in sorted(directory.iterdir()):
        if not _is_capture(entry):
            continue
        name = entry.name.lower()
        if name.startswith("tx"):
            readers.append(TraceReader(entry, Direction.SENT))
        elif name.startswith("rx"):
            match = _RECEIVER_NAME.match(name)
            if match is None:
                logger.warning("Receiver capture %s has no rx-<node>-<app> name, using 0-0", entry.name)
                readers.append(TraceReader(entry, Direction.RECEIVED))
            else:
                readers.append(
                    TraceReader(
                        entry,
                        Direction.RECEIVED,
                        sink_node_id=int(match.group("node")),
                        sink_app_id=int(match.group("app")),
                    )
                )
        else:
            logger.debug("Ignoring capture %s", entry.name)
    return readers


def run_directory_events(path: Union[str, Path]) -> Iterator[PacketEvent]:
    """Time ordered events of every capture in a run directory."""
    return merge_events(*load_run_directory(path))


__all__ = [
    "CAPTURE_SUFFIXES",
    "Direction",
    "TraceReader",
    "load_run_directory",
    "run_directory_events",
]
