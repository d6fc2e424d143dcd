from __future__ import annotations

import socket

import dpkt
import pytest

from flowstats import Direction, ReceivedEvent, SentEvent, SocketAddress, StatsHeader, TraceReader
from flowstats.trace_reader import load_run_directory, run_directory_events

SINK = SocketAddress.ipv4("10.0.0.2", 9)


def _udp_frame(payload: bytes, src: str, dst: str, sport: int, dport: int) -> bytes:
    udp = dpkt.udp.UDP(sport=sport, dport=dport, ulen=8 + len(payload), data=payload)
    if ":" in src:
        ip = dpkt.ip6.IP6(
            src=socket.inet_pton(socket.AF_INET6, src),
            dst=socket.inet_pton(socket.AF_INET6, dst),
            nxt=dpkt.ip.IP_PROTO_UDP,
            hlim=64,
            plen=len(bytes(udp)),
            data=udp,
        )
        eth_type = dpkt.ethernet.ETH_TYPE_IP6
    else:
        ip = dpkt.ip.IP(
            src=socket.inet_aton(src),
            dst=socket.inet_aton(dst),
            p=dpkt.ip.IP_PROTO_UDP,
            ttl=64,
            data=udp,
        )
        eth_type = dpkt.ethernet.ETH_TYPE_IP
    ethernet = dpkt.ethernet.Ethernet(
        src=b"\xaa\xaa\xaa\xaa\xaa\xaa",
        dst=b"\xbb\xbb\xbb\xbb\xbb\xbb",
        type=eth_type,
        data=ip,
    )
    return bytes(ethernet)


def _stats_payload(seq: int, ts: float, address: SocketAddress = SINK) -> bytes:
    header = StatsHeader(seq=seq, ts=int(round(ts * 1_000_000_000)), node_id=1, app_id=0, address=address)
    header.data = b"\x00" * 73
    return bytes(header)


def _write_pcap(path, frames) -> None:
    with path.open("wb") as fh:
        writer = dpkt.pcap.Writer(fh)
        for ts, frame in frames:
            writer.writepkt(frame, ts=ts)


def _build_run(directory) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    _write_pcap(
        directory / "tx-1-0.pcap",
        [
            (1.0, _udp_frame(_stats_payload(0, 1.0), "10.0.0.1", "10.0.0.2", 49153, 9)),
            (1.5, _udp_frame(_stats_payload(1, 1.5), "10.0.0.1", "10.0.0.2", 49153, 9)),
        ],
    )
    _write_pcap(
        directory / "rx-4-0.pcap",
        [
            (1.002, _udp_frame(_stats_payload(0, 1.0), "10.0.0.1", "10.0.0.2", 49153, 9)),
            (1.1, _udp_frame(b"hello", "10.0.0.7", "10.0.0.2", 5353, 5353)),
        ],
    )
    (directory / "notes.txt").write_text("not a capture", encoding="utf-8")


def test_sender_capture_yields_sent_events(tmp_path) -> None:
    _build_run(tmp_path)
    events = list(TraceReader(tmp_path / "tx-1-0.pcap", Direction.SENT))

    assert [type(event) for event in events] == [SentEvent, SentEvent]
    first = events[0]
    assert first.now == 1_000_000_000
    assert first.size == 100
    assert first.header.seq == 0
    assert first.header.ts == 1_000_000_000
    assert first.header.address == SINK


def test_receiver_capture_tags_sink_and_skips_foreign_payloads(tmp_path) -> None:
    _build_run(tmp_path)
    reader = TraceReader(tmp_path / "rx-4-0.pcap", Direction.RECEIVED, sink_node_id=4, sink_app_id=0)
    events = list(reader)

    assert len(events) == 1
    event = events[0]
    assert isinstance(event, ReceivedEvent)
    assert event.now == 1_002_000_000
    assert event.sink_node_id == 4
    assert event.sink_app_id == 0
    assert event.source_address == SocketAddress.ipv4("10.0.0.1", 49153)
    assert reader.packets_read == 2
    assert reader.skipped == 1


def test_ipv6_capture(tmp_path) -> None:
    sink = SocketAddress.ipv6("2001:db8::2", 9)
    path = tmp_path / "tx-v6.pcap"
    _write_pcap(path, [(2.0, _udp_frame(_stats_payload(3, 2.0, sink), "2001:db8::1", "2001:db8::2", 40000, 9))])

    events = list(TraceReader(path))
    assert len(events) == 1
    assert events[0].header.address == sink
    assert events[0].size == 39 + 73


def test_pcapng_capture(tmp_path) -> None:
    path = tmp_path / "tx.pcapng"
    with path.open("wb") as fh:
        writer = dpkt.pcapng.Writer(fh)
        writer.writepkt(_udp_frame(_stats_payload(0, 3.0), "10.0.0.1", "10.0.0.2", 49153, 9), ts=3.0)

    events = list(TraceReader(path))
    assert len(events) == 1
    assert events[0].header.seq == 0


def test_load_run_directory(tmp_path) -> None:
    _build_run(tmp_path)
    readers = load_run_directory(tmp_path)

    assert [(reader.path.name, reader.direction) for reader in readers] == [
        ("rx-4-0.pcap", Direction.RECEIVED),
        ("tx-1-0.pcap", Direction.SENT),
    ]
    assert (readers[0].sink_node_id, readers[0].sink_app_id) == (4, 0)

    events = list(run_directory_events(tmp_path))
    assert [(type(event).__name__, event.now) for event in events] == [
        ("SentEvent", 1_000_000_000),
        ("ReceivedEvent", 1_002_000_000),
        ("SentEvent", 1_500_000_000),
    ]


def test_missing_inputs(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        TraceReader(tmp_path / "missing.pcap")
    with pytest.raises(FileNotFoundError):
        load_run_directory(tmp_path / "missing")
