from __future__ import annotations

import csv
import socket

import dpkt
import pytest

from flowstats import SocketAddress, StatsHeader
from flowstats.cli import main
from flowstats.reporting import VECTOR_HEADER, scalar_header

SINK = SocketAddress.ipv4("192.0.2.20", 9)


def _frame(seq: int, ts: float, payload_len: int = 73) -> bytes:
    header = StatsHeader(seq=seq, ts=int(round(ts * 1_000_000_000)), node_id=1, app_id=0, address=SINK)
    header.data = b"\x00" * payload_len
    payload = bytes(header)

    udp = dpkt.udp.UDP(sport=49153, dport=9, ulen=8 + len(payload), data=payload)
    ip = dpkt.ip.IP(
        src=socket.inet_aton("192.0.2.10"),
        dst=socket.inet_aton("192.0.2.20"),
        p=dpkt.ip.IP_PROTO_UDP,
        ttl=64,
        data=udp,
    )
    ethernet = dpkt.ethernet.Ethernet(
        src=b"\xaa\xbb\xcc\xdd\xee\xff",
        dst=b"\x11\x22\x33\x44\x55\x66",
        type=dpkt.ethernet.ETH_TYPE_IP,
        data=ip,
    )
    return bytes(ethernet)


def _write_pcap(path, frames) -> None:
    with path.open("wb") as fh:
        writer = dpkt.pcap.Writer(fh)
        for ts, frame in frames:
            writer.writepkt(frame, ts=ts)


def _build_run_dir(path, delay: float, lost_last: bool = False) -> None:
    path.mkdir(parents=True, exist_ok=True)
    sent = [1.0, 1.5, 2.0]
    _write_pcap(path / "tx.pcap", [(ts, _frame(seq, ts)) for seq, ts in enumerate(sent)])
    received = sent[:-1] if lost_last else sent
    _write_pcap(
        path / "rx-4-0.pcap",
        [(ts + delay, _frame(seq, ts)) for seq, ts in enumerate(received)],
    )


def _read_csv(path):
    with path.open(newline="", encoding="utf-8") as fh:
        return list(csv.reader(fh))


def test_cli_writes_summary_scalar_and_vector_tables(tmp_path) -> None:
    run1 = tmp_path / "run1"
    run2 = tmp_path / "run2"
    _build_run_dir(run1, delay=0.002)
    _build_run_dir(run2, delay=0.004, lost_last=True)
    output_dir = tmp_path / "out"

    exit_code = main([str(output_dir), str(run1), str(run2), "--vector", "--log-level", "WARNING"])
    assert exit_code == 0

    summary = _read_csv(output_dir / "Net-Parameters-Summary.csv")
    assert summary[0][:2] == ["Rng Run", "Number of Flows"]
    assert [row[0] for row in summary[1:3]] == ["1", "2"]
    assert summary[3] == []
    assert [row[0] for row in summary[4:]] == ["Min", "Max", "Average", "Median", "Std. error"]

    scalar = _read_csv(output_dir / "Net-Parameters-Run_2-sca.csv")
    assert scalar[0] == scalar_header()
    assert scalar[1][:7] == ["0", "1", "0", "192.0.2.10:49153", "4", "0", "192.0.2.20:9"]
    lost_ratio_column = scalar_header().index("Lost Ratio [%]")
    assert float(scalar[1][lost_ratio_column]) == pytest.approx(100.0 / 3)
    assert scalar[2][0] == "Average of all flows (1)"

    vector = _read_csv(output_dir / "Net-Parameters-Run_1-vec.csv")
    assert vector[0] == VECTOR_HEADER
    assert len(vector) == 1 + 3
    assert float(vector[1][3]) == pytest.approx(2000.0)


def test_cli_without_scalar_output(tmp_path) -> None:
    run1 = tmp_path / "run1"
    _build_run_dir(run1, delay=0.001)
    output_dir = tmp_path / "out"

    assert main([str(output_dir), str(run1), "--no-scalar", "--prefix", "Scenario"]) == 0
    assert (output_dir / "Scenario-Summary.csv").is_file()
    assert not (output_dir / "Scenario-Run_1-sca.csv").exists()
    assert not (output_dir / "Scenario-Run_1-vec.csv").exists()


def test_cli_external_run_control(tmp_path) -> None:
    run = tmp_path / "run"
    _build_run_dir(run, delay=0.001)
    output_dir = tmp_path / "out"

    assert main([str(output_dir), str(run), "--current-run", "2", "--stop-run", "3"]) == 0
    summary = _read_csv(output_dir / "Net-Parameters-Summary.csv")
    assert summary[0][0] == "2"
    assert len(summary) == 1

    assert main([str(output_dir), str(run), "--current-run", "3", "--stop-run", "3"]) == 0
    summary = _read_csv(output_dir / "Net-Parameters-Summary.csv")
    assert [row[0] for row in summary if row] == ["2", "3", "Min", "Max", "Average", "Median", "Std. error"]


def test_cli_rejects_inconsistent_arguments(tmp_path) -> None:
    run1 = tmp_path / "run1"
    run2 = tmp_path / "run2"
    _build_run_dir(run1, delay=0.001)
    _build_run_dir(run2, delay=0.001)

    with pytest.raises(SystemExit):
        main([str(tmp_path / "out"), str(run1), str(run2), "--current-run", "1"])
    with pytest.raises(SystemExit):
        main([str(tmp_path / "out"), str(run1), "--stop-run", "4"])
    with pytest.raises(SystemExit):
        main([str(tmp_path / "out"), str(run1), "--hist-resolution", "0"])


def test_cli_reports_missing_run_directory(tmp_path) -> None:
    assert main([str(tmp_path / "out"), str(tmp_path / "missing")]) == 1


def test_cli_fails_on_receive_without_send(tmp_path) -> None:
    run = tmp_path / "run"
    run.mkdir()
    _write_pcap(run / "rx-4-0.pcap", [(1.001, _frame(0, 1.0))])

    assert main([str(tmp_path / "out"), str(run)]) == 1
