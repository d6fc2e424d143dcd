import unittest

from flowstats import ReceivedEvent, SentEvent, SocketAddress, StatsHeader, merge_events
from flowstats.events import deliver_all

DESTINATION = SocketAddress.ipv4("10.0.0.2", 9)
SOURCE = SocketAddress.ipv4("10.0.0.1", 49153)


def _header(seq: int) -> StatsHeader:
    return StatsHeader(seq=seq, ts=0, node_id=1, app_id=0, address=DESTINATION)


class _Recorder:
    def __init__(self) -> None:
        self.calls = []

    def on_sent(self, header, size, now) -> None:
        self.calls.append(("sent", header.seq, size, now))

    def on_received(self, header, size, now, sink_node_id, sink_app_id, source_address) -> None:
        self.calls.append(("received", header.seq, size, now, sink_node_id, sink_app_id, source_address))


class EventsTest(unittest.TestCase):
    def test_deliver_calls_matching_listener_method(self) -> None:
        recorder = _Recorder()
        SentEvent(_header(1), 100, 10).deliver(recorder)
        ReceivedEvent(_header(1), 100, 20, 4, 0, SOURCE).deliver(recorder)

        self.assertEqual(
            recorder.calls,
            [("sent", 1, 100, 10), ("received", 1, 100, 20, 4, 0, SOURCE)],
        )

    def test_merge_orders_by_time_with_sends_first(self) -> None:
        sent = [SentEvent(_header(0), 10, 0), SentEvent(_header(1), 10, 5)]
        received = [
            ReceivedEvent(_header(0), 10, 5, 4, 0, SOURCE),
            ReceivedEvent(_header(1), 10, 7, 4, 0, SOURCE),
        ]

        merged = list(merge_events(received, sent))
        self.assertEqual(
            [(type(event).__name__, event.now) for event in merged],
            [("SentEvent", 0), ("SentEvent", 5), ("ReceivedEvent", 5), ("ReceivedEvent", 7)],
        )

    def test_deliver_all_counts_events(self) -> None:
        recorder = _Recorder()
        events = [SentEvent(_header(0), 10, 0), SentEvent(_header(1), 10, 1)]
        self.assertEqual(deliver_all(events, recorder), 2)
        self.assertEqual(len(recorder.calls), 2)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
