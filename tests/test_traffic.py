"""
Tests for the redacted engine traffic log.

Run with: pytest tests/test_traffic.py -v
"""

from katalink.engine.traffic import TrafficLogger, redact_received, redact_sent


class _BrokenLog:
    def info(self, line):
        raise OSError("disk full")


class TestRedaction:
    def test_received_bulk_fields_are_redacted(self):
        message = {
            "id": "n1:3",
            "turnNumber": 12,
            "moveInfos": [{"move": "Q16", "visits": 40}],
            "ownership": [0.1] * 361,
            "policy": [0.01] * 362,
            "rootInfo": {"winrate": 0.52},
        }

        redacted = redact_received(message)

        assert redacted["moveInfos"] == ["redacted"]
        assert redacted["ownership"] == ["redacted"]
        assert redacted["policy"] == ["redacted"]
        assert redacted["turnNumber"] == 12
        assert redacted["rootInfo"] == {"winrate": 0.52}
        # input not mutated
        assert message["moveInfos"] == [{"move": "Q16", "visits": 40}]

    def test_sent_moves_are_redacted(self):
        message = {"id": "n1:1", "moves": [["B", "Q16"]], "ownership": True}

        redacted = redact_sent(message)

        assert redacted == {"id": "n1:1", "moves": ["redacted"], "ownership": True}


class TestTrafficLogger:
    def test_disabled_logger_writes_nothing(self, traffic_log):
        traffic = TrafficLogger(enabled=False, sink=traffic_log)

        assert traffic.log_sent({"id": "x"}) is None
        assert traffic.log_received({"id": "x"}) is None
        assert traffic_log.lines == []

    def test_record_format(self, traffic_log):
        traffic = TrafficLogger(enabled=True, sink=traffic_log)

        traffic.log_sent({"id": "n1:1", "moves": [["B", "Q16"]]})
        traffic.log_received({"id": "n1:1", "policy": [0.5]})

        assert traffic_log.lines == [
            '--> {"id": "n1:1", "moves": ["redacted"]}',
            '< {"id": "n1:1", "policy": ["redacted"]}',
        ]

    def test_broken_sink_is_ignored(self):
        traffic = TrafficLogger(enabled=True, sink=_BrokenLog())

        line = traffic.log_sent({"id": "x"})

        assert line == '--> {"id": "x"}'
