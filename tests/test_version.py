"""
Tests for engine version parsing and the startup probe responses.

Run with: pytest tests/test_version.py -v
"""

import pytest

from katalink.engine.version import DEFAULT_VERSION, EngineVersion, VersionNegotiator


class _Alerts:
    def __init__(self):
        self.alerts = []

    def alert(self, message):
        self.alerts.append(message)


@pytest.fixture
def alerts():
    return _Alerts()


@pytest.fixture
def negotiator(alerts):
    return VersionNegotiator(alerts)


def _version_reply(version):
    return {"id": "query_version", "action": "query_version", "version": version, "git_hash": "abc123"}


class TestEngineVersion:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1.10.1", (1, 10, 1)),
            ("1.9.0", (1, 9, 0)),
            ("1.12.4-cuda", (1, 12, 4)),
            ("v2.0", (2, 0, 0)),
            ("3", (3, 0, 0)),
        ],
    )
    def test_parse(self, text, expected):
        assert EngineVersion.parse(text).as_tuple() == expected

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            EngineVersion.parse("katago")
        assert EngineVersion.try_parse("") is None

    def test_numeric_ordering(self):
        assert EngineVersion(1, 10, 0) > EngineVersion(1, 9, 9)
        assert EngineVersion(1, 9, 0) == EngineVersion.parse("1.9.0")

    def test_str(self):
        assert str(EngineVersion(1, 13, 2)) == "1.13.2"


class TestVersionNegotiator:
    def test_defaults_before_reply(self, negotiator):
        assert negotiator.version == DEFAULT_VERSION
        assert negotiator.received_version is False

    def test_known_bad_version_warns(self, negotiator, alerts):
        negotiator.handle_message(_version_reply("1.9.0"))

        assert negotiator.version == EngineVersion(1, 9, 0)
        assert negotiator.received_version is True
        assert len(alerts.alerts) == 1
        assert "1.9.0" in alerts.alerts[0]

    def test_good_version_is_quiet(self, negotiator, alerts):
        negotiator.handle_message(_version_reply("1.10.1"))

        assert negotiator.version == EngineVersion(1, 10, 1)
        assert alerts.alerts == []

    def test_unparseable_version_keeps_default(self, negotiator, alerts):
        negotiator.handle_message(_version_reply("unknown-build"))

        assert negotiator.received_version is True
        assert negotiator.version == DEFAULT_VERSION
        assert alerts.alerts == []

    def test_other_messages_are_ignored(self, negotiator):
        negotiator.handle_message({"id": "n1:1", "version": "1.9.0"})
        negotiator.handle_message({"id": "query_version", "action": "query_version"})

        assert negotiator.received_version is False

    def test_custom_bad_versions(self, alerts):
        negotiator = VersionNegotiator(alerts, bad_versions=[EngineVersion(1, 11, 0)])
        negotiator.handle_message(_version_reply("1.9.0"))
        negotiator.handle_message(_version_reply("1.11.0"))

        assert len(alerts.alerts) == 1
        assert "1.11.0" in alerts.alerts[0]


class TestCapabilityProbe:
    def test_error_reply_is_healthy(self, negotiator, alerts):
        reply = {"id": "test_bs29", "error": "boardXSize must be <= 19"}
        assert negotiator.is_capability_response(reply)

        negotiator.handle_capability_response(reply)

        assert alerts.alerts == []
        assert negotiator.bs29_support is False

    def test_success_reply_warns_about_speed(self, negotiator, alerts):
        negotiator.handle_capability_response({"id": "test_bs29", "turnNumber": 0, "moveInfos": []})

        assert negotiator.bs29_support is True
        assert len(alerts.alerts) == 1
        assert "bs29" in alerts.alerts[0]
        assert "slower" in alerts.alerts[0]


class TestThroughSession:
    def test_bad_version_keeps_connection_usable(self, connected, transports, notifier):
        transports.last.receive(_version_reply("1.9.0"))

        assert len(notifier.alerts) == 1
        assert connected.connected is True
        assert connected.has_quit is False

    def test_good_version_no_warning(self, connected, transports, notifier):
        transports.last.receive(_version_reply("1.10.1"))

        assert notifier.alerts == []
        assert connected.version == EngineVersion(1, 10, 1)

    def test_bs29_build_warns(self, connected, transports, notifier, sink):
        transports.last.receive({"id": "test_bs29", "turnNumber": 0})

        assert len(notifier.alerts) == 1
        assert connected.bs29_support is True
        assert sink.received == []
