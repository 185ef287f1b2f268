"""
Tests for the command line entry point helpers.

Run with: pytest tests/test_main.py -v
"""

import pytest

from katalink.main import (
    create_config_from_args,
    create_params_from_args,
    format_move_infos,
    parse_args,
    parse_moves,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("KATAGO_WS_PROXY_URL", "KATALINK_ENGINE", "KATALINK_LOG_TRAFFIC", "KATALINK_MAX_VISITS"):
        monkeypatch.delenv(key, raising=False)


class TestParseMoves:
    def test_basic(self):
        assert parse_moves("B:Q16, w:d4,B:pass") == [("B", "Q16"), ("W", "D4"), ("B", "PASS")]

    def test_empty_entries_are_skipped(self):
        assert parse_moves("") == []
        assert parse_moves("B:Q16,,") == [("B", "Q16")]

    @pytest.mark.parametrize("text", ["Q16", "X:Q16", "B:"])
    def test_bad_entries(self, text):
        with pytest.raises(ValueError):
            parse_moves(text)


class TestConfigFromArgs:
    def test_cli_overrides(self):
        args = parse_args([
            "--proxy-url", "ws://10.1.1.1:41949",
            "--engine", "/opt/katago",
            "--visits", "77",
            "--log-traffic",
            "-v",
        ])

        config = create_config_from_args(args)

        assert config.proxy_url == "ws://10.1.1.1:41949"
        assert config.engine_path == "/opt/katago"
        assert config.max_visits == 77
        assert config.log_traffic is True
        assert config.console_level == "DEBUG"

    def test_env_used_without_flags(self, monkeypatch):
        monkeypatch.setenv("KATAGO_WS_PROXY_URL", "ws://from-env:1")

        config = create_config_from_args(parse_args([]))

        assert config.proxy_url == "ws://from-env:1"


class TestParamsFromArgs:
    def test_version_only(self):
        assert create_params_from_args(parse_args([])) is None

    def test_position(self):
        args = parse_args(["--moves", "B:Q16,W:D4", "--komi", "6.5", "--board-size", "13", "--rules", "Japanese"])

        params = create_params_from_args(args)

        assert params.node_id == "cli"
        assert params.moves == [("B", "Q16"), ("W", "D4")]
        assert params.komi == 6.5
        assert params.board_x_size == params.board_y_size == 13
        assert params.rules == "Japanese"

    def test_empty_board(self):
        params = create_params_from_args(parse_args(["--analyse"]))
        assert params.moves == []


class TestFormatMoveInfos:
    def test_ranked_and_truncated(self):
        infos = [
            {"move": "D4", "order": 1, "visits": 20, "winrate": 0.48, "scoreLead": -0.5},
            {"move": "Q16", "order": 0, "visits": 80, "winrate": 0.52, "scoreLead": 0.7},
            {"move": "C3", "order": 2, "visits": 1, "winrate": 0.30, "scoreLead": -4.0},
        ]

        lines = format_move_infos(infos, top=2)

        assert len(lines) == 2
        assert lines[0].strip().startswith("Q16")
        assert "visits=80" in lines[0]
        assert "52.0%" in lines[0]
        assert "+0.7" in lines[0]
        assert lines[1].strip().startswith("D4")
