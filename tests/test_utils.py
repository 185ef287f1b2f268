"""
Tests for core helper functions.

Run with: pytest tests/test_utils.py -v
"""

from katalink.core.utils import basename, format_value, path_exists


def test_format_value_strings_pass_through():
    assert format_value("plain") == "plain"


def test_format_value_dict_is_indented_json():
    assert format_value({"id": "q", "error": "bad"}) == '{\n  "id": "q",\n  "error": "bad"\n}'


def test_path_exists(tmp_path):
    weights = tmp_path / "b18.bin.gz"
    weights.write_bytes(b"")

    assert path_exists(str(weights)) is True
    assert path_exists(str(tmp_path / "missing.cfg")) is False
    assert path_exists("") is False
    assert path_exists(None) is False


def test_basename():
    assert basename("/opt/katago/katago") == "katago"
