"""Tests for build selector and signal parsing."""

from __future__ import annotations

import pytest

from jenkins_remote.build_spec import Range, Signal, Single, parse_build_spec
from jenkins_remote.errors import InvalidBuildSpec, InvalidSignal


class TestParseBuildSpec:
    def test_single(self):
        assert parse_build_spec("5") == Single(5)

    def test_zero(self):
        assert parse_build_spec("0") == Single(0)

    def test_exclusive_range(self):
        assert parse_build_spec("1..5") == Range(1, 5)

    def test_inclusive_range(self):
        assert parse_build_spec("1..=5") == Range(1, 6)

    def test_inclusive_single_build_range(self):
        assert parse_build_spec("7..=7") == Range(7, 8)

    @pytest.mark.parametrize("token", ["", "abc", "5..", "..5", "-3", "1...5", "1..=", "a..b", "1..=x", "5..3", "4..4", "١٢", "١..٣", "1..=٣"])
    def test_malformed(self, token):
        with pytest.raises(InvalidBuildSpec):
            parse_build_spec(token)

    def test_range_iterates_exclusive_end(self):
        assert list(parse_build_spec("3..6")) == [3, 4, 5]
        assert list(parse_build_spec("3..=6")) == [3, 4, 5, 6]

    def test_single_iterates_once(self):
        assert list(parse_build_spec("42")) == [42]


class TestSignal:
    @pytest.mark.parametrize("value,expected", [
        ("HUP", Signal.HUP), ("1", Signal.HUP),
        ("TERM", Signal.TERM), ("15", Signal.TERM),
        ("KILL", Signal.KILL), ("9", Signal.KILL),
        ("term", Signal.TERM),
    ])
    def test_aliases(self, value, expected):
        assert Signal.parse(value) is expected

    def test_endpoints(self):
        assert Signal.HUP.value == "stop"
        assert Signal.TERM.value == "term"
        assert Signal.KILL.value == "kill"

    def test_unknown_signal(self):
        with pytest.raises(InvalidSignal, match="invalid signal"):
            Signal.parse("INT")
