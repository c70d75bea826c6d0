"""Tests for terminal capability lookup."""

import io

import pytest

from diaglog.terminal import (
    TerminalCapabilities,
    capability_names,
    color_count,
    detect_width,
    probe,
    query,
    strip_ansi,
    visible_width,
)


class TestQuery:
    def test_non_interactive_stream_yields_empty(self):
        assert query("bold", stream=io.StringIO()) == ""
        assert query("setaf", 1, stream=io.StringIO()) == ""

    def test_unknown_capability_never_raises(self):
        assert query("no-such-capability", stream=io.StringIO()) == ""

    def test_color_count_of_non_interactive_stream(self):
        assert color_count(io.StringIO()) == 0


class TestProbe:
    def test_non_interactive_stream_is_plain(self):
        assert probe(io.StringIO()) == TerminalCapabilities.plain()

    def test_disabled_is_plain(self):
        assert probe(io.StringIO(), enabled=False) == TerminalCapabilities.plain()

    def test_capability_set(self):
        names = capability_names()

        assert len(names) == 31
        assert {"reset", "bold", "fg_gold", "bg_reset", "move_up", "clear_line"} <= set(names)

    @pytest.mark.parametrize(("colors", "gold"), [
        (8, "<setaf3>"),
        (256, "<setaf220>"),
    ])
    def test_gold_depends_on_palette_size(self, monkeypatch, colors, gold):
        monkeypatch.setattr(
            "diaglog.terminal.query",
            lambda capability, *params, stream=None: f"<{capability}{''.join(map(str, params))}>",
        )
        monkeypatch.setattr("diaglog.terminal.color_count", lambda stream=None: colors)

        caps = probe(io.StringIO())

        assert caps.fg_yellow == "<setaf3>"
        assert caps.fg_gold == gold
        assert caps.bold == "<bold>"


class TestCapabilities:
    def test_plain_is_all_empty(self):
        caps = TerminalCapabilities.plain()
        assert all(getattr(caps, name) == "" for name in capability_names())

    def test_ansi_gold_uses_extended_palette(self):
        caps = TerminalCapabilities.ansi()

        assert caps.fg_gold == "\x1b[38;5;220m"
        assert caps.reset == "\x1b[0m"
        assert caps.fg_red == "\x1b[31m"

    def test_color_lookup(self):
        caps = TerminalCapabilities.ansi()

        assert caps.color("fg_cyan") == "\x1b[36m"
        assert caps.color("not_a_color") == ""


def test_strip_ansi_and_visible_width():
    text = "\x1b[1m\x1b[38;5;220m[WARN ]\x1b[0m disk low"

    assert strip_ansi(text) == "[WARN ] disk low"
    assert visible_width(text) == len("[WARN ] disk low")


def test_detect_width_honours_columns(monkeypatch):
    monkeypatch.setenv("COLUMNS", "120")
    assert detect_width(io.StringIO()) == 120
