"""Tests for per-call debug tracing."""

import io

import pytest

from diaglog.config import resolve_log_file
from diaglog.tracing import NULL_TRACER, Tracer, strip_sentinel, traced
from diaglog.wrapping import wrap_messages


def fetch(name, *, tracer=NULL_TRACER):
    with tracer.span():
        return name.upper()


def install(packages, *, tracer=NULL_TRACER):
    with tracer.span():
        return [fetch(name, tracer=tracer) for name in packages]


def explode(*, tracer=NULL_TRACER):
    with tracer.span():
        raise ValueError("boom")


@traced
def double(value, *, tracer=NULL_TRACER):
    return value * 2


@traced
def triple(value):
    return value * 3


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def tracer(stream):
    return Tracer(enabled=True, stream=stream, script="install.sh")


class TestFromArgs:
    def test_sentinel_enables_and_is_stripped(self):
        tracer, args = Tracer.from_args(["install", "debug", "curl"])

        assert tracer.enabled
        assert args == ["install", "curl"]

    def test_without_sentinel(self):
        tracer, args = Tracer.from_args(["install", "curl"])

        assert not tracer.enabled
        assert args == ["install", "curl"]

    def test_custom_sentinel(self):
        tracer, args = Tracer.from_args(["--trace", "go"], sentinel="--trace")

        assert tracer.enabled
        assert args == ["go"]

    def test_repeated_sentinel_is_stripped_everywhere(self):
        tracer, args = Tracer.from_args(("debug", "install", "debug"))

        assert tracer.enabled
        assert args == ["install"]


def test_strip_sentinel():
    assert strip_sentinel(["a", "debug", 1, "debug"]) == ["a", 1]


class TestSpan:
    def test_entering_and_exiting_lines(self, tracer, stream):
        assert fetch("curl", tracer=tracer) == "CURL"

        lines = stream.getvalue().splitlines()
        assert len(lines) == 2
        assert lines[0].startswith(
            "[DEBUG in install.sh] Starting function fetch() called by test_entering_and_exiting_lines():"
        )
        assert lines[1].startswith(
            "[DEBUG in install.sh] Exiting function fetch() called by test_entering_and_exiting_lines():"
        )

    def test_nested_calls_share_the_tracer(self, tracer, stream):
        install(["curl", "git"], tracer=tracer)

        lines = stream.getvalue().splitlines()
        assert [line.split("] ", 1)[1].split(" called")[0] for line in lines] == [
            "Starting function install()",
            "Starting function fetch()",
            "Exiting function fetch()",
            "Starting function fetch()",
            "Exiting function fetch()",
            "Exiting function install()",
        ]

    def test_exit_line_on_exception(self, tracer, stream):
        with pytest.raises(ValueError):
            explode(tracer=tracer)

        assert stream.getvalue().splitlines()[-1].endswith("(raised ValueError).")

    def test_null_tracer_is_silent(self, capsys):
        install(["curl"])
        assert capsys.readouterr().err == ""

    def test_defaults_to_stderr(self, capsys):
        fetch("curl", tracer=Tracer(enabled=True))
        assert "[DEBUG in stdin] Starting function fetch()" in capsys.readouterr().err

    def test_call_trees_are_independent(self, tracer, stream, capsys):
        install(["curl"], tracer=tracer)
        install(["git"])

        assert len(stream.getvalue().splitlines()) == 4
        assert capsys.readouterr().err == ""


class TestTraced:
    def test_forwards_tracer_when_accepted(self, tracer, stream):
        assert double(2, tracer=tracer) == 4

        lines = stream.getvalue().splitlines()
        assert "Starting function double() called by test_forwards_tracer_when_accepted()" in lines[0]
        assert "Exiting function double()" in lines[-1]

    def test_drops_tracer_when_not_accepted(self, tracer, stream):
        assert triple(2, tracer=tracer) == 6
        assert len(stream.getvalue().splitlines()) == 2

    def test_untraced_call(self):
        assert double(5) == 10


def test_note(tracer, stream):
    tracer.note("checking mirrors")
    output = stream.getvalue()
    assert output.startswith("[DEBUG in install.sh] 'checking mirrors' from test_note():")
    assert output.endswith(".\n")


def test_disabled_note_is_silent(capsys):
    NULL_TRACER.note("hidden")
    assert capsys.readouterr().err == ""


class TestLibraryCallsAcceptTracer:
    def test_wrap_messages(self, tracer, stream):
        wrap_messages(40, "short", tracer=tracer)
        assert "Starting function wrap_messages()" in stream.getvalue()

    def test_resolve_log_file(self, tracer, stream, tmp_path):
        resolve_log_file(tmp_path / "install.log", "install.sh", tracer=tracer)

        output = stream.getvalue()
        assert "Starting function resolve_log_file()" in output
        assert "'Checking if log directory" in output
