"""Tests for the process-wide configuration and module level API."""

import io

import pytest

import diaglog
from conftest import read_log


@pytest.fixture
def configured(tmp_path):
    log_path = tmp_path / "install.log"
    diagnostics = (
        diaglog.configure_logging()
        .with_file(log_path)
        .with_console(colors=False)
        .with_width(120)
        .with_script_name("install.sh")
        .build()
    )
    return diagnostics, log_path


class TestConfiguration:
    def test_build_returns_process_wide_instance(self, configured):
        diagnostics, log_path = configured

        assert diaglog.get_diagnostics() is diagnostics
        assert diagnostics.log_file == log_path

    def test_reconfiguration_is_rejected(self, configured, tmp_path):
        with pytest.raises(RuntimeError, match="already been configured"):
            diaglog.configure_logging().with_file(tmp_path / "other.log").build()

    def test_builder_steps(self, tmp_path):
        diagnostics = (
            diaglog.configure_logging()
            .with_output("console")
            .with_threshold("ERROR")
            .with_trace_on_warn()
            .with_console(enabled=True, colors=False)
            .build()
        )

        assert diagnostics.config.output == "console"
        assert diagnostics.config.threshold == "ERROR"
        assert diagnostics.config.trace_on_warn
        assert diagnostics.log_file is None

    def test_with_file_turns_console_only_into_both(self, tmp_path):
        diagnostics = (
            diaglog.configure_logging()
            .with_output("console")
            .with_console(colors=False)
            .with_file(tmp_path / "install.log")
            .build()
        )

        assert diagnostics.config.output == "both"

    def test_from_toml(self, tmp_path):
        config_path = tmp_path / "logging.toml"
        config_path.write_text(
            '[logging]\nlevel = "WARNING"\nscript_name = "setup.sh"\n'
            '[logging.console]\ncolors = false\n',
            encoding="utf-8",
        )

        diagnostics = diaglog.configure_logging(config_path).with_file(tmp_path / "setup.log").build()

        assert diagnostics.config.threshold == "WARNING"
        assert diagnostics.config.script_name == "setup.sh"

    def test_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        monkeypatch.setenv("LOG_OUTPUT", "file")
        monkeypatch.setenv("LOG_FILE", str(tmp_path / "env.log"))

        diagnostics = diaglog.configure_logging(from_env=True).build()

        assert diagnostics.config.threshold == "ERROR"
        assert diagnostics.log_file == tmp_path / "env.log"

    def test_reset_allows_new_configuration(self, configured, tmp_path):
        diaglog.reset_logging()

        diagnostics = diaglog.configure_logging().with_file(tmp_path / "second.log").build()
        assert diaglog.get_diagnostics() is diagnostics


class TestFallback:
    def test_console_only_before_configuration(self, capsys):
        diagnostics = diaglog.get_diagnostics()

        assert not diagnostics.config.writes_file
        assert diagnostics.log_file is None
        assert diaglog.get_diagnostics() is diagnostics

        diaglog.log_info("early message")
        assert capsys.readouterr().out.endswith("early message\n")


class TestModuleApi:
    def test_level_functions(self, configured, capsys):
        _, log_path = configured

        diaglog.log_debug("hidden")
        diaglog.log_info("shown")
        diaglog.log_warning("careful")
        diaglog.log_error("broken", "stack exhausted")
        diaglog.log_critical("fatal-ish")
        diaglog.log_extended("too verbose")

        lines = read_log(log_path)
        assert [line.split("] ")[-1] for line in lines] == [
            "shown", "careful", "broken", "stack exhausted", "fatal-ish",
        ]
        assert all("[install.sh:" in line for line in lines)
        assert "[INFO ] shown" in capsys.readouterr().out

    def test_warn_and_die(self, configured, capsys):
        _, log_path = configured

        diaglog.warn("mirror slow")
        with pytest.raises(SystemExit) as exc_info:
            diaglog.die(3, "mirror gone")

        assert exc_info.value.code == 3
        err = capsys.readouterr().err
        assert "[WARN ] [install.sh:test_warn_and_die:" in err
        assert "mirror gone. Code: (3)." in err
        assert "Function: test_warn_and_die()" in err
        assert "Function: die()" not in err

    def test_toggle_console(self, configured, capsys):
        _, log_path = configured

        assert diaglog.toggle_console("off")
        diaglog.log_info("silent")
        assert capsys.readouterr().out == ""

        assert diaglog.toggle_console("on")
        diaglog.log_info("loud")
        assert capsys.readouterr().out == "[INFO ] loud\n"
        assert len(read_log(log_path)) == 2

    def test_tracer_reaches_the_process_wide_instance(self, configured, capsys):
        stream = io.StringIO()
        tracer = diaglog.Tracer(enabled=True, stream=stream, script="install.sh")

        diaglog.log_info("fetching", tracer=tracer)
        diaglog.log_extended("details", tracer=tracer)
        diaglog.toggle_console("off", tracer=tracer)

        output = stream.getvalue()
        assert "Starting function log()" in output
        assert "Starting function emit()" in output
        assert "Starting function toggle_console()" in output
