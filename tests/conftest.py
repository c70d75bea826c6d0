"""Shared fixtures for the diaglog test suite."""

from pathlib import Path

import pytest

from diaglog.config import ConsoleOutputConfig, FileOutputConfig, LogConfig
from diaglog.diagnostics import Diagnostics
from diaglog.error_trap import uninstall_error_trap
from diaglog.factory import reset_logging
from diaglog.terminal import TerminalCapabilities, strip_ansi


# ---------------------------------------------------------------------------
# Global state
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _reset_global_state():
    """Forget the process-wide diagnostics and error trap after each test."""
    yield
    uninstall_error_trap()
    reset_logging()


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------
@pytest.fixture
def log_path(tmp_path) -> Path:
    return tmp_path / "install.log"


@pytest.fixture
def make_diagnostics(log_path):
    """Build Diagnostics writing to a temporary log file without colors."""
    created = []

    def factory(
            threshold="INFO",
            output="both",
            *,
            capabilities=None,
            trace_on_warn=False,
            width=200,
            path=None,
            rich_tracebacks=True,
            script_name="install.sh",
    ):
        config = LogConfig(
            threshold=threshold,
            output=output,
            file=FileOutputConfig(path=path or log_path),
            console=ConsoleOutputConfig(colors=False, width=width, rich_tracebacks=rich_tracebacks),
            trace_on_warn=trace_on_warn,
            script_name=script_name,
        )
        diagnostics = Diagnostics(config, capabilities or TerminalCapabilities.plain())
        created.append(diagnostics)
        return diagnostics

    yield factory

    for diagnostics in created:
        diagnostics.close()


def read_log(path: Path) -> list[str]:
    """Lines of a log file, empty if it does not exist."""
    if not path.exists():
        return []
    return path.read_text(encoding="utf-8").splitlines()


def plain(text: str) -> str:
    return strip_ansi(text)
