"""Diagnostic and structured logging for installer and automation scripts.

This package provides leveled logging to a log file and the console, warnings
and fatal errors annotated with their call site and a stack trace, and an
opt-in debug trace of function entry and exit. Records are rendered through
structlog on top of the Python standard library logging; terminal colors come
from terminfo and degrade to plain text when output is not a terminal.

Key Features:
    - Six levels with fixed-width labels and colors (DEBUG, INFO, WARN, ERROR,
      CRIT and the EXTD detail channel) filtered by a minimum threshold
    - Log file lines ``<timestamp> [<label>] [<script>:<line>] <message>``
      appended to ``~/<script>.log`` with a fallback to the temporary directory
    - Colorized console lines wrapped to the terminal width
    - ``warn`` and ``die`` with optional codes, call-site prefixes and details
    - Stack traces that leave out the logging machinery itself
    - Per-call debug tracing through an explicit tracer capability
    - TOML or environment based configuration with sensible defaults
    - Uncaught exceptions logged with rich tracebacks

Basic Usage:
    ```python
    from diaglog import configure_logging, die, log_info, warn

    # Console-only logging with defaults (INFO threshold, colored output)
    log_info("Using default console-only logging")

    # File and console output using a configuration file
    configure_logging("config/logging.toml").with_file().build()
    log_info("Logging configured with file output")

    # Warnings carry the call site; a leading number is a code
    warn(3, "Package cache is stale", "Run the update step first")

    # Fatal errors always print a stack trace and exit with the code
    die(2, "bad config", "missing key X")
    ```

    An explicit instance avoids the process-wide state entirely:

    ```python
    from diaglog import Diagnostics, LogConfig

    diagnostics = Diagnostics(LogConfig.from_env())
    diagnostics.log_warning("disk low", "Less than 1 GB left on /var")
    diagnostics.toggle_console("off")
    diagnostics.log_info("Written to the log file only")
    ```

Configuration:
    The configuration can be specified in a TOML file with the following structure:

    ```toml
    [logging]
    level = "INFO"          # (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    output = "both"         # (file, console, both)
    trace_on_warn = false
    script_name = "install.sh"

    [logging.file]
    path = "logs/install.log"
    encoding = "utf-8"

    [logging.console]
    enabled = true
    colors = true
    width = 100
    rich_tracebacks = true
    ```

    All sections and fields are optional with sensible defaults. The same
    settings are read from ``LOG_LEVEL``, ``LOG_OUTPUT``, ``LOG_FILE``,
    ``USE_CONSOLE``, ``WARN_STACK_TRACE``, ``COLUMNS`` and ``THIS_SCRIPT``
    with ``configure_logging(from_env=True)``.

Debug Tracing:
    ```python
    from diaglog import NULL_TRACER, Tracer

    def install(packages, *, tracer=NULL_TRACER):
        with tracer.span():
            ...

    tracer, args = Tracer.from_args(sys.argv[1:])  # "debug" enables it
    install(args, tracer=tracer)
    ```

Implementation Notes:
    - The log file is opened for each record and closed again
    - Console output includes colors by default (requires 'colorama' on Windows)
    - Rich tracebacks are enabled by default (requires 'rich')
    - All timestamps are in local time
    - An unknown threshold resets to INFO with a single warning
    - Configuration is thread-safe and can only be fully configured once
    - Early logging access before configuration uses console-only output
"""

from .config import LogConfig, LogFileError
from .diagnostics import Diagnostics
from .error_trap import install_error_trap, uninstall_error_trap
from .factory import (
    configure_logging,
    die,
    get_diagnostics,
    log_critical,
    log_debug,
    log_error,
    log_extended,
    log_info,
    log_warning,
    reset_logging,
    toggle_console,
    warn,
)
from .tracing import NULL_TRACER, Tracer, traced

__all__ = [
    "NULL_TRACER",
    "Diagnostics",
    "LogConfig",
    "LogFileError",
    "Tracer",
    "configure_logging",
    "die",
    "get_diagnostics",
    "install_error_trap",
    "log_critical",
    "log_debug",
    "log_error",
    "log_extended",
    "log_info",
    "log_warning",
    "reset_logging",
    "toggle_console",
    "traced",
    "uninstall_error_trap",
    "warn",
]
