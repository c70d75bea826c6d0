"""Factory module for configuring the process-wide diagnostics.

This module provides the main interface for setting up diagnostic logging with
file and console outputs. It manages the global configuration state and
provides a fluent interface for configuration.

The module enforces a single-configuration pattern where logging can only be
configured once. However, if logging is used before configuration, it provides
a console-only fallback.
"""

import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Final

from .config import LogConfig, OutputMode
from .diagnostics import Diagnostics
from .tracing import NULL_TRACER, Tracer


class ConfigurationState:
    """Manages the global diagnostics configuration state.

    This class provides thread-safe access to the global diagnostics and
    ensures that logging can only be fully configured once.

    Attributes:
        _diagnostics:   Configured diagnostics instance
        _fallback:      Console-only instance used before configuration
        _lock:          Threading lock for thread-safe state modifications
    """

    def __init__(self) -> None:
        """Initialize the configuration state."""
        self._diagnostics: Diagnostics | None = None
        self._fallback: Diagnostics | None = None
        self._lock: Final = threading.Lock()

    def is_configured(self) -> bool:
        """Check if logging has been fully configured.

        Returns:
            True if logging has been configured, False otherwise
        """
        return self._diagnostics is not None

    def get_diagnostics(self) -> Diagnostics:
        """Get the configured diagnostics.

        Returns:
            Configured Diagnostics instance

        Raises:
            RuntimeError: If logging hasn't been configured yet
        """
        if self._diagnostics is None:
            msg = (
                "Logging hasn't been configured. "
                "Call configure_logging() first or use default console-only logging."
            )
            raise RuntimeError(msg)
        return self._diagnostics

    def set_diagnostics(self, diagnostics: Diagnostics) -> None:
        """Set the configured diagnostics.

        Args:
            diagnostics: Diagnostics instance to use from now on

        Raises:
            RuntimeError: If logging has already been configured
        """
        with self._lock:
            if self._diagnostics is not None:
                msg = (
                    "Logging has already been configured. "
                    "configure_logging() should only be called once."
                )
                raise RuntimeError(msg)
            self._diagnostics = diagnostics

    def fallback(self) -> Diagnostics:
        """Get the console-only diagnostics, creating them on first use."""
        with self._lock:
            if self._fallback is None:
                config = replace(LogConfig.create_default(), output="console")
                self._fallback = Diagnostics(config)
            return self._fallback

    def reset(self) -> None:
        """Close and forget every instance, allowing a new configuration."""
        with self._lock:
            for diagnostics in (self._diagnostics, self._fallback):
                if diagnostics is not None:
                    diagnostics.close()
            self._diagnostics = None
            self._fallback = None


# Global configuration state
_config_state: Final = ConfigurationState()


@dataclass
class LoggingBuilder:
    """Builder for the diagnostics configuration.

    Provides a fluent interface for adjusting the configuration loaded from
    TOML, the environment or the defaults before the diagnostics are
    created. The underlying configuration objects stay immutable; each step
    replaces them.

    Attributes:
        _base_config:   Base configuration from TOML, the environment or defaults
        _file_path:     Optional custom path for the log file
    """

    _base_config: LogConfig
    _file_path: Path | None = None

    def with_file(self, path: str | Path | None = None) -> "LoggingBuilder":
        """Write to a log file, optionally at a custom path.

        Relative paths are resolved from the current working directory.
        Without a path the configured or default location is used. Console
        only configurations are switched to write both.

        Args:
            path: Optional custom log file path, overriding the configuration

        Returns:
            Self for method chaining
        """
        if path is not None:
            self._file_path = Path(path)
        if self._base_config.output == "console":
            self._base_config = replace(self._base_config, output="both")
        return self

    def with_output(self, output: OutputMode) -> "LoggingBuilder":
        """Select the output destination: file, console or both."""
        self._base_config = replace(self._base_config, output=output)
        return self

    def with_threshold(self, threshold: str) -> "LoggingBuilder":
        """Set the minimum level to emit."""
        self._base_config = self._base_config.with_threshold(threshold)
        return self

    def with_console(self, enabled: bool = True, colors: bool | None = None) -> "LoggingBuilder":
        """Enable or disable console output and, optionally, its colors."""
        console = self._base_config.console
        console = replace(
            console,
            enabled=enabled,
            colors=console.colors if colors is None else colors,
        )
        self._base_config = replace(self._base_config, console=console)
        return self

    def with_width(self, width: int) -> "LoggingBuilder":
        """Fix the console width instead of detecting it."""
        console = replace(self._base_config.console, width=width)
        self._base_config = replace(self._base_config, console=console)
        return self

    def with_trace_on_warn(self, enabled: bool = True) -> "LoggingBuilder":
        """Append stack traces to warnings."""
        self._base_config = replace(self._base_config, trace_on_warn=enabled)
        return self

    def with_script_name(self, script_name: str) -> "LoggingBuilder":
        """Set the script name shown in prefixes and used for the log file name."""
        self._base_config = replace(self._base_config, script_name=script_name)
        return self

    def build(self, *, tracer: Tracer = NULL_TRACER) -> Diagnostics:
        """Create the diagnostics and install them process-wide.

        It can only be called once per application lifecycle due to the
        global nature of the configuration.

        Returns:
            The configured Diagnostics instance

        Raises:
            RuntimeError: If logging has already been configured
        """
        if _config_state.is_configured():
            msg = (
                "Logging has already been configured. "
                "configure_logging() should only be called once."
            )
            raise RuntimeError(msg)

        config = self._base_config
        if self._file_path is not None:
            config = replace(config, file=config.file.with_path(self._file_path))

        diagnostics = Diagnostics(config, tracer=tracer)
        _config_state.set_diagnostics(diagnostics)
        return diagnostics


def configure_logging(config_path: str | Path | None = None, *, from_env: bool = False) -> LoggingBuilder:
    """Start configuring the process-wide diagnostics.

    If no configuration path is provided, the configuration comes from the
    environment when ``from_env`` is set and from the defaults otherwise.
    The returned builder allows further customization before finalizing
    the configuration.

    Args:
        config_path:    Optional path to a TOML config file
        from_env:       Read LOG_LEVEL, LOG_OUTPUT, ... when no file is given

    Returns:
        LoggingBuilder instance for method chaining
    """
    if config_path is not None:
        config = LogConfig.from_toml(Path(config_path))
    elif from_env:
        config = LogConfig.from_env()
    else:
        config = LogConfig.create_default()

    return LoggingBuilder(config)


def get_diagnostics() -> Diagnostics:
    """Get the process-wide diagnostics.

    If logging hasn't been configured yet, returns a console-only instance.
    """
    if _config_state.is_configured():
        return _config_state.get_diagnostics()
    return _config_state.fallback()


def reset_logging() -> None:
    """Discard the process-wide diagnostics so logging can be configured again."""
    _config_state.reset()


def log_debug(message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
    return get_diagnostics().log("DEBUG", message, detail, tracer=tracer)


def log_info(message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
    return get_diagnostics().log("INFO", message, detail, tracer=tracer)


def log_warning(message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
    return get_diagnostics().log("WARNING", message, detail, tracer=tracer)


def log_error(message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
    return get_diagnostics().log("ERROR", message, detail, tracer=tracer)


def log_critical(message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
    return get_diagnostics().log("CRITICAL", message, detail, tracer=tracer)


def log_extended(message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
    return get_diagnostics().log("EXTENDED", message, detail, tracer=tracer)


def warn(*args: object, tracer: Tracer = NULL_TRACER) -> None:
    """Log a warning through the process-wide diagnostics; see :meth:`Diagnostics.warn`."""
    get_diagnostics().warn(*args, tracer=tracer)


def die(*args: object, tracer: Tracer = NULL_TRACER) -> None:
    """Log a critical error and terminate; see :meth:`Diagnostics.die`."""
    get_diagnostics().die(*args, tracer=tracer)


def toggle_console(state: str, *, tracer: Tracer = NULL_TRACER) -> bool:
    """Switch console output of the process-wide diagnostics ``on`` or ``off``."""
    return get_diagnostics().toggle_console(state, tracer=tracer)
