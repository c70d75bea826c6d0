"""Configuration handling for the diagnostic logging system.

This module provides the configuration classes of the diagnostic logging
system together with TOML and environment parsing. Configuration objects are
immutable; helpers return modified copies. The log file location is resolved
here as well, including the fallback to the temporary directory when the
preferred location is not writable.
"""

import os
import sys
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Final, Literal, get_args

import tomllib

from .severity import DEFAULT_THRESHOLD
from .tracing import NULL_TRACER, Tracer

OutputMode = Literal["file", "console", "both"]
VALID_OUTPUT_MODES: Final = frozenset(get_args(OutputMode))

FALLBACK_SCRIPT_NAME: Final = "stdin"

# Narrowest console that still fits a prefix and a few columns of text
MIN_CONSOLE_WIDTH: Final = 24

_TRUE_VALUES: Final = frozenset({"1", "true", "yes", "on"})


class LogFileError(OSError):
    """Raised when no log file can be created, not even in the fallback location."""


@dataclass(frozen=True, slots=True)
class FileOutputConfig:
    """Configuration for the log file sink.

    Attributes:
        path:       Path to the log file, None to derive it from the script name
        encoding:   Character encoding for the log file (default: utf-8)
    """

    path: Path | None = None
    encoding: str = "utf-8"

    def with_path(self, new_path: str | Path) -> "FileOutputConfig":
        """Create a new instance with an updated path.

        Args:
            new_path: New log file path

        Returns:
            New FileOutputConfig instance with the updated path
        """
        return replace(self, path=Path(new_path))


@dataclass(frozen=True, slots=True)
class ConsoleOutputConfig:
    """Configuration for console output.

    Attributes:
        enabled:            Whether log records are printed on the console
        colors:             Enable terminal colors (probed, degrades to plain text)
        width:              Console width in columns, None to detect it
        rich_tracebacks:    Render uncaught exceptions with rich tracebacks
    """

    enabled: bool = True
    colors: bool = True
    width: int | None = None
    rich_tracebacks: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values after initialization.

        Raises:
            ValueError: If the width is narrower than MIN_CONSOLE_WIDTH
        """
        if self.width is not None and self.width < MIN_CONSOLE_WIDTH:
            msg = f"width must be at least {MIN_CONSOLE_WIDTH} columns, got {self.width}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Complete diagnostic logging configuration.

    The threshold is deliberately not validated here; an unknown threshold
    is reset to INFO with a warning once the configuration is used.

    Attributes:
        threshold:      Minimum level to emit (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        output:         Destination of log records: file, console or both
        file:           FileOutputConfig for the log file sink
        console:        ConsoleOutputConfig for console output
        trace_on_warn:  Append a stack trace to warnings
        script_name:    Script name shown in prefixes and used for the log file name
    """

    threshold: str = DEFAULT_THRESHOLD
    output: OutputMode = "both"
    file: FileOutputConfig = field(default_factory=FileOutputConfig)
    console: ConsoleOutputConfig = field(default_factory=ConsoleOutputConfig)
    trace_on_warn: bool = False
    script_name: str = FALLBACK_SCRIPT_NAME

    def __post_init__(self) -> None:
        """Validate configuration values after initialization.

        Raises:
            ValueError: If the output mode is invalid
        """
        if self.output in VALID_OUTPUT_MODES:
            return
        msg = (
            f"Invalid output mode: {self.output!r}. "
            f"Must be one of: {', '.join(sorted(VALID_OUTPUT_MODES))}"
        )
        raise ValueError(msg)

    @property
    def writes_file(self) -> bool:
        """True if the output mode includes the log file."""
        return self.output in ("file", "both")

    @property
    def writes_console(self) -> bool:
        """True if the output mode includes the console and the console is enabled."""
        return self.output in ("console", "both") and self.console.enabled

    def with_console(self, enabled: bool) -> "LogConfig":
        """Create a new instance with console output switched on or off."""
        return replace(self, console=replace(self.console, enabled=enabled))

    def with_threshold(self, threshold: str) -> "LogConfig":
        """Create a new instance with another threshold."""
        return replace(self, threshold=threshold)

    @classmethod
    def from_toml(cls, config_path: Path) -> "LogConfig":
        """Create LogConfig instance from a TOML configuration file.

        Args:
            config_path: Path to the TOML configuration file

        Returns:
            Configured LogConfig instance

        Raises:
            ValueError: If required configuration keys are missing or if values are invalid
        """
        try:
            config_data = cls._load_toml(config_path)
            return cls._parse_config(config_data)

        except KeyError as e:
            msg = f"Missing required configuration key: {e.args[0]}"
            raise ValueError(msg) from e

        except (TypeError, ValueError) as e:
            msg = f"Invalid value in configuration file: {e!s}"
            raise ValueError(msg) from e

    @classmethod
    def _load_toml(cls, config_path: Path) -> dict:
        """Load and parse the TOML configuration file.

        Raises:
            FileNotFoundError:  If the configuration file doesn't exist
            TOMLDecodeError:    If the TOML file is malformed
        """
        try:
            with config_path.open("rb") as f:
                return tomllib.load(f)

        except FileNotFoundError as e:
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg) from e

        except tomllib.TOMLDecodeError as e:
            msg = f"Failed to parse TOML file {config_path}"
            raise tomllib.TOMLDecodeError(msg) from e

    @classmethod
    def _parse_config(cls, config_data: dict) -> "LogConfig":
        logging_config = config_data["logging"]
        file_config = logging_config.get("file", {})
        console_config = logging_config.get("console", {})

        path = file_config.get("path")
        width = console_config.get("width")

        return cls(
            threshold=str(logging_config.get("level", DEFAULT_THRESHOLD)),
            output=str(logging_config.get("output", "both")).lower(),
            file=FileOutputConfig(
                path=Path(path) if path else None,
                encoding=file_config.get("encoding", "utf-8"),
            ),
            console=ConsoleOutputConfig(
                enabled=bool(console_config.get("enabled", True)),
                colors=bool(console_config.get("colors", True)),
                width=int(width) if width is not None else None,
                rich_tracebacks=bool(console_config.get("rich_tracebacks", True)),
            ),
            trace_on_warn=bool(logging_config.get("trace_on_warn", False)),
            script_name=str(logging_config.get("script_name", default_script_name())),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LogConfig":
        """Create LogConfig instance from environment variables.

        Reads ``LOG_LEVEL``, ``LOG_OUTPUT``, ``LOG_FILE``, ``USE_CONSOLE``,
        ``WARN_STACK_TRACE``, ``COLUMNS`` and ``THIS_SCRIPT``; anything
        unset keeps its default. A ``COLUMNS`` value narrower than
        ``MIN_CONSOLE_WIDTH`` is ignored.

        Args:
            environ: Mapping to read from (default: ``os.environ``)

        Returns:
            Configured LogConfig instance

        Raises:
            ValueError: If LOG_OUTPUT holds an invalid value
        """
        env = os.environ if environ is None else environ
        columns = env.get("COLUMNS", "").strip()
        log_file = env.get("LOG_FILE", "").strip()

        return cls(
            threshold=env.get("LOG_LEVEL", DEFAULT_THRESHOLD),
            output=env.get("LOG_OUTPUT", "both").strip().lower(),
            file=FileOutputConfig(path=Path(log_file) if log_file else None),
            console=ConsoleOutputConfig(
                enabled=_env_flag(env.get("USE_CONSOLE"), default=True),
                width=_env_width(columns),
            ),
            trace_on_warn=_env_flag(env.get("WARN_STACK_TRACE"), default=False),
            script_name=env.get("THIS_SCRIPT") or default_script_name(),
        )

    @classmethod
    def create_default(cls, script_name: str | None = None) -> "LogConfig":
        """Create a default LogConfig instance.

        Creates a configuration with sensible defaults:
        - INFO threshold
        - Output to both the log file and the console, colors enabled
        - Log file derived from the script name in the home directory
        - No stack traces on warnings

        Args:
            script_name: Script name, detected from the running program when None

        Returns:
            LogConfig instance with default settings
        """
        return cls(script_name=script_name or default_script_name())


@dataclass(frozen=True, slots=True)
class LogFileResolution:
    """Outcome of resolving the log file location.

    Attributes:
        path:       Log file that was created or verified
        requested:  Log file that was asked for
        fell_back:  True if the temporary directory had to be used
    """

    path: Path
    requested: Path
    fell_back: bool = False


def _env_flag(value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_width(columns: str) -> int | None:
    if columns.isdigit() and int(columns) >= MIN_CONSOLE_WIDTH:
        return int(columns)
    return None


def default_script_name() -> str:
    """Determine the name of the running script.

    Uses ``THIS_SCRIPT`` when set, otherwise the basename of ``sys.argv[0]``.
    Piped or interactive execution (``-c``, ``-``, empty argv) falls back to
    a fixed name.
    """
    if env_name := os.environ.get("THIS_SCRIPT"):
        return env_name

    argv0 = sys.argv[0] if sys.argv else ""
    if argv0 in ("", "-", "-c"):
        return FALLBACK_SCRIPT_NAME
    return Path(argv0).name


def script_stem(script_name: str) -> str:
    """Script name without extension, used for the log file name."""
    return script_name.split(".", 1)[0] or FALLBACK_SCRIPT_NAME


def user_home() -> Path:
    """Home directory of the invoking user, honouring ``SUDO_USER``."""
    if sudo_user := os.environ.get("SUDO_USER"):
        home = Path(os.path.expanduser(f"~{sudo_user}"))
        if home.is_absolute():
            return home
    return Path.home()


def default_log_path(script_name: str) -> Path:
    """Default log file: ``<home>/<script stem>.log``."""
    return user_home() / f"{script_stem(script_name)}.log"


def fallback_log_path(script_name: str) -> Path:
    """Fallback log file in the temporary directory."""
    return Path(tempfile.gettempdir()) / f"{script_stem(script_name)}.log"


def _touch(path: Path) -> bool:
    try:
        parent = path.parent
        if not parent.is_dir() or not os.access(parent, os.W_OK):
            return False
        path.touch(exist_ok=True)
    except OSError:
        return False
    return True


def resolve_log_file(
        requested: Path | None,
        script_name: str,
        *,
        tracer: Tracer = NULL_TRACER
) -> LogFileResolution:
    """Ensure the log file exists and is writable.

    Args:
        requested:      Preferred log file, None for the default location
        script_name:    Script name used to derive default and fallback names
        tracer:         Debug tracer for this call tree

    Returns:
        LogFileResolution describing the file in use

    Raises:
        LogFileError: If the file cannot be created in the fallback location either
    """
    with tracer.span():
        target = Path(requested) if requested is not None else default_log_path(script_name)
        tracer.note(f"Checking if log directory '{target.parent}' exists and is writable.")
        if _touch(target):
            return LogFileResolution(path=target, requested=target)

        fallback = fallback_log_path(script_name)
        tracer.note(f"Falling back to log file in {fallback.parent}: {fallback}")
        if not _touch(fallback):
            msg = f"Unable to create log file even in fallback location: {fallback}"
            raise LogFileError(msg)

        return LogFileResolution(path=fallback, requested=target, fell_back=True)
