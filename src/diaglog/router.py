"""Severity-filtered routing of log records to the file and console sinks."""

import itertools
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import structlog

from .config import MIN_CONSOLE_WIDTH, LogConfig
from .context import SourceLocation
from .handlers import (
    close_sink_logger,
    create_console_handler,
    create_file_handler,
    create_shared_processors,
    create_sink_logger,
)
from .severity import DEFAULT_SEVERITY_TABLE, SeverityTable, level_spec, should_emit
from .terminal import TerminalCapabilities, detect_width
from .tracing import NULL_TRACER, Tracer

_STDLIB_LEVELS: Final = {
    "DEBUG": logging.DEBUG,
    "EXTENDED": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_router_ids = itertools.count(1)


@dataclass(frozen=True, slots=True)
class LogRecord:
    """One logging event.

    Attributes:
        level:      Level name of the record
        location:   Call site that produced the record
        message:    Primary message
        detail:     Optional detail, attached to the record as an extended line
    """

    level: str
    location: SourceLocation
    message: str
    detail: str = ""


class Router:
    """Applies the severity threshold and writes records to their sinks.

    File and console formats are independent; a record may reach neither,
    either or both sinks depending on the threshold, the output mode and the
    console toggle.
    """

    def __init__(
            self,
            config: LogConfig,
            capabilities: TerminalCapabilities,
            table: SeverityTable = DEFAULT_SEVERITY_TABLE,
            log_file: Path | None = None
    ) -> None:
        self._config = config
        self._table = table
        self._log_file = log_file
        self._width = max(config.console.width or detect_width(sys.stdout), MIN_CONSOLE_WIDTH)

        router_id = next(_router_ids)
        self._file_name = f"diaglog.sink.file.{router_id}"
        self._console_name = f"diaglog.sink.console.{router_id}"

        shared_processors = create_shared_processors()
        self._file_logger = None
        if log_file is not None:
            self._file_logger = create_sink_logger(
                self._file_name,
                create_file_handler(log_file, shared_processors, config.file.encoding),
                shared_processors,
            )
        self._console_logger = create_sink_logger(
            self._console_name,
            create_console_handler(capabilities, self._width, shared_processors),
            shared_processors,
        )

    @property
    def config(self) -> LogConfig:
        return self._config

    @property
    def log_file(self) -> Path | None:
        return self._log_file

    @property
    def width(self) -> int:
        return self._width

    def emit(self, record: LogRecord, *, console: bool = True, tracer: Tracer = NULL_TRACER) -> bool:
        """Route a record to the sinks it qualifies for.

        Args:
            record:     Record to emit
            console:    Allow the console sink; escalations render their own block
            tracer:     Debug tracer for this call tree

        Returns:
            True if the record met the threshold, False if it was suppressed
        """
        with tracer.span():
            if not should_emit(record.level, self._config.threshold, self._table):
                return False

            targets = []
            if self._config.writes_file and self._file_logger is not None:
                targets.append(self._file_logger)
            if console and self._config.writes_console:
                targets.append(self._console_logger)

            for logger in targets:
                self._write(logger, record)
            return True

    def write_file_line(self, record: LogRecord) -> None:
        """Append a record to the log file, bypassing the threshold."""
        if self._config.writes_file and self._file_logger is not None:
            self._write(self._file_logger, record)

    def _write(self, logger: structlog.stdlib.BoundLogger, record: LogRecord) -> None:
        spec = level_spec(record.level, self._table)
        fields = {
            "script": record.location.script,
            "function": record.location.function,
            "line": record.location.line,
        }
        logger.log(
            _STDLIB_LEVELS.get(record.level, logging.INFO), record.message,
            label=spec.label, color=spec.color, **fields,
        )
        if record.detail:
            detail_spec = level_spec("EXTENDED", self._table)
            logger.log(
                logging.DEBUG, record.detail,
                label=detail_spec.label, color=detail_spec.color, **fields,
            )

    def toggle_console(self, enabled: bool) -> None:
        """Switch console output on or off for subsequent records."""
        self._config = self._config.with_console(enabled)

    def close(self) -> None:
        """Close the handlers of both sinks."""
        close_sink_logger(self._file_name)
        close_sink_logger(self._console_name)
