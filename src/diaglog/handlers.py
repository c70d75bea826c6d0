"""Handler creation and configuration for diagnostic logging.

This module provides factory functions for the two sinks of the diagnostic
logging system. Records are processed by structlog and handed to standard
library handlers through ``ProcessorFormatter``; each sink ends its chain with
its own line renderer:

- file:     ``<timestamp> [<label>] [<script>:<line>] <message>``
- console:  ``[<label>] <message>`` in the level color, wrapped to the width
"""

import logging
import sys
from pathlib import Path
from typing import Final, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from .context import padded_line
from .terminal import TerminalCapabilities
from .wrapping import fold_with_ellipses

# Default processor configurations
DEFAULT_TIMESTAMP_FORMAT: Final = "%Y-%m-%d %H:%M:%S"
DEFAULT_TIMESTAMP_UTC: Final = False


def create_shared_processors() -> list[Processor]:
    """Create the list of shared structlog processors.

    Returns:
        List of structlog processors for both console and file output
    """
    return [
        structlog.processors.TimeStamper(
            fmt=DEFAULT_TIMESTAMP_FORMAT,
            utc=DEFAULT_TIMESTAMP_UTC
        ),
    ]


class FileLineRenderer:
    """Render an event as log file lines.

    Each line of a multi-line message gets the full prefix, so every line
    of the file parses the same way.
    """

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        prefix = (
            f"{event_dict.get('timestamp', '')} "
            f"[{event_dict.get('label', 'UNSET')}] "
            f"[{event_dict.get('script', '')}:{padded_line(event_dict.get('line', 0))}] "
        )
        message = str(event_dict.get("event", ""))
        return "\n".join(f"{prefix}{line}" for line in message.splitlines() or [""])


class ConsoleLineRenderer:
    """Render an event as colorized console lines.

    Messages longer than the console width are folded with ellipsis markers;
    continuation lines repeat the label so each line stands on its own.
    """

    def __init__(self, capabilities: TerminalCapabilities, width: int) -> None:
        self._caps = capabilities
        self._width = width

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        label = event_dict.get("label", "UNSET")
        color = self._caps.color(event_dict.get("color", "reset"))
        reset = self._caps.reset
        message = str(event_dict.get("event", ""))

        prefix = f"[{label}] "
        payload_width = self._width - len(prefix)
        if payload_width > 2 and len(message) > payload_width:
            lines = fold_with_ellipses(message, payload_width)
        else:
            lines = message.splitlines() or [""]

        return "\n".join(f"{color}{prefix}{line}{reset}" for line in lines)


class AppendFileHandler(logging.Handler):
    """Handler appending each record to a file.

    The file is opened for every record and closed again, so nothing holds
    it open between log calls.
    """

    def __init__(self, path: Path, encoding: str = "utf-8") -> None:
        super().__init__()
        self.path = Path(path)
        self.encoding = encoding

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            with self.path.open("a", encoding=self.encoding) as f:
                f.write(f"{line}\n")
        except Exception:
            self.handleError(record)


class ConsoleStreamHandler(logging.StreamHandler):
    """StreamHandler following the current ``sys.stdout`` unless given a stream."""

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__(stream if stream is not None else sys.stdout)
        self._follow_stdout = stream is None

    def emit(self, record: logging.LogRecord) -> None:
        if self._follow_stdout:
            self.stream = sys.stdout
        super().emit(record)


def create_file_handler(
        path: Path,
        shared_processors: list[Processor],
        encoding: str = "utf-8"
) -> logging.Handler:
    """Create and configure a file logging handler.

    Args:
        path:               Log file to append to
        shared_processors:  List of shared structlog processors
        encoding:           Character encoding of the log file

    Returns:
        Configured AppendFileHandler instance
    """
    handler = AppendFileHandler(path, encoding=encoding)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            FileLineRenderer(),
        ],
    ))
    return handler


def create_console_handler(
        capabilities: TerminalCapabilities,
        width: int,
        shared_processors: list[Processor],
        stream: TextIO | None = None
) -> logging.Handler:
    """Create and configure a console logging handler.

    Args:
        capabilities:       Terminal capabilities used for colors
        width:              Console width in columns
        shared_processors:  List of shared structlog processors
        stream:             Output stream, the current stdout when None

    Returns:
        Configured ConsoleStreamHandler instance
    """
    handler = ConsoleStreamHandler(stream)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            ConsoleLineRenderer(capabilities, width),
        ],
    ))
    return handler


def create_sink_logger(
        name: str,
        handler: logging.Handler,
        shared_processors: list[Processor]
) -> structlog.stdlib.BoundLogger:
    """Wrap a dedicated standard library logger for one sink.

    The underlying logger does not propagate and accepts every level; the
    severity threshold is applied before records get here.

    Args:
        name:               Name of the standard library logger
        handler:            The single handler of the sink
        shared_processors:  List of shared structlog processors

    Returns:
        BoundLogger writing through the handler
    """
    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    return structlog.wrap_logger(
        logger,
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def close_sink_logger(name: str) -> None:
    """Detach and close the handlers of a sink logger."""
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

