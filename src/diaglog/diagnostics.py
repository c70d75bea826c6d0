"""The diagnostics facade: leveled logging, warn, die and stack traces.

A :class:`Diagnostics` instance owns a resolved configuration, the terminal
capabilities it renders with and the router writing to the file and console
sinks. Everything it needs is fixed at construction; the only later change is
switching the console on or off.
"""

import sys
from dataclasses import replace
from pathlib import Path

from .config import LogConfig, LogFileError, resolve_log_file
from .context import PrefixBuilder, SourceLocation, caller_location, prefix_budget
from .escalation import (
    DEFAULT_DIE_CODE,
    DEFAULT_DIE_MESSAGE,
    DEFAULT_WARN_MESSAGE,
    Escalation,
    parse_escalation_args,
    render_escalation,
)
from .log_levels import VALID_LOG_LEVELS, normalize_level
from .router import LogRecord, Router
from .severity import DEFAULT_SEVERITY_TABLE, SeverityTable, level_spec, validate_threshold
from .stack import walk
from .terminal import TerminalCapabilities, probe
from .tracing import NULL_TRACER, Tracer
from .wrapping import wrap_messages


class Diagnostics:
    """Diagnostic logging for one program.

    Construction validates the threshold (an unknown level resets to INFO
    with one warning) and resolves the log file when the output mode
    includes it (an unwritable location falls back to the temporary
    directory with one warning; if that fails too, the program dies with
    code 1).

    Attributes:
        config:         Effective configuration
        capabilities:   Terminal capabilities used for colors
        log_file:       Log file in use, None when not writing to a file
    """

    def __init__(
            self,
            config: LogConfig,
            capabilities: TerminalCapabilities | None = None,
            table: SeverityTable = DEFAULT_SEVERITY_TABLE,
            *,
            tracer: Tracer = NULL_TRACER
    ) -> None:
        with tracer.span():
            self._table = table
            self._caps = capabilities if capabilities is not None else probe(
                sys.stdout, config.console.colors
            )
            self._prefixes = PrefixBuilder(self._caps)

            threshold, threshold_problem = validate_threshold(config.threshold, table)
            config = config.with_threshold(threshold)

            log_file: Path | None = None
            fallback_notice = None
            log_file_error = None
            if config.writes_file:
                try:
                    resolution = resolve_log_file(config.file.path, config.script_name, tracer=tracer)
                except LogFileError as e:
                    config = replace(config, output="console")
                    log_file_error = e
                else:
                    log_file = resolution.path
                    if resolution.fell_back:
                        fallback_notice = (
                            f"Failed to create log file in {resolution.requested.parent}. "
                            f"Falling back to {resolution.path}"
                        )

            self._router = Router(config, self._caps, table, log_file)

            if threshold_problem:
                self.warn(threshold_problem, tracer=tracer)
            if fallback_notice:
                self.warn(fallback_notice, tracer=tracer)
            if log_file_error is not None:
                self.die(DEFAULT_DIE_CODE, str(log_file_error), tracer=tracer)

    @property
    def config(self) -> LogConfig:
        return self._router.config

    @property
    def capabilities(self) -> TerminalCapabilities:
        return self._caps

    @property
    def log_file(self) -> Path | None:
        return self._router.log_file

    def log(
            self,
            level: str,
            message: str,
            detail: str | None = None,
            *,
            location: SourceLocation | None = None,
            tracer: Tracer = NULL_TRACER
    ) -> bool:
        """Log a message at the given level.

        Empty messages and unknown levels are reported on stderr and ignored.

        Args:
            level:      Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL, EXTENDED)
            message:    Message to log
            detail:     Optional detail, logged as an extended line after the message
            location:   Call site to report (default: the caller)
            tracer:     Debug tracer for this call tree

        Returns:
            True if the record met the threshold and was written
        """
        with tracer.span():
            if not message:
                print("[ERROR] Empty message passed to log.", file=sys.stderr)
                return False

            name = normalize_level(level)
            if name not in VALID_LOG_LEVELS:
                print(f"[ERROR] Invalid log level '{level}'.", file=sys.stderr)
                return False

            if location is None:
                location = caller_location(self.config.script_name)
            record = LogRecord(name, location, str(message), detail or "")
            return self._router.emit(record, tracer=tracer)

    def log_debug(self, message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
        return self.log("DEBUG", message, detail, tracer=tracer)

    def log_info(self, message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
        return self.log("INFO", message, detail, tracer=tracer)

    def log_warning(self, message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
        return self.log("WARNING", message, detail, tracer=tracer)

    def log_error(self, message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
        return self.log("ERROR", message, detail, tracer=tracer)

    def log_critical(self, message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
        return self.log("CRITICAL", message, detail, tracer=tracer)

    def log_extended(self, message: str, detail: str | None = None, *, tracer: Tracer = NULL_TRACER) -> bool:
        return self.log("EXTENDED", message, detail, tracer=tracer)

    def warn(self, *args: object, tracer: Tracer = NULL_TRACER) -> None:
        """Log a warning with the call site and optional details.

        Accepts ``(code?, message, detail...)``. The warning goes through
        the threshold like any other record; a stack trace follows when
        ``trace_on_warn`` is set. Never terminates the program.
        """
        with tracer.span():
            escalation = parse_escalation_args(args, DEFAULT_WARN_MESSAGE)
            location = caller_location(self.config.script_name)
            record = LogRecord("WARNING", location, escalation.message, escalation.detail)

            if self._router.emit(record, console=False, tracer=tracer) and self.config.writes_console:
                self._print_block("WARNING", location, escalation, tracer=tracer)
            if self.config.trace_on_warn:
                self._print_trace("WARNING", escalation.message, tracer=tracer)

    def die(self, *args: object, tracer: Tracer = NULL_TRACER) -> None:
        """Log a critical error with a stack trace and terminate.

        Accepts ``(code?, message, detail...)``; the code defaults to 1 and
        the message to ``Critical error``. The message, the details and the
        trace are always shown, whatever the threshold or console state.

        Raises:
            SystemExit: Always, with the resolved code (0 becomes 1)
        """
        with tracer.span():
            escalation = parse_escalation_args(args, DEFAULT_DIE_MESSAGE, DEFAULT_DIE_CODE)
            code = escalation.code or DEFAULT_DIE_CODE
            location = caller_location(self.config.script_name)
            record = LogRecord("CRITICAL", location, escalation.message, escalation.detail)

            if not self._router.emit(record, console=False, tracer=tracer):
                self._router.write_file_line(record)
            self._print_block("CRITICAL", location, escalation, tracer=tracer)
            self._print_trace("CRITICAL", escalation.message, tracer=tracer)

            sys.stdout.flush()
            sys.stderr.flush()
            raise SystemExit(code)

    def stack_trace(self, level: str, message: str = "", *, tracer: Tracer = NULL_TRACER) -> list[str]:
        """Print a stack trace of the caller to stderr in the level color.

        Returns:
            The rendered lines, empty if the level is unknown
        """
        with tracer.span():
            name = normalize_level(level)
            if name not in VALID_LOG_LEVELS:
                print(f"[ERROR] Invalid log level '{level}'.", file=sys.stderr)
                return []
            return self._print_trace(name, message, tracer=tracer)

    def toggle_console(self, state: str, *, tracer: Tracer = NULL_TRACER) -> bool:
        """Switch console output ``on`` or ``off``.

        Returns:
            True if the state was recognised and applied
        """
        with tracer.span():
            normalized = str(state).strip().lower()
            if normalized not in ("on", "off"):
                self.warn(
                    f"Invalid argument for toggle_console: '{state}'. Use 'on' or 'off'",
                    tracer=tracer,
                )
                return False

            self._router.toggle_console(normalized == "on")
            return True

    def close(self) -> None:
        """Release the sink handlers."""
        self._router.close()

    def _print_block(
            self,
            level: str,
            location: SourceLocation,
            escalation: Escalation,
            *,
            tracer: Tracer = NULL_TRACER
    ) -> None:
        spec = level_spec(level, self._table)
        width = self._prefixes.payload_width(self._router.width, spec, location)
        wrapped = wrap_messages(width, escalation.message, escalation.detail, tracer=tracer)
        budget = prefix_budget(self._router.width)
        lines = render_escalation(self._prefixes, spec, location, wrapped, budget)
        print("\n".join(lines), file=sys.stderr)

    def _print_trace(self, level: str, message: str, *, tracer: Tracer = NULL_TRACER) -> list[str]:
        stack = walk(script=self.config.script_name, tracer=tracer)
        lines = stack.render(level_spec(level, self._table), message, self._caps)
        print("\n".join(lines), file=sys.stderr)
        return lines
