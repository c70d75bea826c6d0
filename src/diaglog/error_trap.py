"""Uncaught exception trap.

Once installed, an exception escaping the program is logged at CRITICAL with
the function and line where it was raised, followed by a rich traceback on
stderr. Keyboard interrupts are passed on to the previous hook untouched.
"""

import sys
import traceback
from types import TracebackType

import structlog

from .context import SourceLocation
from .diagnostics import Diagnostics
from .factory import get_diagnostics

_previous_hook = None


def _raise_location(script: str, tb: TracebackType | None) -> SourceLocation:
    frames = traceback.extract_tb(tb)
    if not frames:
        return SourceLocation(script=script, function="main", line=0)

    last = frames[-1]
    function = "main" if last.name == "<module>" else last.name
    return SourceLocation(script=script, function=function, line=last.lineno or 0)


def install_error_trap(diagnostics: Diagnostics | None = None) -> None:
    """Install the trap as ``sys.excepthook``.

    Args:
        diagnostics: Instance to log through, the process-wide one when None
    """
    global _previous_hook
    if _previous_hook is None:
        _previous_hook = sys.excepthook
    previous = _previous_hook

    def trap(
            exc_type: type[BaseException],
            exc: BaseException,
            tb: TracebackType | None
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            previous(exc_type, exc, tb)
            return

        diag = diagnostics if diagnostics is not None else get_diagnostics()
        location = _raise_location(diag.config.script_name, tb)
        message = (
            f"An unexpected error occurred in function '{location.function}()' "
            f"at line {location.line} of script '{location.script}'."
        )
        diag.log("CRITICAL", message, f"{exc_type.__name__}: {exc}", location=location)

        if diag.config.console.rich_tracebacks:
            structlog.dev.rich_traceback(sys.stderr, (exc_type, exc, tb))
        else:
            traceback.print_exception(exc_type, exc, tb, file=sys.stderr)

    sys.excepthook = trap


def uninstall_error_trap() -> None:
    """Restore the hook that was active before :func:`install_error_trap`."""
    global _previous_hook
    if _previous_hook is not None:
        sys.excepthook = _previous_hook
        _previous_hook = None
