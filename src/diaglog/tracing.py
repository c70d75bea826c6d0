"""Per-call debug tracing.

Tracing is a capability passed explicitly through call signatures instead of
a shared flag: a function receives a :class:`Tracer`, opens a span for its own
body and hands the same tracer to the callees it wants traced. Unrelated call
trees receive ``NULL_TRACER`` and stay silent, so tracing can be switched on
for one top-level invocation without touching any other.

Usage::

    def install(packages, *, tracer=NULL_TRACER):
        with tracer.span():
            for name in packages:
                fetch(name, tracer=tracer)

    tracer, args = Tracer.from_args(sys.argv[1:])
    install(args, tracer=tracer)
"""

import functools
import inspect
import sys
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from types import FrameType, TracebackType
from typing import Any, Final, TextIO

# Token recognised on the command line of a top-level invocation
DEBUG_SENTINEL: Final = "debug"


@dataclass(frozen=True, slots=True)
class Tracer:
    """Debug tracing capability.

    Attributes:
        enabled:    Print trace lines when True
        stream:     Diagnostic stream, stderr when None
        script:     Script name shown in trace lines
    """

    enabled: bool = False
    stream: TextIO | None = None
    script: str = "stdin"

    @classmethod
    def from_args(
            cls,
            args: Iterable[str],
            *,
            sentinel: str = DEBUG_SENTINEL,
            stream: TextIO | None = None,
            script: str = "stdin"
    ) -> tuple["Tracer", list[str]]:
        """Build a tracer from a top-level argument list.

        The sentinel enables tracing and is removed from the arguments, so
        nothing downstream ever sees it.

        Args:
            args:       Raw arguments of the invocation
            sentinel:   Token enabling the tracer
            stream:     Diagnostic stream for trace lines
            script:     Script name shown in trace lines

        Returns:
            The tracer and the arguments without the sentinel
        """
        args = list(args)
        remaining = strip_sentinel(args, sentinel)
        enabled = len(remaining) != len(args)
        return cls(enabled=enabled, stream=stream, script=script), remaining

    def span(self, function: str | None = None) -> "TraceSpan":
        """Trace entering and leaving the calling function.

        Args:
            function: Name to report, defaults to the function opening the span

        Returns:
            Context manager printing the entering and exiting lines
        """
        return TraceSpan(self, function)

    def note(self, message: str) -> None:
        """Print a free-form trace line attributed to the calling function."""
        if not self.enabled:
            return
        frame = sys._getframe(1)
        self.write(f"'{message}' from {frame.f_code.co_name}():{frame.f_lineno}.")

    def write(self, text: str) -> None:
        if not self.enabled:
            return
        stream = self.stream if self.stream is not None else sys.stderr
        print(f"[DEBUG in {self.script}] {text}", file=stream)


NULL_TRACER: Final = Tracer()


def _describe(frame: FrameType | None) -> tuple[str, int]:
    if frame is None:
        return "main", 0
    name = frame.f_code.co_name
    return ("main" if name == "<module>" else name), frame.f_lineno


class TraceSpan:
    """Context manager tracing one function activation."""

    def __init__(self, tracer: Tracer, function: str | None = None) -> None:
        self._tracer = tracer
        self._function = function
        self._caller = ("main", 0)

    def __enter__(self) -> "TraceSpan":
        if not self._tracer.enabled:
            return self

        frame = sys._getframe(1)
        if self._function is None:
            self._function = _describe(frame)[0]
        # Decorated functions report the caller of the wrapper
        self._caller = _describe(frame.f_back)

        caller, line = self._caller
        self._tracer.write(f"Starting function {self._function}() called by {caller}():{line}.")
        return self

    def __exit__(
            self,
            exc_type: type[BaseException] | None,
            exc: BaseException | None,
            tb: TracebackType | None
    ) -> None:
        if not self._tracer.enabled:
            return

        caller, line = self._caller
        text = f"Exiting function {self._function}() called by {caller}():{line}."
        if exc_type is not None:
            text = f"{text[:-1]} (raised {exc_type.__name__})."
        self._tracer.write(text)


def strip_sentinel(args: Sequence[Any], sentinel: str = DEBUG_SENTINEL) -> list[Any]:
    """Arguments with every occurrence of the sentinel removed."""
    return [arg for arg in args if arg != sentinel]


def traced(func: Callable) -> Callable:
    """Decorator tracing calls through an explicit ``tracer`` keyword.

    The decorated function accepts ``tracer=``; it is forwarded when the
    function declares the parameter and dropped otherwise.
    """
    accepts_tracer = "tracer" in inspect.signature(func).parameters

    @functools.wraps(func)
    def wrapper(*args: Any, tracer: Tracer = NULL_TRACER, **kwargs: Any) -> Any:
        with tracer.span(func.__name__):
            if accepts_tracer:
                return func(*args, tracer=tracer, **kwargs)
            return func(*args, **kwargs)

    return wrapper
