"""Call stack capture and rendering.

The stack is walked from the immediate caller out to the entry point. Frames
of the diagnostic package itself are left out, so warn/die never show up in
their own traces, and only the first module-level entry frame is kept.
"""

import sys
import textwrap
from collections.abc import Iterable
from dataclasses import dataclass
from types import FrameType
from typing import Final

from .context import PACKAGE_PREFIX, is_internal
from .severity import LevelSpec
from .terminal import TerminalCapabilities
from .tracing import NULL_TRACER, Tracer
from .wrapping import add_period

ENTRY_FUNCTION: Final = "<module>"

TRACE_WIDTH: Final = 60
RULE_CHAR: Final = "-"

# Width of "[n] Function: " + " Line: nnnn" around the name column
_ROW_OVERHEAD: Final = 28


@dataclass(frozen=True, slots=True)
class StackFrame:
    """One frame of a call stack.

    Attributes:
        function:       Function name (``<module>`` for module level code)
        line:           Line currently executing in that frame
        source_file:    File the function is defined in
    """

    function: str
    line: int
    source_file: str

    @property
    def display_name(self) -> str:
        name = "main" if self.function == ENTRY_FUNCTION else self.function
        return f"{name}()"


@dataclass(frozen=True, slots=True)
class CallStack:
    """Ordered frames, innermost first."""

    frames: tuple[StackFrame, ...]

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def longest_name(self) -> int:
        """Length of the longest function name, for column alignment."""
        return max((len(frame.display_name) - 2 for frame in self.frames), default=0)

    @property
    def invoking_function(self) -> str:
        """Function that requested the trace."""
        return self.frames[0].display_name[:-2] if self.frames else "main"

    def render(
            self,
            level: LevelSpec,
            message: str,
            capabilities: TerminalCapabilities,
            width: int = TRACE_WIDTH
    ) -> list[str]:
        """Render the stack as a block of colorized lines.

        The block has a centered header naming the invoking function, the
        message, one numbered row per frame with the outermost frame last and
        a footer rule as wide as the header.

        Args:
            level:          Level whose color is used for the block
            message:        Message shown below the header, may be empty
            capabilities:   Terminal capabilities for colors
            width:          Width of the header and message lines

        Returns:
            Lines of the rendered block, ending with an empty line
        """
        caps = capabilities
        color = caps.color(level.color)
        reset, bold = caps.reset, caps.bold

        title = self.invoking_function.replace("_", " ").strip().title()
        dash_count = max((width - len(title) - 2) // 2, 0)
        left = RULE_CHAR * dash_count
        right = left + (RULE_CHAR if (width - len(title)) % 2 == 1 else "")
        header_width = len(left) + len(title) + len(right) + 2

        lines = [f"{color}{left}{reset} {color}{bold}{title}{reset} {color}{right}{reset}"]

        if message:
            details = f"Details: {add_period(message)}"
            for line in textwrap.wrap(details, width=width) or [details]:
                lines.append(f"{color}{line}{reset}")

        longest = self.longest_name
        indent = max(width // 2 - (longest + _ROW_OVERHEAD) // 2, 1)
        name_width = longest + 2
        for index, frame in enumerate(self.frames):
            lines.append(
                f"{color}{'>':>{indent}} [{index}] Function: {frame.display_name:<{name_width}} "
                f"Line: {frame.line:>4}{reset}"
            )

        lines.append(f"{color}{bold}{RULE_CHAR * header_width}{reset}")
        lines.append("")
        return lines


def walk(
        skip_prefixes: Iterable[str] = (PACKAGE_PREFIX,),
        start: FrameType | None = None,
        script: str = "stdin",
        *,
        tracer: Tracer = NULL_TRACER
) -> CallStack:
    """Capture the call stack from the caller out to the entry point.

    Args:
        skip_prefixes:  Module name prefixes whose frames are excluded
        start:          Innermost frame to start from (default: the caller)
        script:         Script name used when a root frame must be synthesized
        tracer:         Debug tracer for this call tree

    Returns:
        CallStack with the innermost frame first; never empty
    """
    with tracer.span():
        prefixes = tuple(skip_prefixes)
        frame: FrameType | None = start if start is not None else sys._getframe(1)

        frames: list[StackFrame] = []
        seen_entry = False
        last_line = 0
        while frame is not None:
            last_line = frame.f_lineno
            if is_internal(frame, prefixes):
                frame = frame.f_back
                continue

            name = frame.f_code.co_name
            if name == ENTRY_FUNCTION:
                if seen_entry:
                    frame = frame.f_back
                    continue
                seen_entry = True

            frames.append(StackFrame(name, frame.f_lineno, frame.f_code.co_filename))
            frame = frame.f_back

        # Piped or embedded execution can leave nothing outside the package
        if not frames:
            frames.append(StackFrame(ENTRY_FUNCTION, last_line, script))

        return CallStack(tuple(frames))
