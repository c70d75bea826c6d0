"""Source locations and colorized line prefixes.

Every rendered line starts with a prefix naming the level and the call site,
``[LEVEL] [script:function:line]``. The plain-text length of that prefix is
taken off the console width before wrapping, so prefix and payload together
never exceed it.
"""

import sys
from collections.abc import Iterable
from dataclasses import dataclass
from types import FrameType
from typing import Final, Literal

from .severity import LevelSpec
from .terminal import TerminalCapabilities, visible_width
from .wrapping import ELLIPSIS

PACKAGE_PREFIX: Final = f"{__name__.rpartition('.')[0]}."

LineKind = Literal["primary", "overflow", "detail"]

# Label and color of continuation lines, independent of the record level
CONTINUATION_LABELS: Final = {
    "overflow": ("EXTND", "fg_cyan"),
    "detail": ("DETLS", "fg_blue"),
}

# Narrowest payload, even next to a prefix that cannot be shortened further
MIN_PAYLOAD_WIDTH: Final = 3


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Identity of a call site.

    Attributes:
        script:     Script name
        function:   Function containing the call
        line:       Line number of the call
    """

    script: str
    function: str
    line: int

    @property
    def padded_line(self) -> str:
        return padded_line(self.line)


def padded_line(line: int, width: int = 4) -> str:
    """Zero-pad a line number to ``width`` digits."""
    return f"{max(int(line), 0):0{width}d}"


def is_internal(frame: FrameType, prefixes: Iterable[str] = (PACKAGE_PREFIX,)) -> bool:
    """True if the frame belongs to one of the given module prefixes."""
    module = frame.f_globals.get("__name__", "")
    return any(module.startswith(prefix) for prefix in prefixes)


def function_name(frame: FrameType) -> str:
    """Function name of a frame, ``main`` for module level code."""
    name = frame.f_code.co_name
    return "main" if name == "<module>" else name


def caller_location(script: str, skip_prefixes: Iterable[str] = (PACKAGE_PREFIX,)) -> SourceLocation:
    """Locate the first call site outside the given modules.

    Args:
        script:         Script name to report
        skip_prefixes:  Module name prefixes whose frames are skipped

    Returns:
        SourceLocation of the immediate external caller
    """
    prefixes = tuple(skip_prefixes)
    frame: FrameType | None = sys._getframe(1)
    while frame is not None and is_internal(frame, prefixes):
        frame = frame.f_back

    if frame is None:
        return SourceLocation(script=script, function="main", line=0)
    return SourceLocation(script=script, function=function_name(frame), line=frame.f_lineno)


class PrefixBuilder:
    """Builds the colorized prefixes of rendered lines.

    Primary lines carry the record level label; overflow and detail lines
    carry fixed ``EXTND`` and ``DETLS`` labels. Given a width budget, the
    ``script:function`` part is shortened with an ellipsis so a long call
    site never takes more than half of the console.
    """

    def __init__(self, capabilities: TerminalCapabilities) -> None:
        self._caps = capabilities

    def build(
            self,
            kind: LineKind,
            level: LevelSpec,
            location: SourceLocation,
            max_width: int | None = None
    ) -> str:
        """Build the prefix of one line class.

        Args:
            kind:       Line class (primary, overflow or detail)
            level:      Level of the record, used for primary lines
            location:   Call site shown in the prefix
            max_width:  Widest the visible prefix may be, unlimited when None

        Returns:
            Prefix string, including a trailing space
        """
        if kind == "primary":
            label, color = level.label, level.color
        else:
            label, color = CONTINUATION_LABELS[kind]

        site = f"{location.script}:{location.function}"
        if max_width is not None:
            fixed = len(f"[{label}] [:{location.line}] ")
            site = shorten(site, max_width - fixed)

        caps = self._caps
        return (
            f"{caps.bold}{caps.color(color)}[{label}]{caps.reset} "
            f"{caps.bold}[{site}:{location.line}]{caps.reset} "
        )

    def build_all(
            self,
            level: LevelSpec,
            location: SourceLocation,
            max_width: int | None = None
    ) -> dict[LineKind, str]:
        """Build the prefixes of every line class."""
        return {
            kind: self.build(kind, level, location, max_width)
            for kind in ("primary", "overflow", "detail")
        }

    def payload_width(self, total_width: int, level: LevelSpec, location: SourceLocation) -> int:
        """Columns left for the message next to the widest fitted prefix."""
        prefixes = self.build_all(level, location, prefix_budget(total_width))
        widest = max(visible_width(prefix) for prefix in prefixes.values())
        return max(total_width - widest, MIN_PAYLOAD_WIDTH)


def prefix_budget(total_width: int) -> int:
    """Widest prefix allowed on a console, half of it rounded up."""
    return total_width - max(total_width // 2, MIN_PAYLOAD_WIDTH)


def shorten(text: str, width: int) -> str:
    """Cut text to ``width`` columns, ending in an ellipsis when cut."""
    if len(text) <= width:
        return text
    if width <= 1:
        return ELLIPSIS
    return f"{text[:width - 1]}{ELLIPSIS}"
