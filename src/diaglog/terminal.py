"""Terminal capability probe.

Control sequences are resolved through terminfo, the way ``tput`` does it,
and degrade to empty strings whenever the stream is not interactive or the
terminal does not support an attribute. Resolution happens once per probe;
the result is an immutable :class:`TerminalCapabilities`.
"""

import re
import sys
from dataclasses import dataclass, fields
from functools import cache
from typing import Final, TextIO

import colorama
from rich.console import Console

try:
    import curses
except ImportError:  # terminfo is unavailable on Windows
    curses = None

DEFAULT_WIDTH: Final = 80

# 256-color index used for warnings; needs an extended palette
GOLD_INDEX: Final = 220

_ANSI_PATTERN: Final = re.compile(r"\x1b(?:\[[0-9;?]*[A-Za-z]|\([A-Z0-9]|[@-Z\\-_])")


@cache
def _setup_terminfo(fd: int) -> bool:
    if curses is None:
        return False
    try:
        curses.setupterm(fd=fd)
    except (curses.error, OSError):
        return False
    return True


def _is_interactive(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError, OSError):
        return False


def query(attribute: str, *params: int, stream: TextIO | None = None) -> str:
    """Resolve a terminfo capability into its control sequence.

    Args:
        attribute:  terminfo capability name (``bold``, ``setaf``, ``el``...)
        *params:    Parameters for parameterized capabilities
        stream:     Stream the sequence is meant for (default: stdout)

    Returns:
        The control sequence, or an empty string on any failure
    """
    stream = stream if stream is not None else sys.stdout
    if not _is_interactive(stream):
        return ""

    try:
        if not _setup_terminfo(stream.fileno()):
            return ""
        sequence = curses.tigetstr(attribute)
        if not sequence:
            return ""
        if params:
            sequence = curses.tparm(sequence, *params)
        return sequence.decode("latin-1")
    except (curses.error, OSError, ValueError, TypeError):
        return ""


def color_count(stream: TextIO | None = None) -> int:
    """Number of colors supported by the terminal, 0 when unknown."""
    stream = stream if stream is not None else sys.stdout
    if not _is_interactive(stream):
        return 0
    try:
        if not _setup_terminfo(stream.fileno()):
            return 0
        return max(curses.tigetnum("colors"), 0)
    except (curses.error, OSError, ValueError):
        return 0


@dataclass(frozen=True, slots=True)
class TerminalCapabilities:
    """Resolved terminal control sequences.

    Every attribute is a plain string; unsupported attributes are empty, so
    callers can always concatenate them without checking.
    """

    reset: str = ""
    bold: str = ""
    standout: str = ""
    no_standout: str = ""
    underline: str = ""
    no_underline: str = ""
    blink: str = ""
    no_blink: str = ""
    italic: str = ""
    no_italic: str = ""
    move_up: str = ""
    clear_line: str = ""

    fg_black: str = ""
    fg_red: str = ""
    fg_green: str = ""
    fg_yellow: str = ""
    fg_blue: str = ""
    fg_magenta: str = ""
    fg_cyan: str = ""
    fg_white: str = ""
    fg_reset: str = ""
    fg_gold: str = ""

    bg_black: str = ""
    bg_red: str = ""
    bg_green: str = ""
    bg_yellow: str = ""
    bg_blue: str = ""
    bg_magenta: str = ""
    bg_cyan: str = ""
    bg_white: str = ""
    bg_reset: str = ""

    def color(self, name: str) -> str:
        """Look up a capability by attribute name, empty for unknown names."""
        value = getattr(self, name, "")
        return value if isinstance(value, str) else ""

    @classmethod
    def plain(cls) -> "TerminalCapabilities":
        """Capabilities with every attribute disabled."""
        return cls()

    @classmethod
    def ansi(cls) -> "TerminalCapabilities":
        """Capabilities using the standard ANSI escape codes."""
        esc = "\x1b["
        return cls(
            reset=f"{esc}0m", bold=f"{esc}1m",
            standout=f"{esc}7m", no_standout=f"{esc}27m",
            underline=f"{esc}4m", no_underline=f"{esc}24m",
            blink=f"{esc}5m", no_blink=f"{esc}0m",
            italic=f"{esc}3m", no_italic=f"{esc}23m",
            move_up=f"{esc}A", clear_line=f"{esc}K",
            fg_black=f"{esc}30m", fg_red=f"{esc}31m", fg_green=f"{esc}32m",
            fg_yellow=f"{esc}33m", fg_blue=f"{esc}34m", fg_magenta=f"{esc}35m",
            fg_cyan=f"{esc}36m", fg_white=f"{esc}37m", fg_reset=f"{esc}39m",
            fg_gold=f"{esc}38;5;{GOLD_INDEX}m",
            bg_black=f"{esc}40m", bg_red=f"{esc}41m", bg_green=f"{esc}42m",
            bg_yellow=f"{esc}43m", bg_blue=f"{esc}44m", bg_magenta=f"{esc}45m",
            bg_cyan=f"{esc}46m", bg_white=f"{esc}47m", bg_reset=f"{esc}49m",
        )


# attribute -> (terminfo capability, parameters)
_CAPABILITY_MAP: Final = {
    "reset": ("sgr0", ()),
    "bold": ("bold", ()),
    "standout": ("smso", ()),
    "no_standout": ("rmso", ()),
    "underline": ("smul", ()),
    "no_underline": ("rmul", ()),
    "blink": ("blink", ()),
    "no_blink": ("sgr0", ()),
    "italic": ("sitm", ()),
    "no_italic": ("ritm", ()),
    "move_up": ("cuu1", ()),
    "clear_line": ("el", ()),
    **{
        f"fg_{name}": ("setaf", (index,))
        for index, name in enumerate(
            ("black", "red", "green", "yellow", "blue", "magenta", "cyan", "white")
        )
    },
    "fg_reset": ("setaf", (9,)),
    **{
        f"bg_{name}": ("setab", (index,))
        for index, name in enumerate(
            ("black", "red", "green", "yellow", "blue", "magenta", "cyan", "white")
        )
    },
    "bg_reset": ("setab", (9,)),
}


def probe(stream: TextIO | None = None, enabled: bool = True) -> TerminalCapabilities:
    """Resolve all capabilities for a stream.

    Args:
        stream:     Stream the sequences will be written to (default: stdout)
        enabled:    When False, skip probing and return plain capabilities

    Returns:
        Immutable capabilities; empty strings for anything unsupported
    """
    if not enabled:
        return TerminalCapabilities.plain()

    stream = stream if stream is not None else sys.stdout
    colorama.just_fix_windows_console()

    values = {
        attribute: query(capability, *params, stream=stream)
        for attribute, (capability, params) in _CAPABILITY_MAP.items()
    }

    gold = query("setaf", GOLD_INDEX, stream=stream) if color_count(stream) >= 256 else ""
    values["fg_gold"] = gold or values["fg_yellow"]

    return TerminalCapabilities(**values)


def capability_names() -> tuple[str, ...]:
    """Names of every capability attribute."""
    return tuple(f.name for f in fields(TerminalCapabilities))


def strip_ansi(text: str) -> str:
    """Remove terminal escape sequences from text."""
    return _ANSI_PATTERN.sub("", text)


def visible_width(text: str) -> int:
    """Length of text as displayed, escape sequences excluded."""
    return len(strip_ansi(text))


def detect_width(stream: TextIO | None = None, default: int = DEFAULT_WIDTH) -> int:
    """Detect the terminal width of a stream.

    Honours ``COLUMNS`` and falls back to ``default`` for non-terminals.
    """
    stream = stream if stream is not None else sys.stdout
    try:
        width = Console(file=stream).width
    except (OSError, ValueError):
        return default
    return width if width > 0 else default
