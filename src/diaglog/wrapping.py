"""Message wrapping with ellipsis continuation markers.

Long messages are folded at word boundaries to ``width - 2`` columns, the two
spare columns holding the ellipses that mark a continued line: the first line
ends with one, the last line starts with one and interior lines get both.
"""

import textwrap
from dataclasses import dataclass
from typing import Final

from .tracing import NULL_TRACER, Tracer

ELLIPSIS: Final = "…"

# ASCII record separator, removed from content before encoding
SEGMENT_SEPARATOR: Final = "\x1e"


@dataclass(frozen=True, slots=True)
class WrappedMessage:
    """Result of wrapping a primary message and its details.

    Attributes:
        primary:    First line of the primary message
        overflow:   Remaining lines of the primary message
        detail:     Lines of the secondary (detail) message
    """

    primary: str
    overflow: tuple[str, ...] = ()
    detail: tuple[str, ...] = ()

    def lines(self) -> list[str]:
        """All lines in display order."""
        return [self.primary, *self.overflow, *self.detail]

    def encode(self) -> str:
        """Join the three parts into one string for single-channel transport.

        Lines inside a part are joined with newlines and parts with the
        record separator, so :meth:`decode` always recovers three segments.
        """
        parts = (
            self.primary,
            "\n".join(self.overflow),
            "\n".join(self.detail),
        )
        return SEGMENT_SEPARATOR.join(part.replace(SEGMENT_SEPARATOR, "") for part in parts)

    @classmethod
    def decode(cls, text: str) -> "WrappedMessage":
        """Split an encoded message back into its three parts."""
        primary, overflow, detail = text.split(SEGMENT_SEPARATOR, 2)
        return cls(
            primary=primary,
            overflow=tuple(overflow.split("\n")) if overflow else (),
            detail=tuple(detail.split("\n")) if detail else (),
        )


def add_period(text: str) -> str:
    """Terminate text with a period unless it already ends with one."""
    text = text.rstrip()
    if not text or text.endswith("."):
        return text
    return f"{text}."


def _fold(text: str, width: int) -> list[str]:
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        folded = textwrap.wrap(
            paragraph,
            width=width,
            break_long_words=True,
            break_on_hyphens=False,
        )
        lines.extend(folded or [paragraph.strip()])
    return lines


def fold_with_ellipses(text: str, width: int) -> list[str]:
    """Fold text to ``width`` columns with ellipsis continuation markers.

    Args:
        text:   Text to fold
        width:  Maximum width of each resulting line, ellipses included

    Returns:
        Folded lines; a single line is returned without markers

    Raises:
        ValueError: If width leaves no room next to the ellipses
    """
    if width <= 2:
        msg = f"width must be greater than 2, got {width}"
        raise ValueError(msg)

    lines = _fold(text, width - 2)
    if len(lines) == 1:
        return lines

    last = len(lines) - 1
    marked = []
    for index, line in enumerate(lines):
        if index == 0:
            marked.append(f"{line}{ELLIPSIS}")
        elif index == last:
            marked.append(f"{ELLIPSIS}{line}")
        else:
            marked.append(f"{ELLIPSIS}{line}{ELLIPSIS}")
    return marked


def wrap_messages(
        width: int,
        primary: str,
        secondary: str = "",
        *,
        tracer: Tracer = NULL_TRACER
) -> WrappedMessage:
    """Wrap a primary message and its secondary details to a line width.

    A single-line primary message that fits is returned unchanged with no
    overflow; otherwise its first folded line becomes the primary line and
    the rest the overflow. The secondary message is folded the same way only when it
    exceeds the width.

    Args:
        width:      Maximum width of each line, greater than 2
        primary:    Primary message
        secondary:  Secondary (detail) message, may be empty
        tracer:     Debug tracer for this call tree

    Returns:
        WrappedMessage with the primary line, overflow lines and detail lines

    Raises:
        ValueError: If width is 2 or less
    """
    with tracer.span():
        if width <= 2:
            msg = f"width must be greater than 2, got {width}"
            raise ValueError(msg)

        overflow: list[str] = []
        if len(primary) > width or "\n" in primary:
            primary, *overflow = fold_with_ellipses(primary, width)

        if len(secondary) > width:
            detail = fold_with_ellipses(secondary, width)
        elif secondary:
            detail = secondary.splitlines()
        else:
            detail = []

        return WrappedMessage(primary=primary, overflow=tuple(overflow), detail=tuple(detail))
