"""Argument handling and rendering for warn and die.

Both escalations accept ``(code?, message, detail...)``. A leading integer,
or a string made only of digits, is taken as the code; the next argument is
the message and whatever remains becomes the detail.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Final

from .context import PrefixBuilder, SourceLocation
from .severity import LevelSpec
from .wrapping import WrappedMessage, add_period

DEFAULT_WARN_MESSAGE: Final = "A warning was raised on this line"
DEFAULT_DIE_MESSAGE: Final = "Critical error"
DEFAULT_DIE_CODE: Final = 1


@dataclass(frozen=True, slots=True)
class Escalation:
    """Parsed escalation arguments.

    Attributes:
        code:           Resolved exit or warning code, None when none applies
        explicit_code:  True if the caller passed the code
        message:        Period-terminated message, including the code suffix
        detail:         Period-terminated detail, empty when none was given
    """

    code: int | None
    explicit_code: bool
    message: str
    detail: str = ""


def _as_code(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def parse_escalation_args(
        args: Sequence[Any],
        default_message: str,
        default_code: int | None = None
) -> Escalation:
    """Split escalation arguments into code, message and detail.

    Anything that is not a well-formed code (``"-3"``, ``"12a"``, ``True``)
    is treated as the message instead.

    Args:
        args:               Positional arguments given to warn or die
        default_message:    Message used when none was given
        default_code:       Code used when none was given

    Returns:
        Escalation with the resolved parts
    """
    remaining = list(args)

    code = _as_code(remaining[0]) if remaining else None
    explicit_code = code is not None
    if explicit_code:
        remaining.pop(0)
    else:
        code = default_code

    message = str(remaining.pop(0)) if remaining else ""
    message = add_period(message or default_message)
    if explicit_code:
        message = f"{message} Code: ({code})."

    detail = add_period(" ".join(str(arg) for arg in remaining)) if remaining else ""
    return Escalation(code=code, explicit_code=explicit_code, message=message, detail=detail)


def render_escalation(
        prefix_builder: PrefixBuilder,
        level: LevelSpec,
        location: SourceLocation,
        wrapped: WrappedMessage,
        max_width: int | None = None
) -> list[str]:
    """Prefix each wrapped line with the prefix of its line class.

    Args:
        prefix_builder: Builder for the colorized prefixes
        level:          Level of the escalation
        location:       Call site of warn or die
        wrapped:        Message wrapped to the payload width
        max_width:      Widest a prefix may be, unlimited when None

    Returns:
        Rendered lines: primary, overflow (``EXTND``) and detail (``DETLS``)
    """
    prefixes = prefix_builder.build_all(level, location, max_width)
    lines = [f"{prefixes['primary']}{wrapped.primary}"]
    lines.extend(f"{prefixes['overflow']}{line}" for line in wrapped.overflow)
    lines.extend(f"{prefixes['detail']}{line}" for line in wrapped.detail)
    return lines
