"""Severity table and threshold checks.

Every level maps to a fixed-width label, a color (named after a
:class:`~diaglog.terminal.TerminalCapabilities` attribute so the table stays
independent of the terminal) and a rank. A record is emitted when its rank is
greater than or equal to the rank of the configured threshold.
"""

import sys
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from .log_levels import THRESHOLD_LEVELS, normalize_level

DEFAULT_THRESHOLD: Final = "INFO"


@dataclass(frozen=True, slots=True)
class LevelSpec:
    """Rendering and ranking properties of a single level.

    Attributes:
        label:  Fixed-width label printed between brackets (e.g. ``"WARN "``)
        color:  Name of the capability attribute holding the level color
        rank:   Severity rank, higher is more severe
    """

    label: str
    color: str
    rank: int

    def is_well_formed(self) -> bool:
        """Check that the entry can be used for ranking and rendering.

        Returns:
            True if the label is a non-empty string and the rank a non-negative integer
        """
        return (
                isinstance(self.label, str)
                and bool(self.label.strip())
                and isinstance(self.color, str)
                and isinstance(self.rank, int)
                and not isinstance(self.rank, bool)
                and self.rank >= 0
        )


SeverityTable = Mapping[str, LevelSpec]

DEFAULT_SEVERITY_TABLE: Final[SeverityTable] = MappingProxyType({
    "DEBUG": LevelSpec("DEBUG", "fg_cyan", 0),
    "INFO": LevelSpec("INFO ", "fg_green", 1),
    "WARNING": LevelSpec("WARN ", "fg_gold", 2),
    "ERROR": LevelSpec("ERROR", "fg_magenta", 3),
    "CRITICAL": LevelSpec("CRIT ", "fg_red", 4),
    "EXTENDED": LevelSpec("EXTD ", "fg_cyan", 0),
})

# Substituted when a message level has a malformed table entry
UNSET_LEVEL: Final = LevelSpec("UNSET", "reset", 0)


def validate_threshold(
        name: str,
        table: SeverityTable = DEFAULT_SEVERITY_TABLE
) -> tuple[str, str | None]:
    """Validate a configured threshold name.

    Unknown names fail soft: the threshold resets to INFO and a problem
    description is returned so the caller can emit exactly one warning.

    Args:
        name:   Configured threshold level name
        table:  Severity table to validate against

    Returns:
        Tuple of the effective threshold and an optional problem message
    """
    level = normalize_level(name)
    if level in THRESHOLD_LEVELS and level in table:
        return level, None

    problem = f"Invalid log level '{name}'. Defaulting to '{DEFAULT_THRESHOLD}'."
    return DEFAULT_THRESHOLD, problem


def level_spec(level: str, table: SeverityTable = DEFAULT_SEVERITY_TABLE) -> LevelSpec:
    """Get the table entry of a message level, or ``UNSET_LEVEL`` when malformed."""
    spec = table.get(normalize_level(level))
    if spec is None or not spec.is_well_formed():
        return UNSET_LEVEL
    return spec


def should_emit(
        level: str,
        threshold: str,
        table: SeverityTable = DEFAULT_SEVERITY_TABLE
) -> bool:
    """Decide whether a record at ``level`` reaches the sinks.

    A missing or malformed entry for the threshold is treated as an error:
    it is reported on stderr and emission is suppressed rather than raised.

    Args:
        level:      Level of the record
        threshold:  Configured minimum level
        table:      Severity table holding the ranks

    Returns:
        True if the record rank is at least the threshold rank
    """
    threshold_spec = table.get(normalize_level(threshold))
    if threshold_spec is None or not threshold_spec.is_well_formed():
        print(f"[ERROR] Malformed severity value for level '{threshold}'.", file=sys.stderr)
        return False

    return level_spec(level, table).rank >= threshold_spec.rank
