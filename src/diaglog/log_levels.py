"""Log level definitions and validation constants."""

from typing import Final, Literal, get_args

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "EXTENDED"]
VALID_LOG_LEVELS: Final = frozenset(get_args(LogLevel))

# EXTENDED is a detail channel, never a verbosity threshold
THRESHOLD_LEVELS: Final = VALID_LOG_LEVELS - {"EXTENDED"}

LEVEL_ALIASES: Final = {"WARN": "WARNING", "CRIT": "CRITICAL", "EXTD": "EXTENDED"}


def normalize_level(name: str) -> str:
    """Upper-case a level name and resolve short aliases (``WARN`` -> ``WARNING``)."""
    upper = str(name).strip().upper()
    return LEVEL_ALIASES.get(upper, upper)
