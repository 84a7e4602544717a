"""
Severity levels for process logging.

The scale is ordered ``silly < verbose < info < warn < debug < trace < error < none``.
``none`` is only meaningful as a threshold: it suppresses every message.
"""

from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType
from typing import Mapping

from .exceptions import UnknownLevel

UNKNOWN_LABEL = "unknown"


class SeverityLevel(IntEnum):
    """Ordered severity scale; comparison is by ordinal."""

    SILLY = 0
    VERBOSE = 1
    INFO = 2
    WARN = 3
    DEBUG = 4
    TRACE = 5
    ERROR = 6
    NONE = 7

    @property
    def label(self) -> str:
        """Canonical lowercase name used in records and raw lines."""
        return self.name.lower()

    @property
    def color(self) -> str | None:
        return LEVEL_COLORS.get(self)

    @classmethod
    def parse(cls, value: SeverityLevel | int | str) -> SeverityLevel:
        """Resolve a level from a member, an ordinal or a (case-insensitive) name.

        Raises:
            UnknownLevel: the value has no mapping on the scale.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and not value.strip().isdigit():
            try:
                return cls[value.strip().upper()]
            except KeyError as exc:
                raise UnknownLevel(value) from exc
        try:
            return cls(int(value))
        except (TypeError, ValueError) as exc:
            raise UnknownLevel(value) from exc


# ANSI colors, console rendering only. Orange is the 256-color palette entry 208.
LEVEL_COLORS: Mapping[SeverityLevel, str] = MappingProxyType(
    {
        SeverityLevel.SILLY: "\x1b[33m",
        SeverityLevel.VERBOSE: "\x1b[34m",
        SeverityLevel.INFO: "\x1b[32m",
        SeverityLevel.WARN: "\x1b[38;5;208m",
        SeverityLevel.DEBUG: "\x1b[30m",
        SeverityLevel.TRACE: "\x1b[90m",
        SeverityLevel.ERROR: "\x1b[31m",
    }
)


def ordinal_of(name: str) -> int:
    """Return the ordinal for a level name (raises UnknownLevel)."""
    return int(SeverityLevel.parse(name))


def name_of(ordinal: int) -> str:
    """Return the canonical name for an ordinal, or ``"unknown"``."""
    try:
        return SeverityLevel.parse(ordinal).label
    except UnknownLevel:
        return UNKNOWN_LABEL
