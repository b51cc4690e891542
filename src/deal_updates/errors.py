"""Typed exceptions for deal import failures.

Only structural problems are raised: row-level drops, currency filtering and
collaborator failures degrade silently and are logged instead.
"""

from typing import Any


class DealUpdatesError(Exception):
    """Base exception for all deal-updates errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


class ImportParseError(DealUpdatesError):
    """The export could not be parsed into deals at all."""

    pass


class NoDataError(ImportParseError):
    """The export contained no rows."""

    pass


class HeaderNotFoundError(ImportParseError):
    """No row with both 'Deal Owner' and 'Deal Name' within the scan window."""

    pass


class ConfigError(DealUpdatesError):
    """Scoring configuration file is unreadable or invalid."""

    pass
