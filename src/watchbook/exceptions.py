# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Exception hierarchy for WatchBook.

All application-specific exceptions inherit from WatchBookError, so callers
(CLI, scripts) can catch broad or narrow as needed. Validation and config
errors also subclass ValueError, and NotFoundError subclasses LookupError,
so code written against the built-in exceptions keeps working.
"""


class WatchBookError(Exception):
    """Base exception for all WatchBook errors."""


class ValidationError(WatchBookError, ValueError):
    """Malformed or missing field on a create/update request."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(WatchBookError, LookupError):
    """A record referenced by id does not exist."""


class PersistenceError(WatchBookError):
    """The record store failed while reading or writing."""


class ConfigError(WatchBookError, ValueError):
    """Invalid configuration value in the TOML file."""
