"""Errors raised by the repositories and the purchase service.

The HTTP layer turns `NotFound` into a 404 and everything else into a 500.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for catalog errors."""


class InvalidIdentifier(CatalogError):
    """The id string is not a valid MongoDB ObjectId."""

    def __init__(self, value: str):
        super().__init__(f"Invalid identifier: {value!r}")


class NotFound(CatalogError):
    """No document matched the given id."""

    def __init__(self, what: str = "Model"):
        super().__init__(f"{what} not found")


class StoreUnavailable(CatalogError):
    """MongoDB could not be reached."""
