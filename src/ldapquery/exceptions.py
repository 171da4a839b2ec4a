"""Exceptions for the LDAP query node."""

from __future__ import annotations

from safir.slack.blockkit import SlackException

__all__ = [
    "DirectoryConfigError",
    "DirectoryError",
    "DirectoryOperationError",
    "MissingUsernameError",
]


class DirectoryError(SlackException):
    """Base class for failures talking to the LDAP directory.

    The node turns any of these into a reject outcome and only logs them, so
    they never propagate to the authentication flow.
    """


class DirectoryConfigError(DirectoryError):
    """The directory client could not be constructed from its parameters."""


class DirectoryOperationError(DirectoryError):
    """A directory search failed after the client was constructed."""


class MissingUsernameError(DirectoryOperationError):
    """No username was present in the shared state."""
