"""Enums used by the LDAP query node configuration and models."""

from __future__ import annotations

from datetime import timedelta
from enum import Enum

__all__ = [
    "HeartbeatTimeUnit",
    "LDAPConnectionMode",
    "LookupStatus",
    "Outcome",
    "SearchScope",
]


class LDAPConnectionMode(Enum):
    """Protocol used to establish the connection to the LDAP server."""

    ldap = "ldap"
    """Unencrypted connection. Passwords are sent in cleartext."""

    ldaps = "ldaps"
    """Connection secured with TLS from the start."""

    start_tls = "start_tls"
    """Plaintext connection upgraded with the StartTLS extended operation."""


class SearchScope(Enum):
    """Breadth of the user search below the base DN."""

    object = "object"
    """Only the base DN is searched."""

    one_level = "one_level"
    """Only the single level below (and not including) the base DN."""

    subtree = "subtree"
    """The base DN and all levels below it."""


class HeartbeatTimeUnit(Enum):
    """Units for the heartbeat interval setting."""

    seconds = "seconds"
    minutes = "minutes"
    hours = "hours"

    def to_timedelta(self, interval: int) -> timedelta:
        """Convert an interval in this unit to a `~datetime.timedelta`."""
        return timedelta(**{self.value: interval})


class LookupStatus(Enum):
    """Terminal state of a directory user search."""

    user_found = "user_found"
    user_not_found = "user_not_found"
    server_down = "server_down"
    failed = "failed"


class Outcome(Enum):
    """Branch taken by the node in the authentication tree."""

    true = "true"
    false = "false"
