"""Data models for LDAP directory lookups."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import SecretStr

from .enums import HeartbeatTimeUnit, LookupStatus, SearchScope

__all__ = ["DirectoryParameters", "LookupResult"]


@dataclass
class DirectoryParameters:
    """Parameters used to construct a directory client.

    This is the translation of the node configuration into what the directory
    client needs. Building it does not contact the directory.
    """

    primary_servers: list[str]
    """Servers tried first, as ``host`` or ``host:port``."""

    secondary_servers: list[str]
    """Servers tried if none of the primary servers can be reached."""

    is_secure: bool
    """Whether the connection is encrypted (implicit TLS or StartTLS)."""

    use_start_tls: bool
    """Whether to upgrade a plaintext connection with StartTLS."""

    base_dn: str
    """Base DN of the user search."""

    scope: SearchScope
    """Scope of the user search."""

    search_filter: str
    """Filter ANDed with the username match."""

    naming_attribute: str
    """Attribute naming the user entry in the user profile."""

    search_attributes: list[str]
    """Attributes matched against the username."""

    bind_dn: str
    """DN used for the simple bind before searching."""

    bind_password: SecretStr
    """Password for the simple bind."""

    user_attributes: list[str] = field(default_factory=list)
    """Attributes to return from the user entry."""

    return_user_dn: bool = False
    """Whether to include the DN of the entry in the returned attributes."""

    trust_all: bool = False
    """Whether to accept any server certificate."""

    heartbeat_interval: int = 10
    """Interval between heartbeats, in units of ``heartbeat_time_unit``."""

    heartbeat_time_unit: HeartbeatTimeUnit = HeartbeatTimeUnit.seconds
    """Unit of ``heartbeat_interval``."""

    operation_timeout: int = 0
    """Connect and search timeout in seconds, or 0 for no timeout."""


@dataclass
class LookupResult:
    """Result of a single user search."""

    status: LookupStatus
    """Terminal state of the search."""

    attributes: dict[str, list[str]] = field(default_factory=dict)
    """Requested attributes found on the user entry, with all their values."""
