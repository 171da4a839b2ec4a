"""Constants for the LDAP query node."""

__all__ = [
    "CONFIG_PATH",
    "DEFAULT_LDAPS_PORT",
    "DEFAULT_LDAP_PORT",
    "DEFAULT_SEARCH_FILTER",
    "MESSAGE_BUNDLE",
    "USERNAME",
]

CONFIG_PATH = "/etc/ldapquery/ldapquery.yaml"
"""Default configuration path."""

DEFAULT_LDAP_PORT = 389
"""Port used for servers given without one, for ``ldap`` and StartTLS."""

DEFAULT_LDAPS_PORT = 636
"""Port used for servers given without one, for implicit TLS."""

DEFAULT_SEARCH_FILTER = "(objectClass=*)"
"""Filter combined with the username match if none is configured."""

MESSAGE_BUNDLE = "ldap_query_node"
"""Name of the localized message catalog."""

USERNAME = "username"
"""Shared state key holding the username resolved earlier in the flow."""
