"""LDAP directory client for user lookups."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Protocol

import bonsai
from bonsai import LDAPURL, LDAPClient, LDAPConnection, LDAPSearchScope
from bonsai.utils import escape_filter_exp
from structlog.stdlib import BoundLogger

from ..constants import DEFAULT_LDAP_PORT, DEFAULT_LDAPS_PORT
from ..exceptions import (
    DirectoryConfigError,
    DirectoryOperationError,
    MissingUsernameError,
)
from ..messages import MessageBundle
from ..models.enums import LookupStatus, SearchScope
from ..models.ldap import DirectoryParameters, LookupResult

_SERVER_REGEX = re.compile(
    r"^(?:\[(?P<ipv6>[^\]]+)\]|(?P<host>[^:\[\]]+))(?::(?P<port>[0-9]+))?$"
)
"""Syntax of a server address: a hostname or bracketed IPv6 address."""

LDAP_SEARCH_SCOPES = {
    SearchScope.object: LDAPSearchScope.BASE,
    SearchScope.one_level: LDAPSearchScope.ONELEVEL,
    SearchScope.subtree: LDAPSearchScope.SUBTREE,
}
"""Mapping of configured search scopes to bonsai search scopes."""

__all__ = [
    "LDAP_SEARCH_SCOPES",
    "DirectoryClient",
    "LDAPDirectoryClient",
    "build_user_filter",
    "format_server_url",
]


class DirectoryClient(Protocol):
    """Interface for a client that looks up a user in a directory."""

    def search_for_user(self, username: str | None) -> LookupResult:
        """Search for a user and return the terminal state of the search."""


def format_server_url(
    address: str, *, is_secure: bool, start_tls: bool
) -> str:
    """Convert a server address to an LDAP URL.

    Parameters
    ----------
    address
        Server address as ``host``, ``host:port``, or ``[address]:port`` for
        IPv6 addresses.
    is_secure
        Whether the connection is secured, either with implicit TLS or with
        StartTLS.
    start_tls
        Whether the connection is secured with StartTLS. StartTLS uses an
        ``ldap`` URL since the connection starts in cleartext.

    Returns
    -------
    str
        The ``ldap`` or ``ldaps`` URL for the server.

    Raises
    ------
    ValueError
        Raised if the address is not valid.
    """
    match = _SERVER_REGEX.match(address.strip())
    if not match:
        raise ValueError(f"Invalid LDAP server address {address}")
    implicit_tls = is_secure and not start_tls
    if match.group("port"):
        port = int(match.group("port"))
        if not 0 < port < 65536:
            raise ValueError(f"Invalid port in LDAP server address {address}")
    else:
        port = DEFAULT_LDAPS_PORT if implicit_tls else DEFAULT_LDAP_PORT
    if match.group("ipv6"):
        host = f"[{match.group('ipv6')}]"
    else:
        host = match.group("host")
    scheme = "ldaps" if implicit_tls else "ldap"
    return f"{scheme}://{host}:{port}"


def build_user_filter(
    search_filter: str, search_attributes: list[str], username: str
) -> str:
    """Build the LDAP filter matching a user.

    Parameters
    ----------
    search_filter
        Filter that every matching entry must also satisfy.
    search_attributes
        Attributes that may hold the username. A match on any of them is
        sufficient.
    username
        Username to search for. It will be escaped.

    Returns
    -------
    str
        Combined LDAP search filter.
    """
    value = escape_filter_exp(username)
    matches = "".join(f"({a}={value})" for a in search_attributes)
    if len(search_attributes) > 1:
        matches = f"(|{matches})"
    return f"(&{search_filter}{matches})"


class LDAPDirectoryClient:
    """Look up a user in an LDAP directory.

    Each search opens a new connection and closes it when done. Servers are
    tried in order, primary servers first, until one accepts a connection.

    Parameters
    ----------
    params
        Parameters for the directory connection and search.
    bundle
        Localized messages, used for errors about unavailable servers.
    logger
        Logger for debug messages and errors.

    Raises
    ------
    DirectoryConfigError
        Raised if no servers are configured or a server address is invalid.
    """

    def __init__(
        self,
        params: DirectoryParameters,
        bundle: MessageBundle,
        logger: BoundLogger,
    ) -> None:
        self._params = params
        self._bundle = bundle
        self._logger = logger.bind(ldap_base=params.base_dn)
        self._state: LookupStatus | None = None
        self._user_attribute_values: dict[str, list[str]] = {}

        servers = params.primary_servers + params.secondary_servers
        if not params.primary_servers:
            raise DirectoryConfigError(bundle.get("NoServer"))
        self._urls: list[str] = []
        try:
            for server in servers:
                url = format_server_url(
                    server,
                    is_secure=params.is_secure,
                    start_tls=params.use_start_tls,
                )
                # bonsai rejects some hostnames that the address syntax allows
                LDAPURL(url)
                self._urls.append(url)
        except ValueError as e:
            self._logger.error("Invalid LDAP server address", error=str(e))
            raise DirectoryConfigError(bundle.get("NoServer")) from e

    @property
    def heartbeat(self) -> timedelta:
        """Interval between heartbeats on an idle connection."""
        unit = self._params.heartbeat_time_unit
        return unit.to_timedelta(self._params.heartbeat_interval)

    @property
    def state(self) -> LookupStatus | None:
        """Terminal state of the last search, or `None` before searching."""
        return self._state

    @property
    def timeout(self) -> float | None:
        """Timeout for connecting and searching, if any."""
        if self._params.operation_timeout:
            return float(self._params.operation_timeout)
        return None

    @property
    def urls(self) -> list[str]:
        """LDAP URLs of the servers, in the order they will be tried."""
        return list(self._urls)

    @property
    def user_attribute_values(self) -> dict[str, list[str]]:
        """Requested attributes of the user found by the last search."""
        return dict(self._user_attribute_values)

    def search_for_user(self, username: str | None) -> LookupResult:
        """Search the directory for a user.

        Parameters
        ----------
        username
            Username to search for.

        Returns
        -------
        LookupResult
            Terminal state of the search and, if the user was found, the
            requested attributes of their entry.

        Raises
        ------
        DirectoryOperationError
            Raised if binding to the server failed, the search failed, or the
            search matched more than one entry.
        MissingUsernameError
            Raised if the username is missing or is not a non-empty string.
        """
        if not isinstance(username, str) or not username:
            raise MissingUsernameError(self._bundle.get("MissingUsername"))
        self._state = None
        self._user_attribute_values = {}
        params = self._params
        search = build_user_filter(
            params.search_filter, params.search_attributes, username
        )
        logger = self._logger.bind(ldap_search=search, user=username)

        for url in self._urls:
            try:
                conn = self._connect(url)
            except (bonsai.ConnectionError, bonsai.TimeoutError) as e:
                logger.warning(
                    "Cannot connect to LDAP server", ldap_url=url, error=str(e)
                )
                continue
            except bonsai.AuthenticationError as e:
                msg = "Cannot bind to LDAP server"
                logger.error(msg, ldap_url=url, error=str(e))
                raise DirectoryOperationError(msg, username) from e
            except bonsai.LDAPError as e:
                msg = "Cannot connect to LDAP server"
                logger.error(msg, ldap_url=url, error=str(e))
                raise DirectoryOperationError(msg, username) from e
            try:
                result = self._search(conn, search, username)
            finally:
                conn.close()
            self._state = result.status
            self._user_attribute_values = result.attributes
            return result

        logger.warning("No LDAP server available", ldap_urls=self._urls)
        self._state = LookupStatus.server_down
        return LookupResult(status=LookupStatus.server_down)

    def _connect(self, url: str) -> LDAPConnection:
        """Open an authenticated connection to one server."""
        params = self._params
        client = LDAPClient(url, tls=params.use_start_tls)
        if params.trust_all:
            client.set_cert_policy("never")
        client.set_credentials(
            "SIMPLE",
            user=params.bind_dn,
            password=params.bind_password.get_secret_value(),
        )
        self._logger.debug("Connecting to LDAP server", ldap_url=url)
        return client.connect(timeout=self.timeout)

    def _search(
        self, conn: LDAPConnection, search: str, username: str
    ) -> LookupResult:
        """Run the user search on an open connection."""
        params = self._params
        attrlist = list(params.user_attributes)
        if params.naming_attribute not in attrlist:
            attrlist.append(params.naming_attribute)
        logger = self._logger.bind(
            ldap_attrs=attrlist, ldap_search=search, user=username
        )

        try:
            logger.debug("Querying LDAP")
            entries = conn.search(
                base=params.base_dn,
                scope=LDAP_SEARCH_SCOPES[params.scope],
                filter_exp=search,
                attrlist=attrlist,
                timeout=self.timeout,
            )
        except bonsai.LDAPError as e:
            logger.exception("Cannot query LDAP", error=str(e))
            msg = "Error querying LDAP"
            raise DirectoryOperationError(msg, username) from e

        if not entries:
            logger.debug("No LDAP entry for user")
            return LookupResult(status=LookupStatus.user_not_found)
        if len(entries) > 1:
            msg = self._bundle.get("MultipleEntries")
            logger.error(msg, count=len(entries))
            raise DirectoryOperationError(msg, username)

        entry = entries[0]
        attributes = {}
        for attr in params.user_attributes:
            if attr in entry:
                attributes[attr] = [_to_str(v) for v in entry[attr]]
        if params.return_user_dn:
            attributes["dn"] = [str(entry.dn)]
        logger.debug("Found LDAP entry for user", ldap_attrs=list(attributes))
        return LookupResult(
            status=LookupStatus.user_found, attributes=attributes
        )


def _to_str(value: object) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
