"""Create directory clients from the node configuration."""

from __future__ import annotations

from collections.abc import Callable

import structlog
from structlog.stdlib import BoundLogger

from .config import LDAPQueryConfig
from .constants import DEFAULT_SEARCH_FILTER
from .messages import MessageBundle
from .models.enums import LDAPConnectionMode
from .models.ldap import DirectoryParameters
from .storage.ldap import DirectoryClient, LDAPDirectoryClient

DirectoryClientClass = Callable[
    [DirectoryParameters, MessageBundle, BoundLogger], DirectoryClient
]
"""Type of a callable that constructs a directory client."""

__all__ = ["DirectoryClientClass", "Factory"]


class Factory:
    """Build directory clients from the node configuration.

    Parameters
    ----------
    config
        Configuration of the node.
    logger
        Logger passed to the directory clients.
    client_class
        Callable used to construct the directory client. Defaults to
        `~ldapquery.storage.ldap.LDAPDirectoryClient` and may be overridden
        to substitute another implementation.
    """

    def __init__(
        self,
        config: LDAPQueryConfig,
        logger: BoundLogger | None = None,
        *,
        client_class: DirectoryClientClass = LDAPDirectoryClient,
    ) -> None:
        self._config = config
        self._logger = logger or structlog.get_logger("ldapquery")
        self._client_class = client_class

    def create_directory_parameters(self) -> DirectoryParameters:
        """Translate the configuration into directory client parameters.

        Returns
        -------
        DirectoryParameters
            Parameters for the directory client. Nothing is contacted.
        """
        config = self._config
        mode = config.ldap_connection_mode
        use_start_tls = mode == LDAPConnectionMode.start_tls
        is_secure = mode == LDAPConnectionMode.ldaps or use_start_tls
        return DirectoryParameters(
            primary_servers=list(config.primary_servers),
            secondary_servers=list(config.secondary_servers),
            is_secure=is_secure,
            use_start_tls=use_start_tls,
            base_dn=",".join(config.account_search_base_dn),
            scope=config.search_scope,
            search_filter=config.user_search_filter or DEFAULT_SEARCH_FILTER,
            naming_attribute=config.user_profile_attribute,
            search_attributes=list(config.search_filter_attributes),
            bind_dn=config.admin_dn,
            bind_password=config.admin_password,
            user_attributes=list(config.attributes_to_save),
            return_user_dn=False,
            trust_all=config.trust_all_server_certificates,
            heartbeat_interval=config.heartbeat_interval,
            heartbeat_time_unit=config.heartbeat_time_unit,
            operation_timeout=config.ldap_operations_timeout,
        )

    def create_directory_client(
        self, bundle: MessageBundle
    ) -> DirectoryClient:
        """Create a new directory client.

        Parameters
        ----------
        bundle
            Localized messages for the client's errors.

        Returns
        -------
        DirectoryClient
            Newly-constructed client. It has not yet connected.

        Raises
        ------
        DirectoryConfigError
            Raised if the client cannot be constructed from the parameters.
        """
        params = self.create_directory_parameters()
        self._logger.debug(
            "Initializing directory client",
            is_secure=params.is_secure,
            use_start_tls=params.use_start_tls,
            **self._config.summary(),
        )
        return self._client_class(params, bundle, self._logger)
