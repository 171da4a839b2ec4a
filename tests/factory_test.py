"""Tests for construction of directory clients."""

from __future__ import annotations

import pytest
import structlog
from structlog.stdlib import BoundLogger

from ldapquery.config import LDAPQueryConfig
from ldapquery.exceptions import DirectoryConfigError
from ldapquery.factory import Factory
from ldapquery.messages import MessageBundle, get_bundle
from ldapquery.models.enums import (
    HeartbeatTimeUnit,
    LDAPConnectionMode,
    SearchScope,
)
from ldapquery.models.ldap import DirectoryParameters, LookupResult
from ldapquery.storage.ldap import LDAPDirectoryClient

from .support.config import configure


@pytest.mark.parametrize(
    ("mode", "is_secure", "use_start_tls"),
    [
        (LDAPConnectionMode.ldap, False, False),
        (LDAPConnectionMode.ldaps, True, False),
        (LDAPConnectionMode.start_tls, True, True),
    ],
)
def test_connection_mode(
    mode: LDAPConnectionMode, *, is_secure: bool, use_start_tls: bool
) -> None:
    config = configure("base", ldapConnectionMode=mode.value)
    params = Factory(config).create_directory_parameters()
    assert params.is_secure == is_secure
    assert params.use_start_tls == use_start_tls


def test_parameters(config: LDAPQueryConfig) -> None:
    params = Factory(config).create_directory_parameters()
    assert params == DirectoryParameters(
        primary_servers=["ldap1.example.com:389"],
        secondary_servers=[],
        is_secure=False,
        use_start_tls=False,
        base_dn="ou=people,dc=example,dc=com",
        scope=SearchScope.subtree,
        search_filter="(objectClass=*)",
        naming_attribute="uid",
        search_attributes=["uid"],
        bind_dn="cn=admin,dc=example,dc=com",
        bind_password=config.admin_password,
        user_attributes=["mail"],
        return_user_dn=False,
        trust_all=False,
        heartbeat_interval=10,
        heartbeat_time_unit=HeartbeatTimeUnit.seconds,
        operation_timeout=0,
    )


def test_parameters_passthrough() -> None:
    config = configure("failover")
    params = Factory(config).create_directory_parameters()
    assert params.primary_servers == [
        "ldap1.example.com",
        "ldap2.example.com:1389",
    ]
    assert params.secondary_servers == ["ldap3.example.com"]
    assert params.base_dn == "ou=people,dc=example,dc=com"
    assert params.scope == SearchScope.one_level
    assert params.search_filter == "(objectClass=inetOrgPerson)"
    assert params.search_attributes == ["uid", "mail"]
    assert params.user_attributes == ["cn", "mail"]
    assert params.trust_all is True
    assert params.heartbeat_interval == 2
    assert params.heartbeat_time_unit == HeartbeatTimeUnit.minutes
    assert params.operation_timeout == 5


def test_create_client(config: LDAPQueryConfig) -> None:
    client = Factory(config).create_directory_client(get_bundle(["en"]))
    assert isinstance(client, LDAPDirectoryClient)
    assert client.urls == ["ldap://ldap1.example.com:389"]
    assert client.state is None


def test_create_client_invalid_server() -> None:
    config = configure("base", primaryServers=["ldap1.example.com:ldap"])
    factory = Factory(config)

    with pytest.raises(DirectoryConfigError) as excinfo:
        factory.create_directory_client(get_bundle(["en"]))
    assert str(excinfo.value) == "No LDAP server is available."

    with pytest.raises(DirectoryConfigError) as excinfo:
        factory.create_directory_client(get_bundle(["fr"]))
    assert str(excinfo.value) == "Aucun serveur LDAP n'est disponible."


def test_client_class(config: LDAPQueryConfig) -> None:
    created = []

    class FakeClient:
        def __init__(
            self,
            params: DirectoryParameters,
            bundle: MessageBundle,
            logger: BoundLogger,
        ) -> None:
            created.append((params, bundle))

        def search_for_user(self, username: str | None) -> LookupResult:
            raise NotImplementedError

    logger = structlog.get_logger("ldapquery")
    factory = Factory(config, logger, client_class=FakeClient)
    bundle = get_bundle(["de"])
    client = factory.create_directory_client(bundle)
    assert isinstance(client, FakeClient)
    assert created == [(factory.create_directory_parameters(), bundle)]
