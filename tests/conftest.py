"""Test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from ldapquery.config import LDAPQueryConfig

from .support.config import configure
from .support.ldap import MockLDAP, patch_ldap


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure the environment does not override test configuration."""
    monkeypatch.delenv("LDAPQUERY_ADMIN_PASSWORD", raising=False)
    monkeypatch.delenv("LDAPQUERY_CONFIG_PATH", raising=False)


@pytest.fixture
def config() -> LDAPQueryConfig:
    """Set up and return the default test configuration."""
    return configure("base")


@pytest.fixture
def mock_ldap() -> Iterator[MockLDAP]:
    """Replace the bonsai LDAP API with a mock."""
    yield from patch_ldap()
