"""LDAP user lookup decision node for authentication trees."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]

try:
    __version__ = version("ldapquery")
except PackageNotFoundError:
    __version__ = "0.0.0"
