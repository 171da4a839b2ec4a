"""Localized messages.

Catalogs are YAML files shipped in the ``data`` directory of the package,
named after the bundle and mapping each locale to its messages.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from functools import cache
from importlib.resources import files

import yaml

from .constants import MESSAGE_BUNDLE

__all__ = ["DEFAULT_LOCALE", "MessageBundle", "get_bundle"]

DEFAULT_LOCALE = "en"
"""Locale used when none of the requested locales are available."""


@dataclass(frozen=True)
class MessageBundle:
    """Messages for one locale."""

    locale: str
    """Locale the messages are in."""

    messages: dict[str, str]

    def get(self, key: str) -> str:
        """Return the message for a key.

        Raises
        ------
        KeyError
            Raised if the bundle has no message for that key.
        """
        return self.messages[key]


@cache
def _load_catalog(name: str) -> dict[str, dict[str, str]]:
    resource = files("ldapquery").joinpath("data", f"{name}.yaml")
    return yaml.safe_load(resource.read_text(encoding="utf-8"))


def get_bundle(
    locales: Iterable[str], name: str = MESSAGE_BUNDLE
) -> MessageBundle:
    """Get the message bundle for the preferred locale.

    Parameters
    ----------
    locales
        Preferred locales, most preferred first, as tags such as ``fr-CA``
        or ``fr_CA``. Each is matched first in full and then by language.
    name
        Name of the catalog.

    Returns
    -------
    MessageBundle
        Messages for the first available locale, or for the default locale
        if none of them are available.
    """
    catalog = _load_catalog(name)
    for locale in locales:
        tag = locale.replace("_", "-")
        language = tag.split("-", 1)[0].lower()
        for candidate in (tag, language):
            if candidate in catalog:
                return MessageBundle(candidate, catalog[candidate])
    return MessageBundle(DEFAULT_LOCALE, catalog[DEFAULT_LOCALE])
