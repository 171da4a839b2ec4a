"""Authentication tree node that checks a user exists in LDAP."""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any

import structlog
from structlog.stdlib import BoundLogger

from .config import LDAPQueryConfig
from .constants import USERNAME
from .exceptions import DirectoryError
from .factory import Factory
from .messages import get_bundle
from .models.enums import LookupStatus, Outcome
from .models.ldap import LookupResult
from .models.tree import Action, TreeContext

__all__ = ["LDAPQueryNode", "format_attribute_value"]


def format_attribute_value(values: Iterable[Any]) -> str:
    """Convert the values of an attribute to a shared state string.

    Multiple values are separated by a comma and space. Square brackets are
    removed from the result.
    """
    value = ", ".join(str(v) for v in values)
    return value.replace("[", "").replace("]", "")


class LDAPQueryNode:
    """Decision node that looks up the flow's user in LDAP.

    The username is taken from the shared state. If the user is found, the
    node takes the ``true`` outcome and optionally copies attributes of the
    user's entry into the shared state. In every other case, including any
    error, it takes the ``false`` outcome.

    The node keeps no state between calls and builds a new directory client
    for each one, so `process` may be called concurrently.

    Parameters
    ----------
    config
        Configuration of the node.
    factory
        Factory for directory clients. If not given, one is created from the
        configuration.
    logger
        Logger to use.
    """

    def __init__(
        self,
        config: LDAPQueryConfig,
        *,
        factory: Factory | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or structlog.get_logger("ldapquery")
        self._factory = factory or Factory(config, self._logger)

    def process(self, context: TreeContext) -> Action:
        """Look up the user and choose the outcome.

        Parameters
        ----------
        context
            Current state of the authentication flow.

        Returns
        -------
        Action
            Outcome of the node and a copy of the shared state, with user
            attributes added if configured and the user was found.
        """
        self._logger.info("LDAP query node started")
        shared_state = copy.deepcopy(context.shared_state)
        username = context.shared_state.get(USERNAME)
        logger = self._logger.bind(user=username)

        try:
            client = self._factory.create_directory_client(
                get_bundle(context.locales)
            )
            result = client.search_for_user(username)
        except DirectoryError as e:
            logger.error("LDAP user lookup failed", error=str(e))
            return Action(outcome=Outcome.false, shared_state=shared_state)

        logger = logger.bind(result=result.status.value)
        outcome = Outcome.false
        if result.status == LookupStatus.user_found:
            logger.info("User was found")
            self._save_attributes(result, shared_state, logger)
            outcome = Outcome.true
        elif result.status == LookupStatus.user_not_found:
            logger.info("User was not found")
        elif result.status == LookupStatus.server_down:
            logger.warning("LDAP server is down")
        else:
            logger.warning("Unknown LDAP lookup result")

        return Action(outcome=outcome, shared_state=shared_state)

    def _save_attributes(
        self,
        result: LookupResult,
        shared_state: dict[str, Any],
        logger: BoundLogger,
    ) -> None:
        """Copy user attributes into the shared state, if configured."""
        config = self._config
        if not (config.save_to_shared_state and config.attributes_to_save):
            logger.debug("No attributes requested to be saved")
            return
        for name, values in result.attributes.items():
            shared_state[name] = format_attribute_value(values)
        logger.debug(
            "Saved user attributes", attributes=list(result.attributes)
        )
