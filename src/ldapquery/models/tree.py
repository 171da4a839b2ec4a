"""Models for the authentication tree the node runs in."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .enums import Outcome

__all__ = ["Action", "TreeContext"]


@dataclass
class TreeContext:
    """State of the authentication flow passed to a node.

    The shared state is owned by the authentication tree. Nodes must copy it
    before changing it and return the copy in their `Action`.
    """

    shared_state: dict[str, Any] = field(default_factory=dict)
    """Key/value state carried across the steps of the flow."""

    locales: list[str] = field(default_factory=list)
    """Preferred locales of the request, most preferred first."""


@dataclass
class Action:
    """Result of processing a node."""

    outcome: Outcome
    """Branch to take out of the node."""

    shared_state: dict[str, Any]
    """Replacement shared state for the rest of the flow."""
