"""Helpers for checking the node's JSON logs."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Any

from _pytest.logging import LogCaptureFixture

__all__ = ["log_events", "parse_log"]


def _parse_timestamp(value: str) -> datetime:
    assert value.endswith("Z")
    return datetime.fromisoformat(value[:-1]).replace(tzinfo=UTC)


def parse_log(
    caplog: LogCaptureFixture, *, logger: str = "ldapquery"
) -> list[dict[str, Any]]:
    """Parse the captured records of one logger as JSON.

    The ``logger`` and ``timestamp`` keys are checked and removed, so tests
    can compare the rest of each message directly.

    Parameters
    ----------
    caplog
        The log capture fixture.
    logger
        Name of the logger whose records are parsed. Records from other
        loggers are skipped.

    Returns
    -------
    list of dict
        Parsed messages in the order they were logged.
    """
    now = datetime.now(tz=UTC)
    messages = []
    for name, _, text in caplog.record_tuples:
        if name != logger:
            continue
        message = json.loads(text)
        assert message.pop("logger") == logger
        timestamp = _parse_timestamp(message.pop("timestamp"))
        assert now - timedelta(seconds=10) < timestamp <= now
        messages.append(message)
    return messages


def log_events(caplog: LogCaptureFixture) -> list[tuple[str, str]]:
    """Return the event and severity of each captured node message."""
    return [(m["event"], m["severity"]) for m in parse_log(caplog)]
