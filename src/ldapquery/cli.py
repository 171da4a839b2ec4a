"""Command-line interface for the LDAP query node."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from safir.click import display_help

from .config import LDAPQueryConfig
from .constants import CONFIG_PATH, USERNAME
from .models.enums import Outcome
from .models.tree import TreeContext
from .node import LDAPQueryNode

__all__ = [
    "config_schema",
    "help",
    "main",
    "query",
    "validate",
]


def _load_config(path: Path) -> LDAPQueryConfig:
    """Load the configuration, converting errors to click exceptions."""
    try:
        config = LDAPQueryConfig.from_file(path)
    except FileNotFoundError as e:
        raise click.ClickException(f"{path} not found") from e
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration:\n{e}") from e
    config.configure_logging()
    return config


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s")
def main() -> None:
    """Command-line interface for the LDAP query node."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic)


@main.command()
@click.option(
    "--output",
    default=None,
    type=click.Path(path_type=Path),
    help="Output path (output to stdout if not given)",
)
def config_schema(*, output: Path | None) -> None:
    """Generate the JSON schema of the configuration."""
    schema = LDAPQueryConfig.model_json_schema(
        by_alias=True, mode="serialization"
    )
    text = json.dumps(schema, indent=2) + "\n"
    if output:
        output.parent.mkdir(exist_ok=True)
        output.write_text(text)
    else:
        sys.stdout.write(text)


@main.command()
@click.argument("username")
@click.option(
    "--config-path",
    envvar="LDAPQUERY_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=CONFIG_PATH,
    help="Node configuration file.",
)
@click.option(
    "--locale",
    "locales",
    multiple=True,
    help="Preferred locale for messages, may be repeated.",
)
def query(
    username: str, *, config_path: Path, locales: tuple[str, ...]
) -> None:
    """Run the node for a user and print the result.

    Exits with status 0 if the node takes the true outcome and 1 otherwise.
    """
    config = _load_config(config_path)
    node = LDAPQueryNode(config)
    context = TreeContext(
        shared_state={USERNAME: username}, locales=list(locales)
    )
    action = node.process(context)
    result = {
        "outcome": action.outcome.value,
        "sharedState": action.shared_state,
    }
    click.echo(json.dumps(result, indent=2, sort_keys=True))
    if action.outcome != Outcome.true:
        sys.exit(1)


@main.command()
@click.option(
    "--config-path",
    envvar="LDAPQUERY_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=CONFIG_PATH,
    help="Node configuration file.",
)
def validate(*, config_path: Path) -> None:
    """Validate the configuration and print a summary.

    The summary never includes the bind DN or password.
    """
    config = _load_config(config_path)
    click.echo(json.dumps(config.summary(), indent=2))
