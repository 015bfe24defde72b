"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from termichat.cli_commands.convert import extract_json_cmd, messages, tokens
    from termichat.cli_commands.generate import generate
    from termichat.cli_commands.provider import provider

    cli.add_command(messages)
    cli.add_command(tokens)
    cli.add_command(extract_json_cmd)
    cli.add_command(generate)
    cli.add_command(provider)
