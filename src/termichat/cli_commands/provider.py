"""``termichat provider``: inspect and validate configured LLM providers."""

from __future__ import annotations

import sys

import click

from termichat.cli_commands._output import console, print_providers_table


@click.group()
def provider() -> None:
    """Inspect configured LLM providers."""


@provider.command("list")
@click.argument("config", type=click.Path(exists=True, dir_okay=False))
def list_providers(config: str) -> None:
    """List the providers declared in CONFIG."""
    from termichat.core.interface.config import load_settings
    from termichat.core.interface.errors import ConfigError

    try:
        settings = load_settings(config)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    if not settings.providers:
        console.print("[yellow]No LLM providers configured.[/yellow]")
        return

    print_providers_table(settings.providers, settings.default_provider)


@provider.command("validate")
@click.argument("config", type=click.Path(exists=True, dir_okay=False))
def validate_providers(config: str) -> None:
    """Check every provider in CONFIG; exits non-zero if any is invalid."""
    from termichat.core.interface.config import read_settings_file
    from termichat.core.interface.errors import ConfigError
    from termichat.core.interface.providers import validate_provider_config

    try:
        data = read_settings_file(config)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    providers = data.get("providers") or {}
    if not isinstance(providers, dict) or not providers:
        console.print("[yellow]No LLM providers configured.[/yellow]")
        return

    failed = False
    for name, entry in providers.items():
        if entry is None:
            entry = {}
        if isinstance(entry, dict):
            problem = validate_provider_config({"name": name, **entry})
        else:
            problem = "invalid entry, expected a mapping"
        if problem:
            failed = True
            console.print(f"[red]✗[/red] {name}: {problem}")
        else:
            console.print(f"[green]✓[/green] {name}")

    if failed:
        sys.exit(1)
