"""Offline commands: ``messages``, ``tokens`` and ``extract-json``."""

from __future__ import annotations

import json
import sys
from typing import IO

import click

from termichat.cli_commands._output import console, load_request, print_messages


@click.command()
@click.argument("request", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print messages as JSON.")
def messages(request: str, as_json: bool) -> None:
    """Show the chat messages a REQUEST json file converts to."""
    from termichat.core.interface.converter import ModelConverter

    try:
        loaded = load_request(request)
        converted = ModelConverter().to_messages(loaded)
    except Exception as exc:
        console.print(f"[red]Conversion error:[/red] {exc}")
        sys.exit(1)

    if not converted:
        console.print("[yellow]No messages.[/yellow]")
        return

    print_messages(converted, as_json=as_json)


@click.command()
@click.argument("request", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--counter",
    type=click.Choice(["heuristic", "tiktoken"]),
    default="heuristic",
    help="Token counter to use.",
)
@click.option("--model", default="gpt-4o", help="Model name for the tiktoken counter.")
def tokens(request: str, counter: str, model: str) -> None:
    """Estimate the prompt tokens of a REQUEST json file."""
    from termichat.core.context.counter import HeuristicCounter, TiktokenCounter, TokenCounter
    from termichat.core.interface.converter import ModelConverter

    try:
        loaded = load_request(request)
        converted = ModelConverter().to_messages(loaded)
    except Exception as exc:
        console.print(f"[red]Conversion error:[/red] {exc}")
        sys.exit(1)

    token_counter: TokenCounter = (
        TiktokenCounter(model) if counter == "tiktoken" else HeuristicCounter()
    )
    console.print(f"Total tokens: {token_counter.count_messages(converted)}")


@click.command("extract-json")
@click.argument("source", type=click.File("r"), default="-")
def extract_json_cmd(source: IO[str]) -> None:
    """Recover a JSON value from model output in SOURCE (default: stdin)."""
    from termichat.core.interface.errors import JsonExtractionError
    from termichat.core.polyfills.json_extractor import extract_json

    try:
        data = extract_json(source.read())
    except JsonExtractionError as exc:
        console.print(f"[red]Extraction error:[/red] {exc}")
        sys.exit(1)

    console.print_json(json.dumps(data))
