"""Shared CLI loaders and output formatters."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from termichat.core.interface.models import ChatMessage, GenerateContentRequest
from termichat.core.interface.providers import ProviderConfig, provider_base_url

console = Console()


def load_request(path: str | Path) -> GenerateContentRequest:
    """Read a JSON request file (``{"contents": ..., "config": {...}}``)."""
    data: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict) or "contents" not in data:
        data = {"contents": data}
    return GenerateContentRequest.model_validate(data)


def print_messages(messages: list[ChatMessage], *, as_json: bool = False) -> None:
    """Pretty-print converted chat messages."""
    if as_json:
        payload = [m.model_dump(mode="json") for m in messages]
        console.print_json(json.dumps(payload))
        return

    table = Table(title="Chat Messages")
    table.add_column("#", justify="right")
    table.add_column("Role", style="cyan")
    table.add_column("Content")

    for position, msg in enumerate(messages):
        table.add_row(str(position), msg.role, Text(_describe(msg)))

    console.print(table)


def print_providers_table(providers: dict[str, ProviderConfig], default: str | None) -> None:
    """Pretty-print configured providers with masked API keys."""
    table = Table(title="Configured LLM Providers")
    table.add_column("Name", style="cyan")
    table.add_column("Display Name")
    table.add_column("Type")
    table.add_column("Base URL")
    table.add_column("API Key")
    table.add_column("Status")

    for name, config in providers.items():
        status = "enabled" if config.enabled else "disabled"
        if name == default:
            status += " (default)"
        table.add_row(
            name,
            config.display_name,
            config.type.value,
            provider_base_url(config),
            "*" * 8,
            status,
        )

    console.print(table)


def _describe(msg: ChatMessage) -> str:
    if isinstance(msg.content, str):
        return _truncate(msg.content)
    pieces: list[str] = []
    for entry in msg.content:
        if entry.type == "tool-call":
            pieces.append(f"call {entry.tool_name}({json.dumps(entry.args)})")
        elif entry.type == "tool-result":
            pieces.append(f"result {entry.tool_name}: {entry.result}")
        else:
            pieces.append(f"image {entry.mime_type} ({len(entry.image)} bytes)")
    return _truncate("; ".join(pieces))


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
