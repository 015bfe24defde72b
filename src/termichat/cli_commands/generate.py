"""``termichat generate``: send one prompt to the configured backend."""

from __future__ import annotations

import asyncio
import os
import sys

import click

from termichat.cli_commands._output import console


@click.command()
@click.argument("prompt")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Settings YAML; defaults to CUSTOM_LLM_* environment variables.",
)
@click.option("--system", "-s", default=None, help="System instruction.")
@click.option("--model", "-m", default=None, help="Override the configured model.")
@click.option("--stream", is_flag=True, help="Stream the response as it arrives.")
@click.option("--telemetry", is_flag=True, help="Export trace spans to the console.")
def generate(
    prompt: str,
    config_path: str | None,
    system: str | None,
    model: str | None,
    stream: bool,
    telemetry: bool,
) -> None:
    """Generate a reply to PROMPT."""
    from termichat.core.interface.client import ContentGenerator
    from termichat.core.interface.config import GeneratorConfig, load_settings
    from termichat.core.interface.errors import ConfigError
    from termichat.core.interface.models import GenerateContentConfig, GenerateContentRequest

    try:
        if config_path:
            config = load_settings(config_path).effective_generator()
        else:
            config = GeneratorConfig.from_env(os.environ)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    if model:
        config = config.model_copy(update={"model": model})

    if telemetry:
        from termichat.utils.telemetry import configure_telemetry

        configure_telemetry()

    generator = ContentGenerator(config)
    request = GenerateContentRequest(
        contents=prompt,
        config=GenerateContentConfig(system_instruction=system),
    )

    async def _complete() -> None:
        response = await generator.generate_content(request)
        console.print(response.text or "", markup=False, highlight=False)

    async def _stream() -> None:
        async for envelope in generator.generate_content_stream(request):
            if envelope.text:
                console.print(envelope.text, end="", markup=False, highlight=False)
        console.print()

    try:
        asyncio.run(_stream() if stream else _complete())
    except Exception as exc:
        console.print(f"[red]Generation error:[/red] {exc}")
        sys.exit(1)
