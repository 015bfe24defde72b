"""termichat CLI entrypoint."""

from __future__ import annotations

import click

from termichat import __version__


@click.group()
@click.version_option(version=__version__, prog_name="termichat")
def main() -> None:
    """termichat: content-protocol requests over OpenAI-compatible backends."""


# Register subcommands
from termichat.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
