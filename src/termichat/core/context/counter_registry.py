"""Counter registry: selects the TokenCounter a generator config asks for."""

from __future__ import annotations

from typing import TYPE_CHECKING

from termichat.core.context.counter import HeuristicCounter, TiktokenCounter, TokenCounter

if TYPE_CHECKING:
    from termichat.core.interface.config import GeneratorConfig


def get_counter(config: GeneratorConfig) -> TokenCounter:
    """Return the configured TokenCounter.

    ``tiktoken`` is opt-in; everything else gets the heuristic counter.
    """
    if config.token_counter == "tiktoken":
        # Routed names like ``openai/gpt-4o`` -> bare model name.
        return TiktokenCounter(config.model.rsplit("/", 1)[-1])
    return HeuristicCounter()
