"""Token counting for backends without a native counting endpoint."""

from termichat.core.context.counter import HeuristicCounter, TiktokenCounter, TokenCounter
from termichat.core.context.counter_registry import get_counter

__all__ = [
    "HeuristicCounter",
    "TiktokenCounter",
    "TokenCounter",
    "get_counter",
]
