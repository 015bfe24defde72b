"""Token counting: protocol and implementations for estimating prompt size.

OpenAI-compatible backends rarely expose a counting endpoint, so the default
is a character-class heuristic. ``TiktokenCounter`` is available for models
whose tokenizer tiktoken knows.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import tiktoken

if TYPE_CHECKING:
    from termichat.core.interface.models import ChatMessage


@runtime_checkable
class TokenCounter(Protocol):
    """Protocol for counting tokens in chat messages."""

    def count_text(self, text: str) -> int:
        """Return the token count for raw text."""
        ...

    def count_messages(self, messages: list[ChatMessage]) -> int:
        """Return the total token count for a message list."""
        ...


def messages_text(messages: list[ChatMessage]) -> str:
    """Concatenate message text the way both counters see it."""
    return " ".join(m.text for m in messages)


# ---------------------------------------------------------------------------
# Heuristic counter (default)
# ---------------------------------------------------------------------------

_ENGLISH_WORD_RE = re.compile(r"[a-zA-Z]+'?[a-zA-Z]*")
_CJK_RE = re.compile(r"[\u4e00-\u9fff]")
_NUMBER_RE = re.compile(r"\b\d+\b", re.ASCII)
_PUNCTUATION_RE = re.compile(r"[.,!?;:\"'(){}\[\]<>@#$%^&*\-_+=~`|\\/]")
_WHITESPACE_RE = re.compile(r"\s+")

# Weights in tenths of a token so the sum stays exact before rounding up.
_WORD_WEIGHT = 12
_CJK_WEIGHT = 10
_NUMBER_WEIGHT = 8
_PUNCTUATION_WEIGHT = 5
_WHITESPACE_WEIGHT = 2  # one token per five whitespace runs


class HeuristicCounter:
    """Weighted character-class estimate; not tied to any vendor tokenizer."""

    def count_text(self, text: str) -> int:
        tenths = (
            len(_ENGLISH_WORD_RE.findall(text)) * _WORD_WEIGHT
            + len(_CJK_RE.findall(text)) * _CJK_WEIGHT
            + len(_NUMBER_RE.findall(text)) * _NUMBER_WEIGHT
            + len(_PUNCTUATION_RE.findall(text)) * _PUNCTUATION_WEIGHT
            + len(_WHITESPACE_RE.findall(text)) * _WHITESPACE_WEIGHT
        )
        return -(-tenths // 10)

    def count_messages(self, messages: list[ChatMessage]) -> int:
        return self.count_text(messages_text(messages))


# ---------------------------------------------------------------------------
# Tiktoken-based counter (OpenAI-family models)
# ---------------------------------------------------------------------------


class TiktokenCounter:
    """Token counter using tiktoken encodings.

    Falls back to ``cl100k_base`` when the model's encoding is unknown.
    """

    def __init__(self, model: str) -> None:
        try:
            self._enc = tiktoken.encoding_for_model(model)
        except KeyError:
            self._enc = tiktoken.get_encoding("cl100k_base")

    def count_text(self, text: str) -> int:
        return len(self._enc.encode(text))

    def count_messages(self, messages: list[ChatMessage]) -> int:
        return self.count_text(messages_text(messages))
