"""Transpiler protocol: converts between chat messages and a backend's wire format.

The converter produces backend-neutral ``ChatMessage`` objects; a transpiler
turns those into the exact payload a chat backend accepts and reads that
backend's completion back into a ``GenerateTextResult``.
"""

from typing import Any, Protocol

from termichat.core.interface.models import ChatMessage, GenerateTextResult
from termichat.core.interface.schema import CompiledTool


class Transpiler(Protocol):
    """Protocol for backend-specific wire transpilers."""

    def to_provider(self, messages: list[ChatMessage]) -> list[dict[str, Any]]:
        """Serialize chat messages into the backend's message list."""
        ...

    def tools_to_provider(self, tools: dict[str, CompiledTool]) -> list[dict[str, Any]]:
        """Serialize compiled tools into the backend's tool declarations."""
        ...

    def from_provider(self, response: Any) -> GenerateTextResult:
        """Read a complete backend response into a ``GenerateTextResult``."""
        ...
