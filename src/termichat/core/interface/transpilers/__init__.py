"""Backend-specific transpiler implementations."""

from termichat.core.interface.transpilers.openai import OpenAITranspiler

__all__ = ["OpenAITranspiler"]
