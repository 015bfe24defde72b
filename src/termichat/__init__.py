"""termichat: serve part-based content requests from OpenAI-compatible backends."""

from __future__ import annotations

__version__ = "0.1.0"
