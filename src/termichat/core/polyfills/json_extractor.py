"""Resilient JSON extraction from free-form model output.

Backends that lack reliable structured output wrap their answers in
reasoning tags (``<think>``/``<thinking>``) or markdown fences. The extractor
peels those layers in a fixed order: reasoning tags, direct parse, then the
```` ```json ```` fenced block.
"""

import json
import logging
from typing import Any

from termichat.core.interface.errors import JsonExtractionError, JsonFormatError, JsonParseError

logger = logging.getLogger(__name__)

_THINK_TAGS = (("<think>", "</think>"), ("<thinking>", "</thinking>"))
_FENCE_OPEN = "```json"
_FENCE_CLOSE = "```"


def extract_answer(text: str) -> str:
    """Drop the first complete reasoning block from *text*.

    Returns the trimmed text before the opening tag and after the closing tag
    joined by one space. A start tag without a matching end tag leaves the
    text unchanged.
    """
    for start, end in _THINK_TAGS:
        before, found, rest = text.partition(start)
        if not found:
            continue
        _, closed, after = rest.partition(end)
        if not closed:
            continue
        return f"{before.strip()} {after.strip()}".strip()
    return text


def extract_json(output: str) -> Any:
    """Recover a JSON value from *output*.

    Raises:
        JsonParseError: A fenced block was found but its body is not JSON.
        JsonFormatError: The output is not JSON and holds no fenced block.
    """
    if output.strip().startswith("<think"):
        output = extract_answer(output)

    try:
        return json.loads(output)
    except json.JSONDecodeError:
        pass

    start = output.find(_FENCE_OPEN)
    body_start = start + len(_FENCE_OPEN)
    end = output.rfind(_FENCE_CLOSE)
    if start == -1 or end < body_start:
        raise JsonFormatError(output)

    try:
        return json.loads(output[body_start:end])
    except json.JSONDecodeError as exc:
        raise JsonParseError(output, str(exc)) from exc


def try_extract_json(output: str) -> Any | None:
    """Like ``extract_json`` but logs the raw output and returns ``None`` on failure."""
    try:
        return extract_json(output)
    except JsonParseError as exc:
        logger.error("Failed to parse JSON: %s; llm response: %r", exc.detail, exc.raw)
    except JsonExtractionError as exc:
        logger.error("LLM output not in expected format: %r", exc.raw)
    return None
