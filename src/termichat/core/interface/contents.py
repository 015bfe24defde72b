"""Content normalizer: coerce every accepted ``contents`` shape into ``list[Content]``.

Accepted inputs: a plain string, a single content block (model or dict with
``parts``), a single part (model or dict without ``parts``), or a list mixing
any of these. Output order always equals input order; it is the turn order.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from termichat.core.interface.models import Content
from termichat.core.interface.parts import parse_part


def _to_content(item: Any) -> Content:
    if isinstance(item, str):
        return Content(role="user", parts=[{"text": item}])
    if isinstance(item, Content):
        return item
    if isinstance(item, Mapping) and "parts" in item:
        return Content.model_validate(item)
    if isinstance(item, (Mapping, BaseModel)):
        return Content(role="user", parts=[parse_part(item)])
    msg = f"Unsupported contents item: {type(item).__name__}"
    raise TypeError(msg)


def normalize_contents(contents: Any) -> list[Content]:
    """Return the canonical, ordered list of content blocks for *contents*."""
    if isinstance(contents, (list, tuple)):
        return [_to_content(item) for item in contents]
    return [_to_content(contents)]
