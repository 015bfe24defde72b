"""Part classifiers: decide which kind of part a raw wire fragment is.

The predicates accept raw wire dicts (camelCase keys, as produced by the
content protocol) or already-parsed part models. ``parse_part`` runs them
once and returns the matching variant; everything downstream dispatches on
the variant type.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from termichat.core.interface.models import (
    Blob,
    FunctionCall,
    FunctionCallPart,
    FunctionResponse,
    FunctionResponsePart,
    FunctionResponsePayload,
    InlineDataPart,
    OpaquePart,
    Part,
    TextPart,
)

logger = logging.getLogger(__name__)


def _field(part: Any, name: str) -> Any:
    if isinstance(part, Mapping):
        return part.get(name)
    return None


def is_text_part(part: Any) -> bool:
    if isinstance(part, BaseModel):
        return isinstance(part, TextPart)
    return isinstance(_field(part, "text"), str)


def is_function_call(part: Any) -> bool:
    """A function call needs a string ``name`` and an ``args`` key, which may be null."""
    if isinstance(part, BaseModel):
        return isinstance(part, FunctionCallPart)
    call = _field(part, "functionCall")
    if not isinstance(call, Mapping):
        return False
    return isinstance(call.get("name"), str) and "args" in call


def is_function_response(part: Any) -> bool:
    """A function response needs string ``id`` and ``name`` plus a string output or error."""
    if isinstance(part, BaseModel):
        return isinstance(part, FunctionResponsePart)
    resp = _field(part, "functionResponse")
    if not isinstance(resp, Mapping):
        return False
    if not isinstance(resp.get("id"), str) or not isinstance(resp.get("name"), str):
        return False
    payload = resp.get("response")
    if not isinstance(payload, Mapping):
        return False
    return isinstance(payload.get("output"), str) or isinstance(payload.get("error"), str)


def _has_inline_data(part: Any) -> bool:
    blob = _field(part, "inlineData")
    return (
        isinstance(blob, Mapping)
        and isinstance(blob.get("mimeType"), str)
        and isinstance(blob.get("data"), str)
        and bool(blob["data"])
    )


def is_image_part(part: Any) -> bool:
    if isinstance(part, BaseModel):
        return isinstance(part, InlineDataPart) and part.inline_data.is_image
    return _has_inline_data(part) and part["inlineData"]["mimeType"].startswith("image/")


def parse_part(raw: Any) -> Part:
    """Return the tagged variant for *raw*.

    Parts that fail every classifier become ``OpaquePart`` rather than an
    error, so unknown part shapes flow through untouched.
    """
    if isinstance(raw, BaseModel):
        if isinstance(raw, (TextPart, FunctionCallPart, FunctionResponsePart, InlineDataPart, OpaquePart)):
            return raw
        raw = raw.model_dump(by_alias=True, exclude_none=True)

    if is_text_part(raw):
        return TextPart(text=raw["text"])

    if is_function_call(raw):
        call = raw["functionCall"]
        args = call["args"] if call["args"] is not None else {}
        if isinstance(args, Mapping):
            return FunctionCallPart(function_call=FunctionCall(name=call["name"], args=dict(args)))

    if is_function_response(raw):
        resp = raw["functionResponse"]
        payload = resp["response"]
        output = payload.get("output")
        error = payload.get("error")
        return FunctionResponsePart(
            function_response=FunctionResponse(
                id=resp["id"],
                name=resp["name"],
                response=FunctionResponsePayload(
                    output=output if isinstance(output, str) else None,
                    error=error if isinstance(error, str) else None,
                ),
            )
        )

    if _has_inline_data(raw):
        blob = raw["inlineData"]
        return InlineDataPart(inline_data=Blob(mime_type=blob["mimeType"], data=blob["data"]))

    logger.debug("Unrecognised part kept as opaque: %r", raw)
    return OpaquePart(raw=dict(raw) if isinstance(raw, Mapping) else {"value": raw})
