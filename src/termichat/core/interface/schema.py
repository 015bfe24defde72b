"""JSON-Schema normalization and compilation into pydantic validation schemas.

Tool declarations and structured-output contracts arrive as loosely formed
JSON-Schema (missing ``type`` on objects, upper-case Gemini type names).
``normalize_schema`` repairs them; ``compile_schema`` turns the result into a
``pydantic.TypeAdapter`` that both validates model output and regenerates a
clean JSON-Schema for the chat backend.

Gaps degrade instead of failing: unknown node types compile to ``Any`` and
tool parameters without a usable object shape compile to an empty object.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, create_model

from termichat.core.interface.models import ToolDeclaration

# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _normalize_type(value: Any) -> Any:
    if isinstance(value, str):
        return value.lower()
    if isinstance(value, list):
        return [v.lower() if isinstance(v, str) else v for v in value]
    return value


def _normalize_members(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    return [normalize_schema(v) if isinstance(v, Mapping) else v for v in value]


def normalize_schema(schema: Mapping[str, Any]) -> dict[str, Any]:
    """Return a repaired copy of *schema*; the input is never mutated.

    - a node with ``properties`` but no ``type`` becomes ``type: "object"``
    - ``type`` names are lower-cased
    - ``properties``, ``items``, ``anyOf`` and ``oneOf`` are normalized recursively
    """
    normalized = dict(schema)

    if "type" in normalized:
        normalized["type"] = _normalize_type(normalized["type"])

    if normalized.get("properties") is not None and not normalized.get("type"):
        normalized["type"] = "object"

    properties = normalized.get("properties")
    if isinstance(properties, Mapping):
        normalized["properties"] = {
            key: normalize_schema(value) if isinstance(value, Mapping) else value
            for key, value in properties.items()
        }

    items = normalized.get("items")
    if isinstance(items, Mapping):
        normalized["items"] = normalize_schema(items)
    elif isinstance(items, list):
        normalized["items"] = _normalize_members(items)

    for key in ("anyOf", "oneOf"):
        if key in normalized:
            normalized[key] = _normalize_members(normalized[key])

    return normalized


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

_NON_WORD = re.compile(r"\W+")


def _model_name(*pieces: str) -> str:
    joined = "_".join(_NON_WORD.sub("_", p).strip("_") for p in pieces if p)
    return joined or "Schema"


def _compile_object(node: Mapping[str, Any], name: str) -> type[BaseModel]:
    properties = node.get("properties")
    if not isinstance(properties, Mapping):
        properties = {}
    required_raw = node.get("required")
    required = (
        {r for r in required_raw if isinstance(r, str)} if isinstance(required_raw, list) else set()
    )

    # Field names are positional; the JSON key lives in the alias so keys that
    # are not Python identifiers (or clash with BaseModel attributes) still work.
    fields: dict[str, Any] = {}
    for position, (key, sub) in enumerate(properties.items()):
        annotation = _compile_node(sub, _model_name(name, str(key)))
        default = ... if key in required else None
        fields[f"field_{position}"] = (annotation, Field(default, alias=str(key)))

    description = node.get("description")
    # Undeclared keys are allowed, as in JSON-Schema without additionalProperties.
    return create_model(
        name,
        __config__=ConfigDict(extra="allow"),
        __doc__=description if isinstance(description, str) else None,
        **fields,
    )


def _compile_typed(node: Mapping[str, Any], node_type: str, name: str) -> Any:
    if node_type == "string":
        enum = node.get("enum")
        if isinstance(enum, list) and enum and all(isinstance(v, str) for v in enum):
            return Literal[tuple(enum)]  # type: ignore[valid-type]
        return str
    if node_type == "number":
        return float
    if node_type == "integer":
        return int
    if node_type == "boolean":
        return bool
    if node_type == "array":
        items = node.get("items")
        item_annotation = _compile_node(items, _model_name(name, "item")) if isinstance(items, Mapping) else Any
        return list[item_annotation]  # type: ignore[valid-type]
    if node_type == "object":
        return _compile_object(node, name)
    return Any


def _compile_node(node: Any, name: str) -> Any:
    if not isinstance(node, Mapping):
        return Any

    node_type = node.get("type")
    annotation: Any
    if isinstance(node_type, str):
        annotation = _compile_typed(node, node_type, name)
    elif isinstance(node_type, list):
        members = [t for t in node_type if isinstance(t, str) and t != "null"]
        if members:
            annotation = Union[tuple(_compile_typed(node, t, name) for t in members)]  # noqa: UP007
        else:
            annotation = Any
        if "null" in node_type:
            annotation = Optional[annotation]  # noqa: UP007
    elif isinstance(node.get("anyOf") or node.get("oneOf"), list):
        branches = node.get("anyOf") or node.get("oneOf")
        compiled = tuple(
            _compile_node(branch, _model_name(name, f"option{i}")) for i, branch in enumerate(branches)
        )
        annotation = Union[compiled] if compiled else Any  # noqa: UP007
    else:
        annotation = Any

    if node.get("nullable") is True:
        annotation = Optional[annotation]  # noqa: UP007

    description = node.get("description")
    is_model = isinstance(annotation, type) and issubclass(annotation, BaseModel)
    if isinstance(description, str) and description and not is_model:
        annotation = Annotated[annotation, Field(description=description)]
    return annotation


def compile_schema(schema: Mapping[str, Any], *, name: str = "Schema") -> TypeAdapter[Any]:
    """Compile a JSON-Schema-like mapping into a validation schema."""
    return TypeAdapter(_compile_node(normalize_schema(schema), _model_name(name)))


def empty_object_schema(name: str = "Empty") -> TypeAdapter[Any]:
    return TypeAdapter(create_model(_model_name(name)))


# ---------------------------------------------------------------------------
# Tool declarations
# ---------------------------------------------------------------------------


@dataclass
class CompiledTool:
    """A tool ready for the chat backend."""

    name: str
    description: str
    parameters: TypeAdapter[Any]

    def json_schema(self) -> dict[str, Any]:
        return self.parameters.json_schema(by_alias=True)


def _compile_parameters(tool_name: str, parameters: Mapping[str, Any] | None) -> TypeAdapter[Any]:
    model_name = _model_name(tool_name, "args")
    if isinstance(parameters, Mapping):
        normalized = normalize_schema(parameters)
        if normalized.get("type") == "object":
            return TypeAdapter(_compile_object(normalized, model_name))
    return empty_object_schema(model_name)


def compile_tools(tools: list[ToolDeclaration] | None) -> dict[str, CompiledTool]:
    """Compile declarations into a mapping keyed by tool name; the last duplicate wins."""
    compiled: dict[str, CompiledTool] = {}
    for tool in tools or []:
        for decl in tool.function_declarations:
            if not decl.name:
                continue
            compiled[decl.name] = CompiledTool(
                name=decl.name,
                description=decl.description or "",
                parameters=_compile_parameters(decl.name, decl.parameters),
            )
    return compiled
