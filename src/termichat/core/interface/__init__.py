"""Protocol translation between part-based content and chat completions."""

from termichat.core.interface.client import ContentGenerator
from termichat.core.interface.config import GeneratorConfig, Settings, load_settings
from termichat.core.interface.contents import normalize_contents
from termichat.core.interface.converter import ModelConverter
from termichat.core.interface.models import (
    ChatMessage,
    Content,
    FunctionCallPart,
    FunctionResponsePart,
    GenerateContentConfig,
    GenerateContentRequest,
    GenerateContentResponse,
    InlineDataPart,
    OpaquePart,
    Part,
    TextPart,
)
from termichat.core.interface.parts import (
    is_function_call,
    is_function_response,
    is_image_part,
    is_text_part,
    parse_part,
)
from termichat.core.interface.schema import compile_schema, compile_tools, normalize_schema
from termichat.core.interface.transpiler import Transpiler

__all__ = [
    "ChatMessage",
    "Content",
    "ContentGenerator",
    "FunctionCallPart",
    "FunctionResponsePart",
    "GenerateContentConfig",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "GeneratorConfig",
    "InlineDataPart",
    "ModelConverter",
    "OpaquePart",
    "Part",
    "Settings",
    "TextPart",
    "Transpiler",
    "compile_schema",
    "compile_tools",
    "is_function_call",
    "is_function_response",
    "is_image_part",
    "is_text_part",
    "load_settings",
    "normalize_contents",
    "normalize_schema",
    "parse_part",
]
