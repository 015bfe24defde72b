"""Shared error types for the translation layer."""


class TranslationError(Exception):
    """Base error for all translation-layer failures."""


class GenerationError(TranslationError):
    """The chat backend failed while serving an operation."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed" + (f": {detail}" if detail else ""))


class ToolArgumentsError(TranslationError):
    """Tool-call argument text is not a JSON object."""

    def __init__(self, tool_name: str, raw: str) -> None:
        self.tool_name = tool_name
        self.raw = raw
        super().__init__(f"Invalid JSON arguments for tool {tool_name}: {raw!r}")


class JsonExtractionError(TranslationError):
    """No JSON value could be recovered from model output."""

    def __init__(self, message: str, raw: str) -> None:
        self.raw = raw
        super().__init__(message)


class JsonFormatError(JsonExtractionError):
    """Output is neither JSON nor wraps JSON in a fenced block."""

    def __init__(self, raw: str) -> None:
        super().__init__("LLM output not in expected format", raw)


class JsonParseError(JsonExtractionError):
    """A fenced JSON block was found but does not parse."""

    def __init__(self, raw: str, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Failed to parse JSON" + (f": {detail}" if detail else ""), raw)


class UnsupportedCapabilityError(TranslationError):
    """The chat backend cannot serve this operation at all. Not retryable."""

    def __init__(self, capability: str) -> None:
        self.capability = capability
        super().__init__(f"{capability} is not supported by this content generator")


class ConfigError(Exception):
    """Configuration could not be loaded or is invalid."""
