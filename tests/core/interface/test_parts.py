"""Tests for part classifiers and parse_part."""

from termichat.core.interface.models import (
    FunctionCallPart,
    FunctionResponsePart,
    InlineDataPart,
    OpaquePart,
    TextPart,
)
from termichat.core.interface.parts import (
    is_function_call,
    is_function_response,
    is_image_part,
    is_text_part,
    parse_part,
)


class TestIsTextPart:
    def test_text(self) -> None:
        assert is_text_part({"text": "hi"})

    def test_empty_text_is_still_text(self) -> None:
        assert is_text_part({"text": ""})

    def test_non_string_text(self) -> None:
        assert not is_text_part({"text": 3})

    def test_missing(self) -> None:
        assert not is_text_part({"other": "x"})

    def test_not_a_mapping(self) -> None:
        assert not is_text_part("hello")
        assert not is_text_part(None)

    def test_model(self) -> None:
        assert is_text_part(TextPart(text="x"))
        assert not is_text_part(OpaquePart())


class TestIsFunctionCall:
    def test_valid(self) -> None:
        assert is_function_call({"functionCall": {"name": "f", "args": {"a": 1}}})

    def test_empty_args(self) -> None:
        assert is_function_call({"functionCall": {"name": "f", "args": {}}})

    def test_null_args(self) -> None:
        assert is_function_call({"functionCall": {"name": "f", "args": None}})

    def test_missing_args(self) -> None:
        assert not is_function_call({"functionCall": {"name": "f"}})

    def test_non_string_name(self) -> None:
        assert not is_function_call({"functionCall": {"name": 1, "args": {}}})

    def test_not_an_object(self) -> None:
        assert not is_function_call({"functionCall": "f"})


class TestIsFunctionResponse:
    def test_with_output(self) -> None:
        part = {"functionResponse": {"id": "c1", "name": "f", "response": {"output": "ok"}}}
        assert is_function_response(part)

    def test_with_error(self) -> None:
        part = {"functionResponse": {"id": "c1", "name": "f", "response": {"error": "boom"}}}
        assert is_function_response(part)

    def test_neither_output_nor_error(self) -> None:
        part = {"functionResponse": {"id": "c1", "name": "f", "response": {}}}
        assert not is_function_response(part)

    def test_non_string_output(self) -> None:
        part = {"functionResponse": {"id": "c1", "name": "f", "response": {"output": 5}}}
        assert not is_function_response(part)

    def test_missing_id(self) -> None:
        part = {"functionResponse": {"name": "f", "response": {"output": "ok"}}}
        assert not is_function_response(part)


class TestIsImagePart:
    def test_image(self) -> None:
        assert is_image_part({"inlineData": {"mimeType": "image/png", "data": "AAAA"}})

    def test_non_image_mime(self) -> None:
        assert not is_image_part({"inlineData": {"mimeType": "application/pdf", "data": "AAAA"}})

    def test_empty_data(self) -> None:
        assert not is_image_part({"inlineData": {"mimeType": "image/png", "data": ""}})

    def test_model(self) -> None:
        part = parse_part({"inlineData": {"mimeType": "image/jpeg", "data": "AAAA"}})
        assert is_image_part(part)


class TestParsePart:
    def test_text(self) -> None:
        part = parse_part({"text": "hello"})
        assert isinstance(part, TextPart)
        assert part.text == "hello"

    def test_function_call(self) -> None:
        part = parse_part({"functionCall": {"name": "search", "args": {"q": "x"}}})
        assert isinstance(part, FunctionCallPart)
        assert part.function_call.name == "search"
        assert part.function_call.args == {"q": "x"}

    def test_function_response_keeps_string_fields_only(self) -> None:
        part = parse_part(
            {"functionResponse": {"id": "c1", "name": "f", "response": {"output": "ok", "error": 7}}}
        )
        assert isinstance(part, FunctionResponsePart)
        assert part.function_response.response.output == "ok"
        assert part.function_response.response.error is None

    def test_inline_data(self) -> None:
        part = parse_part({"inlineData": {"mimeType": "application/pdf", "data": "AAAA"}})
        assert isinstance(part, InlineDataPart)
        assert part.inline_data.mime_type == "application/pdf"
        assert not part.inline_data.is_image

    def test_unknown_becomes_opaque(self) -> None:
        part = parse_part({"executableCode": {"code": "print(1)"}})
        assert isinstance(part, OpaquePart)
        assert part.raw == {"executableCode": {"code": "print(1)"}}
        assert part.model_dump(by_alias=True) == {"executableCode": {"code": "print(1)"}}

    def test_function_call_null_args(self) -> None:
        part = parse_part({"functionCall": {"name": "ping", "args": None}})
        assert isinstance(part, FunctionCallPart)
        assert part.function_call.args == {}

    def test_model_instance_passthrough(self) -> None:
        original = TextPart(text="same")
        assert parse_part(original) is original

    def test_wire_dump(self) -> None:
        part = parse_part({"functionCall": {"name": "f", "args": {}}})
        assert part.model_dump(by_alias=True) == {"functionCall": {"name": "f", "args": {}}}
