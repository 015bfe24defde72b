"""Recovery of structured answers from free-form model output."""

from termichat.core.polyfills.json_extractor import extract_answer, extract_json, try_extract_json

__all__ = [
    "extract_answer",
    "extract_json",
    "try_extract_json",
]
