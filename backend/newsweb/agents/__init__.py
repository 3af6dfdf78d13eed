"""Agents package - generation service backed by Gemini."""

from newsweb.agents.gemini_service import (
    GeminiService,
    GenerationError,
    GenerationErrorKind,
    GenerationService,
    extract_json_payload,
    parse_rewrite_response,
)

__all__ = [
    "GeminiService",
    "GenerationError",
    "GenerationErrorKind",
    "GenerationService",
    "extract_json_payload",
    "parse_rewrite_response",
]
