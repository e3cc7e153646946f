"""
Document ingestion for skill test generation.

Turns an uploaded PDF or PPTX into a single normalized text string that
the question generator can prompt with.
"""

from .extractor import (
    MIN_EXTRACTED_CHARS,
    decode_base64_payload,
    extract_text,
    get_extractor,
    normalize_whitespace,
)

__all__ = [
    "MIN_EXTRACTED_CHARS",
    "decode_base64_payload",
    "extract_text",
    "get_extractor",
    "normalize_whitespace",
]
