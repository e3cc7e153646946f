"""
Document Text Extractor
Extracts plain text from PDF and PPTX uploads for MCQ generation

CONSTRAINTS:
- Deterministic: Same bytes → same text
- Isolated: No external API calls, no LLM, no DB writes
- Lenient: A broken container yields "" and the caller decides what to do
"""

import base64
import binascii
import io
import logging
import re
import zipfile
import zlib
from typing import Callable, Optional

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from services.exceptions import InvalidRequestError, UnsupportedFileTypeError

# Suppress verbose PDF parsing warnings (malformed xref, font widths)
logging.getLogger("pypdf").setLevel(logging.ERROR)

log = logging.getLogger(__name__)

# Below this many characters the document is rejected as "insufficient content"
MIN_EXTRACTED_CHARS = 50

_WHITESPACE_RE = re.compile(r"\s+")
_DATA_URL_PREFIX_RE = re.compile(r"^data:.*;base64,")
_SLIDE_PATH_RE = re.compile(r"^ppt/slides/slide(\d+)\.xml$", re.IGNORECASE)
# <a:t> or <a:t xml:space="preserve">, but not <a:tab/>, <a:tbl>, <a:tc>
_TEXT_RUN_RE = re.compile(r"<a:t(?:\s[^>]*)?>(.*?)</a:t>", re.DOTALL)

# Decoded in this order: "&amp;lt;" ends up as "<"
_XML_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&apos;", "'"),
    ("&#39;", "'"),
)


# ─── Helpers ───────────────────────────────────────────────────────────────────

def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to one space and trim."""
    return _WHITESPACE_RE.sub(" ", str(text)).strip()


def decode_xml_entities(text: str) -> str:
    for entity, char in _XML_ENTITIES:
        text = text.replace(entity, char)
    return text


def decode_base64_payload(file_base64: str) -> bytes:
    """
    Decode an upload sent as base64, with or without a data URL prefix
    (e.g. "data:application/pdf;base64,JVBERi0...").

    Raises:
        InvalidRequestError: If the payload is not valid base64
    """
    cleaned = _DATA_URL_PREFIX_RE.sub("", file_base64.strip(), count=1)
    try:
        return base64.b64decode(cleaned)
    except (binascii.Error, ValueError):
        raise InvalidRequestError("fileBase64 is not valid base64.")


# ─── PDF ───────────────────────────────────────────────────────────────────────

def extract_text_from_pdf(data: bytes) -> str:
    """Concatenate the text layer of every page, in page order."""
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError, KeyError, TypeError) as e:
        log.warning("PDF text layer could not be read: %s", e)
        return ""
    return normalize_whitespace("\n".join(pages))


# ─── PPTX ──────────────────────────────────────────────────────────────────────

def _slide_number(path: str) -> int:
    match = _SLIDE_PATH_RE.match(path)
    return int(match.group(1)) if match else 0


def extract_text_from_pptx(data: bytes) -> str:
    """
    Read slide text straight out of the PPTX zip.

    Each slide lives at ppt/slides/slide<N>.xml; slides are visited in
    numeric order (slide2 before slide10) and the text of every <a:t> run
    is collected.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            slide_paths = sorted(
                (name for name in archive.namelist() if _SLIDE_PATH_RE.match(name)),
                key=_slide_number,
            )
            texts = []
            for path in slide_paths:
                xml = archive.read(path).decode("utf-8", errors="replace")
                for raw_run in _TEXT_RUN_RE.findall(xml):
                    cleaned = normalize_whitespace(decode_xml_entities(raw_run))
                    if cleaned:
                        texts.append(cleaned)
                texts.append("\n")
    except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
        # NotImplementedError: unsupported compression method, RuntimeError: encrypted entry
        log.warning("PPTX archive could not be read: %s", e)
        return ""

    log.debug("PPTX slides read: %s", len(slide_paths))
    return normalize_whitespace(" ".join(texts))


# ─── Dispatch ──────────────────────────────────────────────────────────────────

def get_extractor(file_name: str, mime_type: Optional[str]) -> Optional[Callable[[bytes], str]]:
    """
    Pick the extraction strategy for an upload.

    PPTX (by extension or MIME type) is checked before PDF.
    Returns None for anything else.
    """
    extension = (file_name or "").lower().rsplit(".", 1)[-1]
    mime = (mime_type or "").lower()

    if extension == "pptx" or "presentation" in mime:
        return extract_text_from_pptx
    if extension == "pdf" or "pdf" in mime:
        return extract_text_from_pdf
    return None


def extract_text(data: bytes, file_name: str, mime_type: Optional[str] = None) -> str:
    """
    Extract normalized plain text from an uploaded document.

    Raises:
        UnsupportedFileTypeError: If neither the name nor the MIME type is PDF/PPTX
    """
    extractor = get_extractor(file_name, mime_type)
    if extractor is None:
        raise UnsupportedFileTypeError()

    log.info("Extract: start file=%s bytes=%s strategy=%s", file_name, len(data), extractor.__name__)
    text = extractor(data)
    log.info("Extract: done file=%s chars=%s", file_name, len(text))
    return text
