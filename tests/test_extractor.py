"""
Tests for the Document Text Extractor
======================================
Dispatch, whitespace normalization, PPTX slide traversal and PDF text layer.
"""

from __future__ import annotations

import base64
import random

import pytest

from conftest import make_pdf, make_pptx, patch_zip_entry, slide_xml
from ingestion.extractor import (
    decode_base64_payload,
    decode_xml_entities,
    extract_text,
    extract_text_from_pdf,
    extract_text_from_pptx,
    get_extractor,
    normalize_whitespace,
)
from services.exceptions import InvalidRequestError, UnsupportedFileTypeError


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════


class TestNormalizeWhitespace:

    def test_collapses_runs_and_trims(self):
        assert normalize_whitespace("  Hello \n\n\t World  ") == "Hello World"

    def test_empty(self):
        assert normalize_whitespace("   \n ") == ""

    @pytest.mark.parametrize("text", [
        "plain",
        "  lead and trail  ",
        "a\r\nb\tc d",
        "\n\n\n",
        "Hello \n World \n",
    ])
    def test_idempotent(self, text):
        once = normalize_whitespace(text)
        assert normalize_whitespace(once) == once


class TestXmlEntities:

    def test_standard_entities(self):
        raw = "Tom &amp; Jerry &lt;b&gt; &quot;hi&quot; it&apos;s don&#39;t"
        assert decode_xml_entities(raw) == 'Tom & Jerry <b> "hi" it\'s don\'t'


class TestBase64Payload:

    def test_plain_base64(self):
        assert decode_base64_payload(base64.b64encode(b"abc").decode()) == b"abc"

    def test_data_url_prefix_is_stripped(self):
        payload = "data:application/pdf;base64," + base64.b64encode(b"%PDF-1.4").decode()
        assert decode_base64_payload(payload) == b"%PDF-1.4"

    def test_invalid_payload(self):
        with pytest.raises(InvalidRequestError):
            decode_base64_payload("abc")


# ═══════════════════════════════════════════════════════════════════════════════
# DISPATCH
# ═══════════════════════════════════════════════════════════════════════════════


class TestGetExtractor:

    @pytest.mark.parametrize("file_name,mime,expected", [
        ("deck.pptx", "", extract_text_from_pptx),
        ("DECK.PPTX", None, extract_text_from_pptx),
        ("upload", "application/vnd.openxmlformats-officedocument.presentationml.presentation",
         extract_text_from_pptx),
        ("guide.pdf", "", extract_text_from_pdf),
        ("upload.bin", "application/pdf", extract_text_from_pdf),
        # PPTX wins when both match
        ("guide.pdf", "application/vnd.ms-powerpoint.presentation", extract_text_from_pptx),
    ])
    def test_routes_supported_types(self, file_name, mime, expected):
        assert get_extractor(file_name, mime) is expected

    @pytest.mark.parametrize("file_name,mime", [
        ("notes.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ("image.png", "image/png"),
        ("", None),
    ])
    def test_unsupported_types(self, file_name, mime):
        assert get_extractor(file_name, mime) is None

    def test_extract_text_rejects_unsupported(self):
        with pytest.raises(UnsupportedFileTypeError):
            extract_text(b"whatever", "notes.txt", "text/plain")


# ═══════════════════════════════════════════════════════════════════════════════
# PPTX
# ═══════════════════════════════════════════════════════════════════════════════


class TestPptxExtraction:

    def test_two_slides_in_order(self):
        data = make_pptx({
            "ppt/slides/slide1.xml": slide_xml("Hello"),
            "ppt/slides/slide2.xml": slide_xml("World"),
        })
        encoded = "data:application/vnd.openxmlformats-officedocument.presentationml.presentation;base64," \
            + base64.b64encode(data).decode()

        text = extract_text(decode_base64_payload(encoded), "intro.pptx")

        assert "Hello" in text and "World" in text
        assert text.index("Hello") < text.index("World")

    def test_numeric_slide_order(self):
        entries = {f"ppt/slides/slide{n}.xml": slide_xml(f"Marker{n:02d}") for n in range(1, 13)}
        shuffled = list(entries.items())
        random.Random(7).shuffle(shuffled)

        text = extract_text_from_pptx(make_pptx(dict(shuffled)))

        positions = [text.index(f"Marker{n:02d}") for n in range(1, 13)]
        assert positions == sorted(positions)
        assert text.index("Marker02") < text.index("Marker10")

    def test_entities_and_run_whitespace(self):
        xml = slide_xml("  Tom &amp; Jerry  ", "Line\n  two") \
            .replace("<a:t>", '<a:t xml:space="preserve">', 1)
        text = extract_text_from_pptx(make_pptx({"ppt/slides/slide1.xml": xml}))
        assert text == "Tom & Jerry Line two"

    def test_ignores_non_text_elements_and_other_parts(self):
        xml = slide_xml("Visible").replace(
            "</p:txBody>", "<a:p><a:r><a:tab/></a:r></a:p><a:tbl></a:tbl></p:txBody>"
        )
        data = make_pptx({
            "ppt/slides/slide1.xml": xml,
            "ppt/slideLayouts/slideLayout1.xml": slide_xml("Layout text"),
            "ppt/notesSlides/notesSlide1.xml": slide_xml("Speaker notes"),
            "ppt/slides/_rels/slide1.xml.rels": "<Relationships/>",
        })
        assert extract_text_from_pptx(data) == "Visible"

    def test_case_insensitive_slide_paths(self):
        data = make_pptx({"PPT/Slides/Slide1.XML": slide_xml("Upper")})
        assert extract_text_from_pptx(data) == "Upper"

    def test_malformed_zip_yields_empty_text(self):
        assert extract_text_from_pptx(b"this is not a zip archive") == ""

    @pytest.mark.parametrize("field_offset,value", [
        (10, 99),   # compression method zipfile cannot decode
        (8, 0x1),   # general purpose flags: entry is encrypted
    ])
    def test_unreadable_slide_entry_yields_empty_text(self, field_offset, value):
        data = make_pptx({"ppt/slides/slide1.xml": slide_xml("Readable text that never gets decoded")})
        patched = patch_zip_entry(data, "ppt/slides/slide1.xml", field_offset, value)
        assert extract_text_from_pptx(patched) == ""

    def test_archive_without_slides_yields_empty_text(self):
        assert extract_text_from_pptx(make_pptx({"docProps/app.xml": "<Properties/>"})) == ""


# ═══════════════════════════════════════════════════════════════════════════════
# PDF
# ═══════════════════════════════════════════════════════════════════════════════


class TestPdfExtraction:

    def test_pages_in_order(self):
        text = extract_text(make_pdf(["Hello", "World"]), "guide.pdf", "application/pdf")
        assert "Hello" in text and "World" in text
        assert text.index("Hello") < text.index("World")
        assert "\n" not in text

    def test_corrupt_pdf_yields_empty_text(self):
        assert extract_text_from_pdf(b"%PDF-1.4 garbage") == ""
