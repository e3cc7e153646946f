"""
Shared fixtures: in-memory SQLite sessions, an API client with the
lifespan running, and builders for PPTX/PDF uploads and question banks.
"""

from __future__ import annotations

import io
import zipfile

import pytest
from fastapi.testclient import TestClient

from database.database import create_db_engine, create_session_factory, init_db
from generation import gpt_client


# ═══════════════════════════════════════════════════════════════════════════════
# BUILDERS
# ═══════════════════════════════════════════════════════════════════════════════


def slide_xml(*runs: str) -> str:
    body = "".join(f"<a:p><a:r><a:t>{run}</a:t></a:r></a:p>" for run in runs)
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<p:sld xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
        'xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main">'
        f"<p:cSld><p:spTree><p:sp><p:txBody>{body}</p:txBody></p:sp></p:spTree></p:cSld>"
        "</p:sld>"
    )


def make_pptx(entries: dict[str, str]) -> bytes:
    """Zip archive with the given path → XML entries, written in dict order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        for path, xml in entries.items():
            archive.writestr(path, xml)
    return buffer.getvalue()


def patch_zip_entry(data: bytes, name: str, field_offset: int, value: int) -> bytes:
    """Overwrite a 2-byte field of `name`'s central directory header (8 = flags, 10 = method)."""
    patched = bytearray(data)
    pos = patched.find(b"PK\x01\x02")
    while pos != -1:
        name_len = int.from_bytes(patched[pos + 28:pos + 30], "little")
        if patched[pos + 46:pos + 46 + name_len] == name.encode():
            patched[pos + field_offset:pos + field_offset + 2] = value.to_bytes(2, "little")
            return bytes(patched)
        pos = patched.find(b"PK\x01\x02", pos + 4)
    raise AssertionError(f"{name} not in archive")


def make_pdf(pages: list[str]) -> bytes:
    """Minimal PDF with one line of Helvetica text per page."""
    page_count = len(pages)
    font_num = 3 + 2 * page_count
    kids = " ".join(f"{3 + 2 * i} 0 R" for i in range(page_count))

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {page_count} >>".encode(),
    ]
    for i, text in enumerate(pages):
        page_num, content_num = 3 + 2 * i, 4 + 2 * i
        stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode()
        objects.append(
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 {font_num} 0 R >> >> "
            f"/Contents {content_num} 0 R >>".encode()
        )
        objects.append(
            b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream"
        )
    objects.append(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>")

    out = io.BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(out.tell())
        out.write(f"{num} 0 obj\n".encode() + body + b"\nendobj\n")
    xref_at = out.tell()
    out.write(f"xref\n0 {len(objects) + 1}\n".encode())
    out.write(b"0000000000 65535 f \n")
    for offset in offsets:
        out.write(f"{offset:010d} 00000 n \n".encode())
    out.write(
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    )
    return out.getvalue()


def make_question(n: int, correct: int = 0) -> dict:
    return {
        "id": f"q{n}",
        "question": f"Question {n}?",
        "options": [f"q{n}-opt{i}" for i in range(4)],
        "correctAnswer": correct,
    }


def make_bank(size: int) -> list[dict]:
    return [make_question(n, correct=n % 4) for n in range(1, size + 1)]


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def db_session():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    session = create_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture(autouse=True)
def reset_openai_client():
    gpt_client._client = None
    yield
    gpt_client._client = None


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    from skilltest_api import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def client_without_services(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    from skilltest_api import app

    with TestClient(app) as test_client:
        yield test_client
