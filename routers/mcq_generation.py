"""
MCQ Generation router.
Employers upload a PDF/PPTX (base64 in JSON) and get back a candidate
question bank to review. Nothing is persisted here; the reviewed bank is
saved through the snapshot router.
"""

import asyncio
import logging
import os

from fastapi import APIRouter, HTTPException, status

from database.schemas import GenerateMcqsRequest
from generation import gpt_client
from generation.mcq_generator import generate_mcqs
from ingestion import MIN_EXTRACTED_CHARS, decode_base64_payload, extract_text, get_extractor
from services.exceptions import (
    GenerationNotConfiguredError,
    InsufficientContentError,
    InvalidRequestError,
    NoUsableQuestionsError,
    SkillTestError,
    UnsupportedFileTypeError,
)

router = APIRouter(tags=["mcq-generation"])

log = logging.getLogger(__name__)

# Configuration
MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", 20971520))  # 20MB default


@router.post("/generate-mcqs")
async def generate_mcqs_from_document(request: GenerateMcqsRequest):
    """
    Extract text from the uploaded document and generate up to `count` MCQs.

    Errors:
      - 400: missing fields, unsupported type, bad base64, oversized file, too little text
      - 500: OpenAI not configured, upstream failure
      - 502: the model answered but no question survived validation
    """
    try:
        if not gpt_client.is_configured():
            raise GenerationNotConfiguredError()
        if get_extractor(request.file_name, request.mime_type) is None:
            raise UnsupportedFileTypeError()

        data = decode_base64_payload(request.file_base64)
        if len(data) > MAX_UPLOAD_SIZE:
            raise InvalidRequestError(f"File too large. Maximum size: {MAX_UPLOAD_SIZE // (1024 * 1024)}MB")

        source_text = await asyncio.to_thread(extract_text, data, request.file_name, request.mime_type)
        if len(source_text) < MIN_EXTRACTED_CHARS:
            raise InsufficientContentError()

        questions = await generate_mcqs(
            test_name=request.test_name,
            description=request.description,
            role=request.role,
            source_text=source_text,
            count=request.count,
        )
        if not questions:
            raise NoUsableQuestionsError()

    except SkillTestError as e:
        if e.status_code >= 500:
            log.error(f"[GENERATE] {type(e).__name__}: {e.message}")
        else:
            log.info(f"[GENERATE] rejected ({e.status_code}): {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        log.exception("[GENERATE] Unexpected error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error.",
        )

    log.info(f"[GENERATE] OK test={request.test_name!r} questions={len(questions)} chars={len(source_text)}")
    return {"questions": questions, "extractedTextChars": len(source_text)}
