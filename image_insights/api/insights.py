"""
Purpose:
- The relay: one multipart POST in, one model call out, model text back as JSON.
- Variant A: image + language + length. Variant B: image + question.

Notes:
- Every field is parsed inside the handler so that any failure (bad upload, bad enum,
  model error) ends in the same opaque 500 body. Details only go to the server log.
"""

import logging
from io import BytesIO
from typing import Optional

from fastapi import APIRouter, UploadFile, File, Form
from fastapi.responses import JSONResponse
from PIL import Image

from ..core.options import DescriptionLength, Language
from ..core.settings import settings
from ..vlm.prompts import build_insights_messages, build_question_messages
from ..vlm.workers_ai import CacheDirective, get_model_client
from .schema import ErrorResponse, InsightsResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["insights"])

FAILURE_MESSAGE = "Failed to generate insights"

def _check_image(raw: bytes) -> None:
    if not raw:
        raise ValueError("empty image upload")
    # verify() reads the header/structure without decoding pixels
    with Image.open(BytesIO(raw)) as img:
        img.verify()

def _build_request(language: Optional[str], length: Optional[str], question: Optional[str]):
    """Return (messages, max_tokens) for whichever variant the form describes."""
    if question is not None and question.strip():
        return build_question_messages(question), settings.question_max_tokens
    lang = Language(language)
    size = DescriptionLength(length)
    return build_insights_messages(lang, size), settings.insights_max_tokens

@router.post(
    "/generate_insights",
    response_model=InsightsResponse,
    responses={500: {"model": ErrorResponse}},
)
async def generate_insights(
    image: Optional[UploadFile] = File(default=None),
    language: Optional[str] = Form(default=None),
    length: Optional[str] = Form(default=None),
    question: Optional[str] = Form(default=None),
):
    try:
        if image is None:
            raise ValueError("missing image part")
        raw = await image.read()
        _check_image(raw)

        messages, max_tokens = _build_request(language, length, question)
        text = await get_model_client().run(
            messages,
            raw,
            temperature=settings.vlm_temperature,
            max_tokens=max_tokens,
            cache=CacheDirective(skip_cache=settings.cache_skip, ttl_seconds=settings.cache_ttl_seconds),
        )
        logger.info("Generated insights for %s (%d chars)", image.filename, len(text))
        return InsightsResponse(insights=text)
    except Exception:
        logger.exception("Error generating insights")
        return JSONResponse(status_code=500, content=ErrorResponse(error=FAILURE_MESSAGE).model_dump())
