"""
Assignment upload and analysis endpoint
"""
import os
from functools import partial
from typing import Callable, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from grader_backend.extraction.strategies import TextExtractor, build_extractor
from grader_backend.models.analysis import AnalysisResult, ErrorResponse
from grader_backend.models.upload import UploadedFile
from grader_backend.routes.gemini_client import GeminiGrader
from grader_backend.services.analysis_service import run_analysis
from grader_backend.utils.config import Settings, get_settings
from grader_backend.utils.errors import GraderError, GradingServiceError, InvalidUploadError
from grader_backend.utils.logger import logger

router = APIRouter()

PDF_TYPES = {"application/pdf": "pdf"}
IMAGE_TYPES = {
    "image/png": "image",
    "image/jpeg": "image",
    "image/jpg": "image",
    "image/webp": "image",
    "image/gif": "image",
    "image/bmp": "image",
    "image/tiff": "image",
}
ACCEPTED_TYPES = {**PDF_TYPES, **IMAGE_TYPES}

EXTENSION_TYPES = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
}
GENERIC_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


def resolve_content_type(filename: str, content_type: Optional[str]) -> str:
    """Declared content type, or a guess from the extension when it is generic"""
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared in GENERIC_TYPES:
        ext = os.path.splitext(filename or "")[1].lower()
        return EXTENSION_TYPES.get(ext, declared)
    return declared


def read_upload(file: Optional[UploadFile], settings: Settings) -> UploadedFile:
    """Validate the multipart file and load it into memory"""
    if file is None or not file.filename:
        raise InvalidUploadError("No file provided")

    content_type = resolve_content_type(file.filename, file.content_type)
    kind = ACCEPTED_TYPES.get(content_type)
    if kind is None:
        raise InvalidUploadError("Unsupported file type. Please upload a PDF or an image (PNG, JPEG, WebP, GIF, BMP, TIFF).")

    data = file.file.read()
    if not data:
        raise InvalidUploadError("The uploaded file is empty")
    if len(data) > settings.max_upload_bytes:
        raise InvalidUploadError(f"File is too large. Maximum size is {settings.max_upload_mb:g} MB.")

    return UploadedFile(filename=file.filename, content_type=content_type, kind=kind, data=data)


def get_extractor_factory(settings: Settings = Depends(get_settings)) -> Callable[[], TextExtractor]:
    """Deferred so the upload is validated before OCR_STRATEGY is"""
    return partial(build_extractor, settings)


def get_grader(settings: Settings = Depends(get_settings)) -> GeminiGrader:
    return GeminiGrader(settings)


@router.post(
    "/api/analyze-assignment",
    response_model=AnalysisResult,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def analyze_assignment(
    file: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    extractor_factory: Callable[[], TextExtractor] = Depends(get_extractor_factory),
    grader: GeminiGrader = Depends(get_grader),
):
    """
    Upload a handwritten assignment (PDF or image) and grade it

    Returns:
        AnalysisResult JSON. The X-Analysis-Source header is "model" for a
        real result and "fallback" when the canned analysis was substituted.
    """
    upload = read_upload(file, settings)
    logger.info(f"📄 Received {upload.filename} ({upload.content_type}, {upload.size} bytes)")
    extractor = extractor_factory()

    try:
        outcome = run_analysis(upload, extractor, grader, settings)
    except GraderError:
        raise
    except Exception as e:
        logger.exception(f"❌ Analysis error: {e}")
        raise GradingServiceError() from e

    return JSONResponse(
        content=outcome.analysis,
        headers={"X-Analysis-Source": outcome.source},
    )
