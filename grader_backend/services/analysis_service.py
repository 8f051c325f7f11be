"""
Assignment analysis service - extract text, grade it, parse the reply
"""
from dataclasses import dataclass

from grader_backend.extraction.strategies import TextExtractor
from grader_backend.models.upload import UploadedFile
from grader_backend.routes.gemini_client import GeminiGrader
from grader_backend.services.response_parser import fallback_analysis, parse_analysis
from grader_backend.utils.config import Settings
from grader_backend.utils.errors import AnalysisParseError, EmptyTextError
from grader_backend.utils.logger import logger

SOURCE_MODEL = "model"
SOURCE_FALLBACK = "fallback"


@dataclass
class AnalysisOutcome:
    analysis: dict
    source: str  # SOURCE_MODEL or SOURCE_FALLBACK

    @property
    def is_fallback(self) -> bool:
        return self.source == SOURCE_FALLBACK


def run_analysis(upload: UploadedFile, extractor: TextExtractor, grader: GeminiGrader,
                 settings: Settings) -> AnalysisOutcome:
    """
    Run the full chain for one upload

    Args:
        upload: The uploaded file
        extractor: Active text extraction strategy
        grader: Gemini grading client
        settings: Runtime settings (fallback policy)

    Returns:
        AnalysisOutcome with the analysis dict and where it came from

    Raises:
        EmptyTextError: extraction produced no text
        AnalysisParseError: unreadable reply and fallback disabled
    """
    logger.info("🔍 Stage 1: Text extraction")
    extracted_text = extractor.extract_text(upload)

    if not extracted_text or not extracted_text.strip():
        logger.warning(f"[WARN] No text extracted from {upload.filename}")
        raise EmptyTextError()
    logger.info(f"[OK] Extracted {len(extracted_text)} characters")

    logger.info("🔬 Stage 2: Grading")
    reply = grader.grade(extracted_text)

    try:
        analysis = parse_analysis(reply)
    except AnalysisParseError as e:
        logger.error(f"[ERROR] JSON parsing error: {e.reason}")
        logger.error(f"Raw response: {e.raw_response}")
        if not settings.fallback_on_parse_error:
            raise
        logger.warning("[WARN] Substituting fallback analysis")
        return AnalysisOutcome(analysis=fallback_analysis(), source=SOURCE_FALLBACK)

    logger.info(f"✅ Analysis complete: score {analysis.get('overallScore')}")
    return AnalysisOutcome(analysis=analysis, source=SOURCE_MODEL)
