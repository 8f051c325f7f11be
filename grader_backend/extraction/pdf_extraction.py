"""
PDF text-layer extraction module
"""
import io

import PyPDF2

from grader_backend.utils.errors import ExtractionError
from grader_backend.utils.logger import logger


class PDFExtractor:
    """Extract embedded text from PDF bytes"""

    @staticmethod
    def page_count(data: bytes) -> int:
        return len(PyPDF2.PdfReader(io.BytesIO(data)).pages)

    @staticmethod
    def extract_text(data: bytes) -> str:
        """
        Extract text from a PDF held in memory

        Args:
            data: Raw PDF bytes

        Returns:
            Page texts joined by blank lines, in page order
        """
        try:
            pdf_reader = PyPDF2.PdfReader(io.BytesIO(data))
            total_pages = len(pdf_reader.pages)
            logger.info(f"[OCR] PDF text layer: {total_pages} pages")

            page_texts = []
            for page_num, page in enumerate(pdf_reader.pages, 1):
                logger.debug(f"[OCR] Processing page {page_num}/{total_pages}")
                page_texts.append(page.extract_text() or "")
        except Exception as e:
            logger.error(f"[ERROR] PDF parsing error: {e}")
            raise ExtractionError() from e

        text = "\n\n".join(page_texts).strip()
        logger.info(f"[OCR] Extracted {len(text)} characters")
        return text
