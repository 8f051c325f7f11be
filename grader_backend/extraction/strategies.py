"""
Text extraction strategies

One strategy is active per deployment, selected by OCR_STRATEGY:

    pdf_text       PDF text layer via PyPDF2 (typed PDFs only)
    vision_rest    Vision REST API with an API key, PDFs sent inline
    vision_client  Vision client library, images only
    pdf_convert    PDF pages converted to PNG, then one Vision call per page
"""
from typing import Tuple

from grader_backend.extraction.pdf_conversion import PdfToImageConverter
from grader_backend.extraction.pdf_extraction import PDFExtractor
from grader_backend.extraction.vision_ocr import VisionClientOCR, VisionRestOCR
from grader_backend.models.upload import UploadedFile
from grader_backend.utils.config import Settings
from grader_backend.utils.errors import ExtractionError, InvalidUploadError
from grader_backend.utils.logger import logger

FAILED_PAGE_PLACEHOLDER = "[Page {page}: text could not be extracted]"


class TextExtractor:
    """Base class: turns an uploaded file into one text blob"""

    name = "base"
    supported_kinds: Tuple[str, ...] = ()

    def extract_text(self, upload: UploadedFile) -> str:
        if upload.kind not in self.supported_kinds:
            allowed = " or ".join(k.upper() for k in self.supported_kinds)
            raise InvalidUploadError(
                f"The '{self.name}' OCR strategy cannot read {upload.kind} files. Please upload a {allowed} file."
            )
        logger.info(f"[OCR] Strategy '{self.name}' on {upload.filename} ({upload.kind})")
        return self._extract(upload)

    def _extract(self, upload: UploadedFile) -> str:
        raise NotImplementedError


class PdfTextExtractor(TextExtractor):
    name = "pdf_text"
    supported_kinds = ("pdf",)

    def _extract(self, upload):
        return PDFExtractor.extract_text(upload.data)


class VisionRestExtractor(TextExtractor):
    name = "vision_rest"
    supported_kinds = ("pdf", "image")

    def __init__(self, ocr: VisionRestOCR):
        self.ocr = ocr

    def _extract(self, upload):
        if upload.kind == "pdf":
            return self.ocr.annotate_pdf(upload.data)
        return self.ocr.annotate_image(upload.data)


class VisionClientExtractor(TextExtractor):
    name = "vision_client"
    supported_kinds = ("image",)

    def __init__(self, ocr: VisionClientOCR):
        self.ocr = ocr

    def _extract(self, upload):
        return self.ocr.detect_text(upload.data)


class PdfConvertExtractor(TextExtractor):
    name = "pdf_convert"
    supported_kinds = ("pdf", "image")

    def __init__(self, converter: PdfToImageConverter, ocr: VisionClientOCR):
        self.converter = converter
        self.ocr = ocr

    def _extract(self, upload):
        if upload.kind == "image":
            return self.ocr.detect_text(upload.data)

        images = self.converter.convert(upload.data, upload.filename)
        page_texts = []
        failed_pages = 0
        # one OCR call per page, in page order
        for page_num, image in enumerate(images, 1):
            logger.info(f"[OCR] Page {page_num}/{len(images)}")
            try:
                text = self.ocr.detect_text(image)
            except ExtractionError as e:
                logger.warning(f"[WARN] OCR failed for page {page_num}: {e}")
                failed_pages += 1
                text = FAILED_PAGE_PLACEHOLDER.format(page=page_num)
            page_texts.append(text)

        if failed_pages == len(images):
            logger.error(f"[ERROR] OCR failed on all {failed_pages} pages")
            raise ExtractionError()
        return "\n\n".join(page_texts)


def build_extractor(settings: Settings) -> TextExtractor:
    """Instantiate the strategy named by settings.ocr_strategy"""
    settings.validate()
    strategy = settings.ocr_strategy

    if strategy == "pdf_text":
        return PdfTextExtractor()
    if strategy == "vision_rest":
        return VisionRestExtractor(
            VisionRestOCR(settings.google_vision_api_key, timeout=settings.http_timeout_seconds)
        )
    if strategy == "vision_client":
        return VisionClientExtractor(VisionClientOCR())
    return PdfConvertExtractor(
        PdfToImageConverter(settings.convertapi_secret, timeout=settings.http_timeout_seconds),
        VisionClientOCR(),
    )
