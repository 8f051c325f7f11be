import base64
from types import SimpleNamespace

import pytest
import requests
from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions

from grader_backend.extraction import pdf_extraction
from grader_backend.extraction.pdf_conversion import PdfToImageConverter
from grader_backend.extraction.pdf_extraction import PDFExtractor
from grader_backend.extraction.strategies import (
    FAILED_PAGE_PLACEHOLDER,
    PdfConvertExtractor,
    PdfTextExtractor,
    VisionClientExtractor,
    VisionRestExtractor,
    build_extractor,
)
from grader_backend.extraction.vision_ocr import VisionClientOCR, VisionRestOCR
from grader_backend.models.upload import UploadedFile
from grader_backend.utils.config import Settings
from grader_backend.utils.errors import ConfigurationError, ExtractionError, InvalidUploadError

from conftest import make_blank_pdf


def pdf_upload(data=b"%PDF-1.4"):
    return UploadedFile(filename="hw.pdf", content_type="application/pdf", kind="pdf", data=data)


def image_upload(data=b"\x89PNG"):
    return UploadedFile(filename="hw.png", content_type="image/png", kind="image", data=data)


class FakeConverter:
    def __init__(self, pages):
        self.pages = pages
        self.calls = 0

    def convert(self, data, filename="assignment.pdf"):
        self.calls += 1
        return self.pages


class FakeVisionOCR:
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []

    def detect_text(self, content):
        self.calls.append(content)
        if content in self.fail_on:
            raise ExtractionError()
        return "text of " + content.decode()


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.responses.pop(0)


# pdf_convert

def test_multi_page_pdf_gets_one_ocr_call_per_page_in_order():
    ocr = FakeVisionOCR()
    extractor = PdfConvertExtractor(FakeConverter([b"p1", b"p2", b"p3"]), ocr)

    text = extractor.extract_text(pdf_upload())

    assert ocr.calls == [b"p1", b"p2", b"p3"]
    assert text == "text of p1\n\ntext of p2\n\ntext of p3"


def test_failed_page_gets_inline_placeholder():
    ocr = FakeVisionOCR(fail_on={b"p2"})
    extractor = PdfConvertExtractor(FakeConverter([b"p1", b"p2", b"p3"]), ocr)

    text = extractor.extract_text(pdf_upload())

    assert len(ocr.calls) == 3
    assert text.split("\n\n") == ["text of p1", FAILED_PAGE_PLACEHOLDER.format(page=2), "text of p3"]


def test_all_pages_failing_is_an_extraction_error():
    ocr = FakeVisionOCR(fail_on={b"p1", b"p2"})
    extractor = PdfConvertExtractor(FakeConverter([b"p1", b"p2"]), ocr)

    with pytest.raises(ExtractionError):
        extractor.extract_text(pdf_upload())


def test_pdf_convert_sends_images_straight_to_ocr():
    converter = FakeConverter([])
    ocr = FakeVisionOCR()
    extractor = PdfConvertExtractor(converter, ocr)

    assert extractor.extract_text(image_upload(b"img")) == "text of img"
    assert converter.calls == 0


# kind checks

def test_vision_client_strategy_rejects_pdf():
    extractor = VisionClientExtractor(FakeVisionOCR())

    with pytest.raises(InvalidUploadError):
        extractor.extract_text(pdf_upload())


def test_pdf_text_strategy_rejects_images():
    with pytest.raises(InvalidUploadError):
        PdfTextExtractor().extract_text(image_upload())


# pdf_text

def test_pdf_text_joins_pages_in_order(monkeypatch):
    pages = [SimpleNamespace(extract_text=lambda t=t: t) for t in ["Q1 answer", None, "Q2 answer"]]
    monkeypatch.setattr(pdf_extraction.PyPDF2, "PdfReader", lambda stream: SimpleNamespace(pages=pages))

    assert PDFExtractor.extract_text(b"%PDF") == "Q1 answer\n\n\n\nQ2 answer"


def test_pdf_text_blank_pdf_gives_empty_text():
    assert PDFExtractor.extract_text(make_blank_pdf(pages=3)) == ""
    assert PDFExtractor.page_count(make_blank_pdf(pages=3)) == 3


def test_pdf_text_corrupt_pdf_is_an_extraction_error():
    with pytest.raises(ExtractionError):
        PDFExtractor.extract_text(b"this is not a pdf")


# vision_rest

def test_vision_rest_image_uses_full_text_annotation():
    session = FakeSession(FakeResponse({"responses": [{"fullTextAnnotation": {"text": "x = 2"}}]}))
    ocr = VisionRestOCR("key-123", timeout=5, session=session)

    assert ocr.annotate_image(b"img") == "x = 2"
    sent = session.requests[0]
    assert sent["url"].endswith("images:annotate?key=key-123")
    assert sent["timeout"] == 5
    assert sent["json"]["requests"][0]["image"]["content"] == base64.b64encode(b"img").decode()


def test_vision_rest_image_falls_back_to_text_annotations():
    session = FakeSession(FakeResponse({"responses": [{"textAnnotations": [{"description": "hello"}]}]}))

    assert VisionRestOCR("k", session=session).annotate_image(b"img") == "hello"


def test_vision_rest_pdf_requests_pages_in_batches_of_five():
    first = {"responses": [{
        "totalPages": 7,
        "responses": [{"fullTextAnnotation": {"text": f"page {n}"}} for n in range(1, 6)],
    }]}
    second = {"responses": [{
        "totalPages": 7,
        "responses": [{"fullTextAnnotation": {"text": f"page {n}"}} for n in (6, 7)],
    }]}
    session = FakeSession(FakeResponse(first), FakeResponse(second))

    text = VisionRestOCR("k", session=session).annotate_pdf(b"%PDF")

    assert text.split("\n\n") == [f"page {n}" for n in range(1, 8)]
    assert [r["json"]["requests"][0]["pages"] for r in session.requests] == [[1, 2, 3, 4, 5], [6, 7]]
    assert session.requests[0]["url"].endswith("files:annotate?key=k")


def test_vision_rest_error_payload_is_an_extraction_error():
    session = FakeSession(FakeResponse({"responses": [{"error": {"message": "Bad image data."}}]}))

    with pytest.raises(ExtractionError):
        VisionRestOCR("k", session=session).annotate_image(b"img")


def test_vision_rest_http_error_is_an_extraction_error():
    session = FakeSession(FakeResponse({}, status=403))

    with pytest.raises(ExtractionError):
        VisionRestOCR("k", session=session).annotate_image(b"img")


def test_vision_rest_without_key_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        VisionRestOCR(None, session=FakeSession()).annotate_image(b"img")


def test_vision_rest_extractor_dispatches_on_kind():
    calls = []
    ocr = SimpleNamespace(
        annotate_pdf=lambda data: calls.append("pdf") or "pdf text",
        annotate_image=lambda data: calls.append("image") or "image text",
    )
    extractor = VisionRestExtractor(ocr)

    assert extractor.extract_text(pdf_upload()) == "pdf text"
    assert extractor.extract_text(image_upload()) == "image text"
    assert calls == ["pdf", "image"]


# vision_client

def test_vision_client_reads_full_text_annotation():
    response = SimpleNamespace(error=SimpleNamespace(message=""),
                               full_text_annotation=SimpleNamespace(text="Answer: 42"))
    client = SimpleNamespace(document_text_detection=lambda image: response)

    assert VisionClientOCR(client=client).detect_text(b"img") == "Answer: 42"


def test_vision_client_error_message_is_an_extraction_error():
    response = SimpleNamespace(error=SimpleNamespace(message="quota exceeded"), full_text_annotation=None)
    client = SimpleNamespace(document_text_detection=lambda image: response)

    with pytest.raises(ExtractionError):
        VisionClientOCR(client=client).detect_text(b"img")


# conversion

def test_converter_decodes_pages_in_order():
    files = [{"FileName": f"hw-{n}.png", "FileData": base64.b64encode(f"png{n}".encode()).decode()} for n in (1, 2)]
    session = FakeSession(FakeResponse({"Files": files}))

    pages = PdfToImageConverter("secret", session=session).convert(b"%PDF", "hw.pdf")

    assert pages == [b"png1", b"png2"]
    sent = session.requests[0]
    assert sent["headers"] == {"Authorization": "Bearer secret"}
    assert sent["json"]["Parameters"][0]["FileValue"]["Name"] == "hw.pdf"


def test_converter_with_no_pages_is_an_extraction_error():
    session = FakeSession(FakeResponse({"Files": []}))

    with pytest.raises(ExtractionError):
        PdfToImageConverter("secret", session=session).convert(b"%PDF")


def test_converter_without_secret_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        PdfToImageConverter(None, session=FakeSession()).convert(b"%PDF")


# strategy selection

@pytest.mark.parametrize("strategy, cls", [
    ("pdf_text", PdfTextExtractor),
    ("vision_rest", VisionRestExtractor),
    ("vision_client", VisionClientExtractor),
    ("pdf_convert", PdfConvertExtractor),
])
def test_build_extractor_follows_configuration(strategy, cls):
    extractor = build_extractor(Settings(ocr_strategy=strategy))

    assert isinstance(extractor, cls)
    assert extractor.name == strategy


def test_build_extractor_rejects_unknown_strategy():
    with pytest.raises(ConfigurationError):
        build_extractor(Settings(ocr_strategy="tesseract"))


class FlakyVisionClient:
    """document_text_detection that raises for chosen page images"""

    def __init__(self, failures):
        self.failures = failures
        self.seen = []

    def document_text_detection(self, image):
        self.seen.append(image.content)
        if image.content in self.failures:
            raise self.failures[image.content]
        return SimpleNamespace(error=SimpleNamespace(message=""),
                               full_text_annotation=SimpleNamespace(text="text of " + image.content.decode()))


@pytest.mark.parametrize("error", [
    api_exceptions.RetryError("deadline exceeded", cause=None),
    auth_exceptions.TransportError("connection reset"),
    auth_exceptions.RefreshError("token expired"),
])
def test_client_library_errors_on_one_page_become_placeholders(error):
    client = FlakyVisionClient({b"p2": error})
    extractor = PdfConvertExtractor(FakeConverter([b"p1", b"p2", b"p3"]), VisionClientOCR(client=client))

    text = extractor.extract_text(pdf_upload())

    assert client.seen == [b"p1", b"p2", b"p3"]
    assert text.split("\n\n") == ["text of p1", FAILED_PAGE_PLACEHOLDER.format(page=2), "text of p3"]


def test_vision_client_retry_error_is_an_extraction_error():
    client = FlakyVisionClient({b"img": api_exceptions.RetryError("deadline exceeded", cause=None)})

    with pytest.raises(ExtractionError):
        VisionClientOCR(client=client).detect_text(b"img")
