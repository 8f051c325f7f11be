import io
import json

import PyPDF2
import pytest
from fastapi.testclient import TestClient

from grader_backend.extraction.strategies import TextExtractor
from grader_backend.routes.analyze import get_extractor_factory, get_grader
from grader_backend.server import app
from grader_backend.utils.config import Settings, get_settings

VALID_ANALYSIS = {
    "overallScore": 88,
    "completedQuestions": 2,
    "totalQuestions": 2,
    "strengths": ["Clear working"],
    "improvements": ["Label units"],
    "questionAnalysis": [
        {"question": "Solve 2x + 3 = 7", "status": "complete", "feedback": "Correct, x = 2", "score": 100},
        {"question": "Define velocity", "status": "partial", "feedback": "Missing direction", "score": 75},
    ],
    "generalFeedback": "Solid work overall.",
}


class FakeExtractor(TextExtractor):
    name = "fake"
    supported_kinds = ("pdf", "image")

    def __init__(self, text="Q1. 2x + 3 = 7\nx = 2", error=None):
        self.text = text
        self.error = error
        self.uploads = []

    def _extract(self, upload):
        self.uploads.append(upload)
        if self.error:
            raise self.error
        return self.text


class FakeGrader:
    def __init__(self, reply=None, error=None):
        self.reply = reply if reply is not None else json.dumps(VALID_ANALYSIS)
        self.error = error
        self.texts = []

    def grade(self, extracted_text):
        self.texts.append(extracted_text)
        if self.error:
            raise self.error
        return self.reply


def make_blank_pdf(pages=1):
    writer = PyPDF2.PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


@pytest.fixture
def settings():
    return Settings(ocr_strategy="pdf_text", gemini_api_key="test-key")


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def grader():
    return FakeGrader()


@pytest.fixture
def client(settings, extractor, grader):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_extractor_factory] = lambda: (lambda: extractor)
    app.dependency_overrides[get_grader] = lambda: grader
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
