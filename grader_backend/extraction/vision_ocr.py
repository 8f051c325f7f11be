"""
Google Cloud Vision OCR clients

Two ways of talking to the same service:
- VisionRestOCR calls the REST API with an API key (images:annotate for
  images, files:annotate for inline PDFs)
- VisionClientOCR uses the google-cloud-vision client library with
  Application Default Credentials
"""
import base64
from typing import List, Optional

import requests
from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import vision

from grader_backend.utils.errors import ConfigurationError, ExtractionError
from grader_backend.utils.logger import logger

VISION_API_URL = "https://vision.googleapis.com/v1"
# files:annotate accepts at most 5 pages per request
PDF_PAGES_PER_REQUEST = 5


class VisionRestOCR:
    """Vision REST API client authenticated by API key"""

    def __init__(self, api_key: Optional[str], timeout: float = 60, session=None):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, endpoint: str, payload: dict) -> dict:
        if not self.api_key:
            raise ConfigurationError("GOOGLE_VISION_API_KEY environment variable not set")
        url = f"{VISION_API_URL}/{endpoint}?key={self.api_key}"
        try:
            resp = self.session.post(url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"[ERROR] Vision REST call to {endpoint} failed: {e}")
            raise ExtractionError() from e

    @staticmethod
    def _check_error(result: dict):
        error = result.get("error")
        if error and error.get("message"):
            logger.error(f"[ERROR] Vision API error: {error['message']}")
            raise ExtractionError()

    @staticmethod
    def _text_from(result: dict) -> str:
        if result.get("fullTextAnnotation", {}).get("text"):
            return result["fullTextAnnotation"]["text"]
        # fallback to textAnnotations first entry
        annotations = result.get("textAnnotations")
        if annotations and isinstance(annotations, list):
            return annotations[0].get("description", "") or ""
        return ""

    def annotate_image(self, content: bytes) -> str:
        """Run DOCUMENT_TEXT_DETECTION on a single image"""
        payload = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(content).decode("utf-8")},
                    "features": [{"type": "DOCUMENT_TEXT_DETECTION"}],
                }
            ]
        }
        data = self._post("images:annotate", payload)
        responses = data.get("responses") or []
        if not responses:
            return ""
        self._check_error(responses[0])
        return self._text_from(responses[0])

    def annotate_pdf(self, content: bytes) -> str:
        """Run DOCUMENT_TEXT_DETECTION over every page of an inline PDF"""
        encoded = base64.b64encode(content).decode("utf-8")
        page_texts: List[str] = []
        first_page = 1
        total_pages = None

        while total_pages is None or first_page <= total_pages:
            pages = list(range(first_page, first_page + PDF_PAGES_PER_REQUEST))
            if total_pages is not None:
                pages = [p for p in pages if p <= total_pages]
            payload = {
                "requests": [
                    {
                        "inputConfig": {"content": encoded, "mimeType": "application/pdf"},
                        "features": [{"type": "DOCUMENT_TEXT_DETECTION"}],
                        "pages": pages,
                    }
                ]
            }
            logger.info(f"[OCR] Vision files:annotate pages {pages[0]}-{pages[-1]}")
            data = self._post("files:annotate", payload)
            file_responses = data.get("responses") or []
            if not file_responses:
                break
            file_result = file_responses[0]
            self._check_error(file_result)
            total_pages = file_result.get("totalPages") or len(pages)

            for page_result in file_result.get("responses", []):
                self._check_error(page_result)
                page_texts.append(self._text_from(page_result))

            first_page += PDF_PAGES_PER_REQUEST

        return "\n\n".join(page_texts)


class VisionClientOCR:
    """google-cloud-vision ImageAnnotatorClient wrapper"""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            try:
                self._client = vision.ImageAnnotatorClient()
            except auth_exceptions.DefaultCredentialsError as e:
                raise ConfigurationError(
                    "Google Vision client not initialized. Set GOOGLE_APPLICATION_CREDENTIALS "
                    "to a service-account JSON with Vision API access."
                ) from e
            logger.info("[OK] Vision client initialized")
        return self._client

    def detect_text(self, content: bytes) -> str:
        """document_text_detection on one image, returns the full text"""
        try:
            response = self.client.document_text_detection(image=vision.Image(content=content))
        except (api_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            logger.error(f"[ERROR] Vision client call failed: {e}")
            raise ExtractionError() from e

        if getattr(response, "error", None) and getattr(response.error, "message", None):
            logger.error(f"[ERROR] Vision API error: {response.error.message}")
            raise ExtractionError()
        if getattr(response, "full_text_annotation", None):
            return response.full_text_annotation.text or ""
        return ""
