"""
PDF to image conversion through ConvertAPI
"""
import base64
from typing import List, Optional

import requests

from grader_backend.utils.errors import ConfigurationError, ExtractionError
from grader_backend.utils.logger import logger

CONVERTAPI_URL = "https://v2.convertapi.com/convert/pdf/to/png"


class PdfToImageConverter:
    """Convert each page of a PDF to a PNG image"""

    def __init__(self, secret: Optional[str], timeout: float = 60, session=None):
        self.secret = secret
        self.timeout = timeout
        self.session = session or requests.Session()

    def convert(self, data: bytes, filename: str = "assignment.pdf") -> List[bytes]:
        """
        Args:
            data: Raw PDF bytes
            filename: Name reported to the conversion service

        Returns:
            PNG bytes, one entry per page, in page order
        """
        if not self.secret:
            raise ConfigurationError("CONVERTAPI_SECRET environment variable not set")
        payload = {
            "Parameters": [
                {
                    "Name": "File",
                    "FileValue": {
                        "Name": filename,
                        "Data": base64.b64encode(data).decode("utf-8"),
                    },
                },
                {"Name": "StoreFile", "Value": False},
            ]
        }
        logger.info(f"[OCR] Converting {filename} to images...")
        try:
            resp = self.session.post(
                CONVERTAPI_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.secret}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            files = resp.json().get("Files") or []
            images = [base64.b64decode(f["FileData"]) for f in files]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.error(f"[ERROR] PDF conversion failed: {e}")
            raise ExtractionError() from e

        if not images:
            logger.error("[ERROR] PDF conversion returned no pages")
            raise ExtractionError()

        logger.info(f"[OK] Converted {len(images)} pages")
        return images
