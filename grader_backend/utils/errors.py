"""
Error types raised along the upload -> OCR -> grading chain
"""


class GraderError(Exception):
    """Base error. Rendered to clients as {"error": message}."""

    status_code = 500
    message = "Failed to analyze assignment"

    def __init__(self, message: str = None):
        if message:
            self.message = message
        super().__init__(self.message)


class ConfigurationError(GraderError):
    message = "Service is not configured correctly"


class InvalidUploadError(GraderError):
    status_code = 400
    message = "Invalid file upload"


class EmptyTextError(GraderError):
    status_code = 400
    message = "No text could be extracted from the file. Make sure it contains readable text."


class ExtractionError(GraderError):
    message = "Failed to extract text from file"


class GradingServiceError(GraderError):
    message = "Failed to analyze assignment"


class AnalysisParseError(GraderError):
    """The model replied, but not with a usable AnalysisResult object."""

    message = "The grading model returned an unreadable response"

    def __init__(self, raw_response: str, reason: str = ""):
        self.raw_response = raw_response
        self.reason = reason
        super().__init__()
