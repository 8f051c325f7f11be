"""Handwritten assignment grader: upload, OCR, Gemini grading, chat UI."""

__version__ = "1.0.0"
