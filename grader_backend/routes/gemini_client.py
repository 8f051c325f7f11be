"""
Gemini client for assignment grading
"""
import google.generativeai as genai

from grader_backend.services.prompts import build_grading_prompt
from grader_backend.utils.config import Settings
from grader_backend.utils.errors import GradingServiceError
from grader_backend.utils.logger import logger


def normalize_model_name(model_name: str) -> str:
    # Remove 'models/' prefix if present (some APIs include it, others don't)
    if model_name.startswith('models/'):
        model_name = model_name[len('models/'):]
    return model_name


def initialize_gemini(settings: Settings):
    """Initialize Gemini model with API key from settings"""
    if not settings.gemini_api_key:
        logger.error("[ERROR] GEMINI_API_KEY environment variable not set")
        raise GradingServiceError()

    genai.configure(api_key=settings.gemini_api_key)
    model_name = normalize_model_name(settings.gemini_model)
    logger.info(f"   Using Gemini model: {model_name}")
    return genai.GenerativeModel(model_name=model_name)


def response_text(response) -> str:
    """Pull the reply text out of a generate_content response"""
    try:
        # response.text raises ValueError when the reply was blocked or empty
        if response.text:
            return response.text.strip()
    except (AttributeError, ValueError):
        pass

    candidates = getattr(response, 'candidates', None) or []
    if candidates:
        content = getattr(candidates[0], 'content', None)
        parts = getattr(content, 'parts', None) or []
        text = "".join(getattr(p, 'text', '') for p in parts)
        if text:
            return text.strip()
    return ""


class GeminiGrader:
    """Sends extracted assignment text to Gemini and returns the raw reply"""

    def __init__(self, settings: Settings, model=None):
        self.settings = settings
        self._model = model

    @property
    def model(self):
        if self._model is None:
            self._model = initialize_gemini(self.settings)
        return self._model

    def grade(self, extracted_text: str) -> str:
        prompt = build_grading_prompt(extracted_text)
        logger.info(f"[GRADE] Prompt length: {len(prompt)} characters (~{len(prompt) // 4} tokens)")

        try:
            response = self.model.generate_content(
                prompt,
                generation_config={
                    'temperature': self.settings.gemini_temperature,
                    'max_output_tokens': self.settings.gemini_max_output_tokens,
                }
            )
        except GradingServiceError:
            raise
        except Exception as e:
            logger.error(f"[ERROR] Gemini API error: {e}")
            raise GradingServiceError() from e

        text = response_text(response)
        if not text:
            logger.error("[ERROR] Gemini returned an empty response")
            raise GradingServiceError()

        logger.info(f"[OK] Gemini replied with {len(text)} characters")
        return text
