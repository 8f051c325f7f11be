"""
Turn the model's free-text reply into an AnalysisResult dict
"""
import json
import re

from pydantic import ValidationError

from grader_backend.models.analysis import AnalysisResult
from grader_backend.utils.errors import AnalysisParseError

# Greedy: first '{' through last '}'
JSON_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}')

# Canned analysis substituted when the reply cannot be parsed
FALLBACK_ANALYSIS = {
    "overallScore": 75,
    "completedQuestions": 3,
    "totalQuestions": 5,
    "strengths": [
        "Assignment was submitted on time",
        "Shows effort in attempting the questions",
    ],
    "improvements": [
        "Some questions need more detailed explanations",
        "Consider reviewing the concepts covered in class",
    ],
    "questionAnalysis": [
        {
            "question": "Question 1",
            "status": "complete",
            "feedback": "Good attempt with correct approach",
            "score": 85,
        },
        {
            "question": "Question 2",
            "status": "partial",
            "feedback": "Answer is partially correct but needs more detail",
            "score": 60,
        },
        {
            "question": "Question 3",
            "status": "missing",
            "feedback": "This question was not attempted",
            "score": 0,
        },
    ],
    "generalFeedback": (
        "The assignment shows understanding of basic concepts but would benefit from more "
        "detailed explanations and complete answers to all questions."
    ),
}


def fallback_analysis() -> dict:
    """Fresh copy of the canned analysis"""
    return json.loads(json.dumps(FALLBACK_ANALYSIS))


def _strip_code_fences(text: str) -> str:
    # Remove markdown code blocks if present
    if '```json' in text:
        return text.split('```json')[1].split('```')[0].strip()
    if '```' in text:
        return text.split('```')[1].split('```')[0].strip()
    return text


def parse_analysis(response_text: str) -> dict:
    """
    Extract and validate the analysis object from a model reply

    Args:
        response_text: Raw text returned by the model

    Returns:
        The parsed JSON object, unmodified

    Raises:
        AnalysisParseError: no JSON object, invalid JSON, or schema mismatch
    """
    raw = response_text or ""
    analysis = None
    reason = "no JSON object found"
    # Raw reply first; fenced blocks only when that does not decode
    for text in (raw, _strip_code_fences(raw)):
        match = JSON_OBJECT_PATTERN.search(text)
        if not match:
            continue
        try:
            analysis = json.loads(match.group(0))
            break
        except json.JSONDecodeError as e:
            reason = f"invalid JSON: {e}"

    if analysis is None:
        raise AnalysisParseError(response_text, reason)

    try:
        AnalysisResult.model_validate(analysis)
    except ValidationError as e:
        raise AnalysisParseError(response_text, f"schema mismatch: {e.error_count()} errors") from e

    return analysis
