"""
Pydantic models for grading results
"""
from pydantic import BaseModel, Field
from typing import List, Literal


class QuestionAnalysis(BaseModel):
    question: str
    status: Literal["complete", "partial", "missing"]
    feedback: str
    score: float = Field(ge=0, le=100)


class AnalysisResult(BaseModel):
    overallScore: float = Field(ge=0, le=100)
    completedQuestions: int = Field(ge=0)
    totalQuestions: int = Field(ge=0)
    strengths: List[str]
    improvements: List[str]
    questionAnalysis: List[QuestionAnalysis]
    generalFeedback: str


class ErrorResponse(BaseModel):
    error: str
