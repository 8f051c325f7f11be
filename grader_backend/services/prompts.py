"""
Grading prompt template
"""

GRADING_PROMPT = """
You are an expert teacher evaluating a student's handwritten assignment. I'll provide you with the text extracted from a scan of a handwritten assignment.

Please analyze the assignment and provide a detailed evaluation in the following JSON format:

{{
  "overallScore": number (0-100),
  "completedQuestions": number,
  "totalQuestions": number,
  "strengths": string[],
  "improvements": string[],
  "questionAnalysis": [
    {{
      "question": "Brief description of the question",
      "status": "complete" | "partial" | "missing",
      "feedback": "Detailed feedback for this specific question",
      "score": number (0-100)
    }}
  ],
  "generalFeedback": "Overall feedback and recommendations"
}}

Guidelines for evaluation:
1. Identify all questions in the assignment
2. For each question, determine if it's completely answered, partially answered, or missing
3. Provide constructive feedback focusing on:
   - Correctness of answers
   - Completeness of responses
   - Clarity of explanations
   - Understanding of concepts
4. Highlight strengths and areas for improvement
5. Give an overall score based on completion and quality
6. Provide encouraging but honest feedback

Here's the extracted text from the assignment:

{extracted_text}

Please respond with only the JSON object, no additional text.
"""


def build_grading_prompt(extracted_text: str) -> str:
    return GRADING_PROMPT.format(extracted_text=extracted_text.strip())
