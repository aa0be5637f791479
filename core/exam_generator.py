"""
Test Series Generation Module

Single responsibility: topic + settings → validated multiple-choice questions.
Optional reference papers steer question style; the LLM is asked for a JSON object
and its reply is parsed once directly and once more from a markdown code block.
"""

import json
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field, validator

from core.llm import chat_completion

# Configure structured logger
logger = structlog.get_logger(__name__)


DIFFICULTIES = ["easy", "medium", "hard"]
MIN_QUESTIONS = 10
MAX_QUESTIONS = 100
REFERENCE_LIMIT = 4000

DIFFICULTY_INSTRUCTIONS = {
    "easy": (
        "Create easy-level questions focusing on basic concepts, definitions, and fundamental "
        "understanding. Questions should be straightforward and test recall of key facts."
    ),
    "medium": (
        "Create medium-level questions that require application of concepts, understanding of "
        "relationships, and basic problem-solving. Mix conceptual and application-based questions."
    ),
    "hard": (
        "Create hard-level questions that require deep understanding, critical thinking, multi-step "
        "reasoning, and application in complex scenarios. Include tricky edge cases and advanced concepts."
    ),
}

_CODE_BLOCK_PATTERNS = [
    re.compile(r"```json\n([\s\S]*?)\n```"),
    re.compile(r"```\n([\s\S]*?)\n```"),
]


class GenerationError(Exception):
    """Custom exception for test-series generation failures"""
    pass


class InvalidRequestError(GenerationError):
    """Request parameters are missing or out of range"""
    pass


class ResponseParseError(GenerationError):
    """LLM output could not be turned into questions"""
    pass


class TestSeriesRequest(BaseModel):
    """Validated generation request"""

    __test__ = False  # not a pytest test class

    topic: str = Field(description="Subject of the questions")
    question_count: int = Field(description="Number of questions wanted")
    difficulty: str = Field(default="medium")
    exam_type: Optional[str] = None
    reference_papers: Optional[str] = None

    @validator('difficulty')
    def validate_difficulty(cls, v):
        if v not in DIFFICULTIES:
            raise ValueError(f"Difficulty must be one of {DIFFICULTIES}")
        return v


def build_request(topic: Optional[str], question_count: Any, difficulty: Optional[str] = None,
                  exam_type: Optional[str] = None, reference_papers: Optional[str] = None) -> TestSeriesRequest:
    """Validate raw parameters with the same messages the UI expects"""

    if not topic or not question_count:
        raise InvalidRequestError("Topic and question count are required")

    try:
        count = int(question_count)
    except (TypeError, ValueError):
        raise InvalidRequestError("Question count must be between 10 and 100")
    if count < MIN_QUESTIONS or count > MAX_QUESTIONS:
        raise InvalidRequestError("Question count must be between 10 and 100")

    selected = difficulty or "medium"
    if selected not in DIFFICULTIES:
        raise InvalidRequestError("Invalid difficulty level")

    return TestSeriesRequest(
        topic=topic,
        question_count=count,
        difficulty=selected,
        exam_type=exam_type or None,
        reference_papers=reference_papers or None
    )


def _reference_context(reference_papers: Optional[str]) -> str:
    if reference_papers and reference_papers.strip():
        return (
            "\n\nREFERENCE MATERIAL (Previous Year Questions/Papers):\n"
            f"{reference_papers[:REFERENCE_LIMIT]}\n\n"
            "IMPORTANT: Analyze the above reference material to understand:\n"
            "1. Question patterns and styles used in previous exams\n"
            "2. Common topics and subtopics that are frequently tested\n"
            "3. The level of difficulty and complexity expected\n"
            "4. The format and structure of questions\n\n"
            "Use this analysis to generate NEW questions that follow similar patterns but are NOT "
            "direct copies. Create original questions that test the same concepts in different ways."
        )
    return ("\n\nNote: No reference papers provided. Generate questions based on your knowledge "
            "of the topic and common examination patterns.")


def build_messages(request: TestSeriesRequest) -> List[Dict[str, str]]:
    exam_context = (f"This is for {request.exam_type} examination preparation."
                    if request.exam_type else "")

    system_prompt = f"""You are an expert exam question generator specializing in creating high-quality multiple-choice questions for competitive exams. {exam_context}

Your task is to generate {request.question_count} unique, well-crafted multiple-choice questions on the topic: "{request.topic}".

{DIFFICULTY_INSTRUCTIONS[request.difficulty]}

IMPORTANT FORMATTING RULES:
1. Return ONLY a valid JSON object with a "questions" array
2. Each question must have exactly 4 options
3. correctAnswer must be the index (0-3) of the correct option
4. Include brief explanations for educational value
5. Ensure questions are diverse and cover different aspects of the topic
6. Avoid repetitive question patterns
7. Questions should be original and not direct copies from reference material

Required JSON format:
{{
  "questions": [
    {{
      "question": "Question text here?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": 0,
      "explanation": "Brief explanation of why this is correct and why others are wrong",
      "difficulty": "{request.difficulty}",
      "subtopic": "Specific subtopic within {request.topic}"
    }}
  ]
}}{_reference_context(request.reference_papers)}"""

    if request.reference_papers:
        guidance = "Use the reference material to understand patterns but create original questions."
    else:
        guidance = "Create questions based on standard examination patterns for this topic."

    user_prompt = (f'Generate {request.question_count} questions on "{request.topic}" '
                   f"at {request.difficulty} difficulty level. {guidance}")

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


def _questions_from(parsed: Any) -> List[Any]:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        questions = parsed.get("questions")
        return questions if isinstance(questions, list) else []
    return []


def parse_questions(content: str) -> List[Any]:
    """Parse the LLM reply; falls back to the first markdown code block once"""

    try:
        return _questions_from(json.loads(content))
    except json.JSONDecodeError:
        logger.warning("LLM reply is not plain JSON, trying code block extraction")

    for pattern in _CODE_BLOCK_PATTERNS:
        match = pattern.search(content)
        if match:
            try:
                return _questions_from(json.loads(match.group(1)))
            except json.JSONDecodeError as e:
                raise ResponseParseError(f"Failed to parse AI response: {e}")

    raise ResponseParseError("Failed to parse AI response")


def is_valid_question(question: Any) -> bool:
    if not isinstance(question, dict) or not question.get("question"):
        return False
    options = question.get("options")
    answer = question.get("correctAnswer")
    return (
        isinstance(options, list)
        and len(options) == 4
        and isinstance(answer, int)
        and not isinstance(answer, bool)
        and 0 <= answer <= 3
    )


def generate_test_series(request: TestSeriesRequest, client: Any = None) -> Dict[str, Any]:
    """Main generation function - prompt, parse, validate, tag"""

    logger.info("Generating test series",
                topic=request.topic,
                question_count=request.question_count,
                difficulty=request.difficulty,
                exam_type=request.exam_type,
                with_references=bool(request.reference_papers))

    content = chat_completion(
        build_messages(request),
        temperature=0.8,
        max_tokens=8000,
        json_mode=True,
        client=client
    )

    questions = parse_questions(content)
    valid = [q for q in questions if is_valid_question(q)][:request.question_count]

    if not valid:
        raise ResponseParseError("No valid questions generated")

    stamp = int(time.time() * 1000)
    tagged = [
        {"id": f"q-{stamp}-{index}", **question, "type": "multiple-choice"}
        for index, question in enumerate(valid)
    ]

    logger.info("Test series generated",
                requested=request.question_count,
                received=len(questions),
                valid=len(tagged))

    return {
        "success": True,
        "questions": tagged,
        "metadata": {
            "topic": request.topic,
            "difficulty": request.difficulty,
            "examType": request.exam_type,
            "totalQuestions": len(tagged),
            "usedReferencePapers": bool(request.reference_papers),
            "generatedAt": datetime.now(timezone.utc).isoformat(),
        },
    }
