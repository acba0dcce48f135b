"""
AI question generation: builds the prompt, calls the OpenAI Responses API and
validates the returned JSON against the canonical question format.
"""
import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from dotenv import load_dotenv
from openai import OpenAI

import engine
from quizforge.errors import InvalidGeneration, InvalidInput
from quizforge.models import Question
from quizforge.question_io import parse_questions

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_MODEL = "gpt-4o-mini"

_JSON_RE = re.compile(r"\{[\s\S]*\}")

TYPE_INSTRUCTIONS = {
    "multiple_choice": "Generate only multiple choice questions with 4 options each.",
    "descriptive": "Generate only descriptive (essay/short answer) questions.",
    "mixed": "Generate a mix of multiple choice and descriptive questions.",
}

PROMPT_TEMPLATE = """
Generate {count} {difficulty} level questions about {genre}.

{type_instruction}

Return the response in this exact JSON format:
{{
  "questions": [
    {{
      "id": "q1",
      "type": "multiple_choice",
      "question": "Question text here",
      "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
      "correctAnswer": 0,
      "correctAnswerText": null,
      "explanation": "Detailed explanation of the correct answer",
      "keywords": []
    }},
    {{
      "id": "q2",
      "type": "descriptive",
      "question": "Descriptive question text here",
      "options": [],
      "correctAnswer": null,
      "correctAnswerText": "Sample correct answer",
      "explanation": "Detailed explanation",
      "keywords": ["keyword1", "keyword2", "keyword3"]
    }}
  ]
}}

For multiple choice questions:
- correctAnswer should be the index (0-3) of the correct option
- correctAnswerText should be null
- keywords should be empty array

For descriptive questions:
- correctAnswer should be null
- correctAnswerText should contain a sample correct answer
- keywords should contain 3-5 key terms that should appear in a correct answer
- options should be empty array

Make sure all questions are educational, appropriate, and well-structured.
"""


@dataclass(frozen=True)
class GenerationRequest:
    genre: str
    difficulty: str = "medium"
    question_count: int = engine.DEFAULT_QUESTION_COUNT
    question_type: str = "mixed"

    def validate(self):
        if not self.genre or not self.genre.strip():
            raise InvalidInput("Subject/genre is required")
        if self.difficulty not in engine.DIFFICULTIES:
            raise InvalidInput(f"Difficulty must be one of {', '.join(engine.DIFFICULTIES)}")
        if isinstance(self.question_count, bool) or not isinstance(self.question_count, int) or self.question_count < 1:
            raise InvalidInput("Question count must be a whole number of at least 1")
        if self.question_type not in engine.QUESTION_TYPES:
            raise InvalidInput(f"Question type must be one of {', '.join(engine.QUESTION_TYPES)}")


def build_prompt(request: GenerationRequest) -> str:
    return PROMPT_TEMPLATE.format(
        count=request.question_count,
        difficulty=request.difficulty,
        genre=request.genre.strip(),
        type_instruction=TYPE_INSTRUCTIONS[request.question_type],
    )


def call_llm_text(prompt: str, model: Optional[str] = None, timeout: Optional[float] = None) -> str:
    """Text-only OpenAI call; returns the aggregated output text."""
    client = OpenAI(
        api_key=os.getenv("OPENAI_API_KEY"),
        timeout=timeout if timeout is not None else engine.GENERATION_TIMEOUT_SEC,
    )
    resp = client.responses.create(
        model=model or os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
        input=[
            {
                "role": "user",
                "content": [{"type": "input_text", "text": prompt}],
            }
        ],
        temperature=0.7,
    )
    return resp.output_text or ""


def parse_generated_text(text: str) -> Tuple[Question, ...]:
    """Pull the JSON object out of model output and validate it."""
    match = _JSON_RE.search(text or "")
    if not match:
        raise InvalidGeneration("Invalid response format from AI: no JSON object found")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise InvalidGeneration(f"Invalid response format from AI: {e}") from e
    return parse_questions(data, InvalidGeneration)


def generate_questions(
    request: GenerationRequest,
    llm: Callable[[str], str] = call_llm_text,
) -> Tuple[Question, ...]:
    """
    Generate and validate a question list.

    Args:
        request: What to generate
        llm: Prompt -> raw model text (injectable for tests)

    Raises:
        InvalidInput: bad request
        InvalidGeneration: model call failed or returned malformed JSON
    """
    request.validate()
    prompt = build_prompt(request)
    logger.info(
        f"Generating {request.question_count} {request.difficulty} {request.question_type} "
        f"questions about {request.genre!r}"
    )
    try:
        text = llm(prompt)
    except Exception as e:
        logger.error(f"Error generating questions: {e}")
        raise InvalidGeneration("Failed to generate questions. Please try again.") from e

    questions = parse_generated_text(text)
    if len(questions) != request.question_count:
        logger.warning(f"Requested {request.question_count} questions, model returned {len(questions)}")
    return questions
