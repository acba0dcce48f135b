"""
Canonical question interchange format: the {"questions": [...]} JSON document
shared by AI generation, file import and file export.

Each question object:
    id, type ("multiple_choice" | "descriptive"), question, options,
    correctAnswer, correctAnswerText, explanation, keywords
"""
import json
import logging
from typing import Any, Dict, List, Tuple, Type

from quizforge.errors import InvalidImport, QuizError
from quizforge.models import (
    DESCRIPTIVE,
    MULTIPLE_CHOICE,
    DescriptiveQuestion,
    MultipleChoiceQuestion,
    Question,
)

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_GENRE = "Imported Questions"
DEFAULT_IMPORT_DIFFICULTY = "medium"


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _dedupe(items: List[str]) -> Tuple[str, ...]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return tuple(out)


def parse_question(raw: Any, position: int, error_cls: Type[QuizError]) -> Question:
    """Validate one question object and build its variant. position is 1-based, for messages."""
    if not isinstance(raw, dict):
        raise error_cls(f"Question {position} is not an object")
    if not raw.get("id") or not raw.get("type") or not raw.get("question"):
        raise error_cls(f"Question {position} is missing required fields (id, type, question)")

    qtype = raw["type"]
    qid = str(raw["id"])
    prompt = str(raw["question"])
    explanation = raw.get("explanation") or ""
    if not isinstance(explanation, str):
        raise error_cls(f"Question {qid}: explanation must be text")

    if qtype == MULTIPLE_CHOICE:
        options = raw.get("options")
        if not isinstance(options, list) or not options or not all(isinstance(o, str) for o in options):
            raise error_cls(f"Question {qid}: multiple choice needs a non-empty list of text options")
        correct = raw.get("correctAnswer")
        if not _is_index(correct) or not 0 <= correct < len(options):
            raise error_cls(f"Question {qid}: correctAnswer must be an index into options")
        return MultipleChoiceQuestion(
            id=qid,
            prompt=prompt,
            options=tuple(options),
            correct_answer=correct,
            explanation=explanation,
        )

    if qtype == DESCRIPTIVE:
        sample = raw.get("correctAnswerText")
        if not isinstance(sample, str):
            raise error_cls(f"Question {qid}: descriptive question needs correctAnswerText")
        keywords = raw.get("keywords") or []
        if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
            raise error_cls(f"Question {qid}: keywords must be a list of text")
        return DescriptiveQuestion(
            id=qid,
            prompt=prompt,
            correct_answer_text=sample,
            keywords=_dedupe([k for k in keywords if k.strip()]),
            explanation=explanation,
        )

    raise error_cls(f"Invalid question type {qtype!r}: must be multiple_choice or descriptive")


def parse_questions(data: Any, error_cls: Type[QuizError]) -> Tuple[Question, ...]:
    """
    Validate a {"questions": [...]} document.

    Args:
        data: Decoded JSON
        error_cls: InvalidGeneration or InvalidImport, depending on the source

    Returns:
        Questions in document order
    """
    if not isinstance(data, dict):
        raise error_cls("Invalid format: expected a JSON object with a questions array")
    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list):
        raise error_cls("Invalid format: missing questions array")
    if not raw_questions:
        raise error_cls("Invalid format: questions array is empty")

    questions = tuple(parse_question(raw, i, error_cls) for i, raw in enumerate(raw_questions, start=1))
    ids = [q.id for q in questions]
    if len(set(ids)) != len(ids):
        raise error_cls("Invalid format: question ids must be unique")
    return questions


def decode_document(text: str, error_cls: Type[QuizError]) -> Dict:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise error_cls(f"Invalid JSON: {e}") from e


def import_document(text: str) -> Tuple[Tuple[Question, ...], str, str]:
    """
    Parse an imported JSON file.

    Returns:
        (questions, genre, difficulty); genre/difficulty fall back to defaults
    """
    data = decode_document(text, InvalidImport)
    questions = parse_questions(data, InvalidImport)
    genre = data.get("genre") or DEFAULT_IMPORT_GENRE
    difficulty = data.get("difficulty") or DEFAULT_IMPORT_DIFFICULTY
    logger.info(f"Parsed import: {len(questions)} questions, genre={genre}, difficulty={difficulty}")
    return questions, genre, difficulty


def question_to_dict(question: Question) -> Dict:
    if isinstance(question, MultipleChoiceQuestion):
        return {
            "id": question.id,
            "type": MULTIPLE_CHOICE,
            "question": question.prompt,
            "options": list(question.options),
            "correctAnswer": question.correct_answer,
            "correctAnswerText": None,
            "explanation": question.explanation,
            "keywords": [],
        }
    return {
        "id": question.id,
        "type": DESCRIPTIVE,
        "question": question.prompt,
        "options": [],
        "correctAnswer": None,
        "correctAnswerText": question.correct_answer_text,
        "explanation": question.explanation,
        "keywords": list(question.keywords),
    }


def questions_to_list(questions) -> List[Dict]:
    return [question_to_dict(q) for q in questions]


def export_document(questions) -> str:
    """Serialize questions to the interchange JSON (pretty-printed)."""
    return json.dumps({"questions": questions_to_list(questions)}, indent=2, ensure_ascii=False)
